"""Tests for configuration error kinds and aggregation."""

from __future__ import annotations

import pytest

from otelconf.errors import (
    BoundError,
    ConfigError,
    ConfigErrorGroup,
    InvalidError,
    RequiredError,
    UnmarshalError,
    error_matches,
    errors_matching,
    iter_leaf_errors,
    join_errors,
    raise_joined,
)


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (BoundError("interval", ">=", 0), "interval must be greater than or equal to 0"),
        (BoundError("max_queue_size", ">", 0), "max_queue_size must be greater than 0"),
        (
            RequiredError("BatchSpanProcessor", "exporter"),
            "field exporter in BatchSpanProcessor: required",
        ),
        (UnmarshalError("TlsSpec"), "unmarshal error in TlsSpec"),
        (InvalidError("tls configuration"), "invalid config: tls configuration"),
        (
            InvalidError("unsupported compression", "'br'"),
            "invalid config: unsupported compression: 'br'",
        ),
    ],
)
def test_error_messages(error: ConfigError, message: str) -> None:
    """Ensure each error kind renders its message."""
    assert str(error) == message


def test_matches_compares_kind_and_identity() -> None:
    """Ensure matching ignores details but not identifying fields."""
    assert InvalidError("tls configuration", "a").matches(InvalidError("tls configuration"))
    assert not InvalidError("tls configuration").matches(InvalidError("endpoint parsing failed"))
    assert not BoundError("timeout", ">=", 0).matches(BoundError("timeout", ">", 0))
    assert not InvalidError("x").matches(RequiredError("x", "y"))


def test_join_errors_shapes() -> None:
    """Ensure join returns None, the sole error, or a group."""
    first = InvalidError("a")
    second = BoundError("b", ">", 0)
    assert join_errors([]) is None
    assert join_errors([None, first]) is first
    joined = join_errors([first, None, second])
    assert isinstance(joined, ConfigErrorGroup)
    assert list(joined.exceptions) == [first, second]


def test_join_errors_with_foreign_errors() -> None:
    """Ensure errors outside the taxonomy still join into a group."""
    joined = join_errors([InvalidError("a"), TimeoutError("slow")])
    assert isinstance(joined, ExceptionGroup)
    assert not isinstance(joined, ConfigError)


def test_nested_groups_are_flattened_for_matching() -> None:
    """Ensure every leaf of nested groups can be matched."""
    inner = ConfigErrorGroup("inner", [BoundError("a", ">", 0), RequiredError("o", "f")])
    outer = ConfigErrorGroup("outer", [inner, InvalidError("c")])
    assert len(list(iter_leaf_errors(outer))) == 3
    assert error_matches(outer, RequiredError("o", "f"))
    assert error_matches(outer, InvalidError("c"))
    assert errors_matching(outer, BoundError)[0].field == "a"


def test_causes_are_matched() -> None:
    """Ensure a wrapped configuration error still matches."""
    try:
        try:
            raise InvalidError("tls configuration")
        except InvalidError as exc:
            raise RuntimeError("wrapped") from exc
    except RuntimeError as wrapped:
        assert error_matches(wrapped, InvalidError("tls configuration"))


def test_group_supports_except_star() -> None:
    """Ensure joined errors can be split with except*."""
    caught: list[BaseException] = []
    try:
        raise_joined([InvalidError("a"), BoundError("b", ">", 0)])
    except* BoundError as group:
        caught.extend(group.exceptions)
    except* InvalidError:
        pass
    assert len(caught) == 1
