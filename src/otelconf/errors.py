"""Error types for declarative OpenTelemetry configuration."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Literal

type BoundOp = Literal[">", ">="]


class ConfigError(Exception):
    """Base class for configuration errors."""

    def identity(self) -> tuple[object, ...]:
        """Return the fields that identify this error kind.

        Returns
        -------
        tuple[object, ...]
            Identifying fields compared by ``matches``.
        """
        return ()

    def matches(self, other: ConfigError) -> bool:
        """Return whether ``other`` is the same error kind with the same identity.

        Returns
        -------
        bool
            ``True`` when kind and identifying fields agree.
        """
        return type(self) is type(other) and self.identity() == other.identity()


class BoundError(ConfigError, ValueError):
    """Raised when a numeric field violates its bound."""

    def __init__(self, field: str, op: BoundOp, bound: int = 0) -> None:
        self.field = field
        self.op = op
        self.bound = bound
        relation = "greater than" if op == ">" else "greater than or equal to"
        super().__init__(f"{field} must be {relation} {bound}")

    def identity(self) -> tuple[object, ...]:
        return (self.field, self.op, self.bound)


class RequiredError(ConfigError, ValueError):
    """Raised when a required field is missing."""

    def __init__(self, owner: str, field: str) -> None:
        self.owner = owner
        self.field = field
        super().__init__(f"field {field} in {owner}: required")

    def identity(self) -> tuple[object, ...]:
        return (self.owner, self.field)


class UnmarshalError(ConfigError, ValueError):
    """Raised when the encoded form cannot be decoded into the target shape."""

    def __init__(self, owner: str, detail: str | None = None) -> None:
        self.owner = owner
        self.detail = detail
        message = f"unmarshal error in {owner}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def identity(self) -> tuple[object, ...]:
        return (self.owner,)


class InvalidError(ConfigError, ValueError):
    """Raised for every other validation failure."""

    def __init__(self, identifier: str, detail: str | None = None) -> None:
        self.identifier = identifier
        self.detail = detail
        message = f"invalid config: {identifier}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def identity(self) -> tuple[object, ...]:
        return (self.identifier,)


class ConfigErrorGroup(ExceptionGroup, ConfigError):
    """Aggregate of sibling configuration errors."""

    def derive(self, excs: Sequence[Exception]) -> ConfigErrorGroup:
        return ConfigErrorGroup(self.message, excs)


def join_errors(
    errors: Iterable[Exception | None],
    message: str = "invalid configuration",
) -> Exception | None:
    """Join sibling errors into a single error.

    Parameters
    ----------
    errors
        Errors collected from sibling nodes. ``None`` entries are skipped.
    message
        Message attached to the resulting group.

    Returns
    -------
    Exception | None
        ``None`` when nothing failed, the sole error for a single failure,
        otherwise an exception group holding every failure in order.
    """
    collected = [error for error in errors if error is not None]
    if not collected:
        return None
    if len(collected) == 1:
        return collected[0]
    if all(isinstance(error, ConfigError) for error in collected):
        return ConfigErrorGroup(message, collected)
    return ExceptionGroup(message, collected)


def raise_joined(
    errors: Iterable[Exception | None],
    message: str = "invalid configuration",
) -> None:
    """Raise the joined error when any sibling failed.

    Raises
    ------
    Exception
        The joined error, when at least one error was collected.
    """
    joined = join_errors(errors, message)
    if joined is not None:
        raise joined


def iter_leaf_errors(error: BaseException) -> Iterator[BaseException]:
    """Yield the leaf errors of a possibly nested exception group.

    Yields
    ------
    BaseException
        Every non-group error reachable from ``error``.
    """
    if isinstance(error, BaseExceptionGroup):
        for inner in error.exceptions:
            yield from iter_leaf_errors(inner)
        return
    yield error


def error_matches(error: BaseException, target: ConfigError) -> bool:
    """Return whether any leaf of ``error`` matches ``target``.

    The cause chain of every leaf is searched as well, so wrapped
    configuration errors still match.

    Returns
    -------
    bool
        ``True`` when a matching error is found.
    """
    for leaf in iter_leaf_errors(error):
        current: BaseException | None = leaf
        while current is not None:
            if isinstance(current, ConfigError) and target.matches(current):
                return True
            current = current.__cause__
    return False


def errors_matching[TError: ConfigError](
    error: BaseException,
    kind: type[TError],
) -> list[TError]:
    """Return the leaf errors of ``error`` that are instances of ``kind``.

    Returns
    -------
    list[TError]
        Matching leaves, in encounter order.
    """
    return [leaf for leaf in iter_leaf_errors(error) if isinstance(leaf, kind)]


__all__ = [
    "BoundError",
    "ConfigError",
    "ConfigErrorGroup",
    "InvalidError",
    "RequiredError",
    "UnmarshalError",
    "error_matches",
    "errors_matching",
    "iter_leaf_errors",
    "join_errors",
    "raise_joined",
]
