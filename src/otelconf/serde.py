"""msgspec policy shared by the configuration model and the JSON exporters."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

import msgspec


class StructBaseCompat(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=False,
):
    """Base struct for forward-compatible documents that tolerate unknown keys."""


_DEFAULT_ORDER: Literal["deterministic"] = "deterministic"

_VALIDATION_RE = re.compile(r"^(?P<summary>.*?)(?:\s+-\s+at\s+`(?P<path>[^`]+)`)?$")


def _enc_hook(obj: object) -> object:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj).hex()
    raise TypeError


JSON_ENCODER = msgspec.json.Encoder(enc_hook=_enc_hook, order=_DEFAULT_ORDER)


def validation_error_payload(exc: msgspec.ValidationError) -> dict[str, str]:
    """Split a msgspec ValidationError into its summary and document path.

    Parameters
    ----------
    exc
        ValidationError raised while decoding a configuration node.

    Returns
    -------
    dict[str, str]
        Payload with ``type``, ``summary`` and, when msgspec reported one,
        ``path`` (for example ``$.tracer_provider.processors[0]``).
    """
    message = str(exc).strip()
    match = _VALIDATION_RE.match(message)
    payload: dict[str, str] = {"type": exc.__class__.__name__}
    if match is None:
        payload["summary"] = message
        return payload
    summary = (match.group("summary") or "").strip()
    if summary:
        payload["summary"] = summary
    path = match.group("path")
    if path:
        payload["path"] = path
    return payload


def dumps_json(obj: object, *, pretty: bool = False) -> bytes:
    """Serialize an object to JSON bytes with deterministic key order.

    Returns
    -------
    bytes
        JSON payload.
    """
    raw = JSON_ENCODER.encode(obj)
    if not pretty:
        return raw
    return msgspec.json.format(raw, indent=2)


def loads_json_builtins(buf: bytes | str) -> Any:
    """Deserialize JSON into builtin Python objects.

    Returns
    -------
    Any
        Decoded payload.
    """
    return msgspec.json.decode(buf)


def to_builtins(obj: object) -> object:
    """Convert a configuration node into builtin JSON-friendly objects.

    Returns
    -------
    object
        Builtin representation with defaults omitted.
    """
    return msgspec.to_builtins(obj, order=_DEFAULT_ORDER, enc_hook=_enc_hook)


__all__ = [
    "JSON_ENCODER",
    "StructBaseCompat",
    "dumps_json",
    "loads_json_builtins",
    "to_builtins",
    "validation_error_payload",
]
