"""Shared type aliases and small typing helpers."""

from __future__ import annotations

from pathlib import Path

type PathLike = str | Path

type AttributeScalar = str | bool | int | float
type AttributeValue = (
    AttributeScalar
    | tuple[str, ...]
    | tuple[bool, ...]
    | tuple[int, ...]
    | tuple[float, ...]
)


def ensure_path(value: PathLike) -> Path:
    """Return a user-expanded Path for the provided string or Path value.

    Returns
    -------
    Path
        Normalized Path instance.
    """
    path = value if isinstance(value, Path) else Path(value)
    return path.expanduser()


__all__ = [
    "AttributeScalar",
    "AttributeValue",
    "PathLike",
    "ensure_path",
]
