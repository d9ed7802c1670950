"""Environment variable lookups used during configuration."""

from __future__ import annotations

import logging
import os
from pathlib import Path

_LOGGER = logging.getLogger(__name__)


def env_value(name: str) -> str | None:
    """Return stripped env var value, or None if empty/not set.

    Returns
    -------
    str | None
        Stripped value or None.
    """
    raw = os.environ.get(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped if stripped else None


def env_text(
    name: str,
    *,
    default: str | None = None,
    strip: bool = True,
    allow_empty: bool = False,
) -> str | None:
    """Return an environment variable string with optional normalization.

    Substitution into configuration documents reads values verbatim, so it
    passes ``strip=False`` and ``allow_empty=True``.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Returned when the variable is unset, or empty and ``allow_empty`` is
        false.
    strip
        Whether to strip surrounding whitespace.
    allow_empty
        Whether an empty value is returned as-is.

    Returns
    -------
    str | None
        Value, or ``default`` when missing.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip() if strip else raw
    if not value and not allow_empty:
        return default
    return value


def env_path(name: str) -> Path | None:
    """Parse an environment variable as a configuration file path.

    Returns
    -------
    Path | None
        User-expanded path, or None when unset or empty.
    """
    raw = env_value(name)
    if raw is None:
        return None
    path = Path(raw).expanduser()
    _LOGGER.debug("Resolved %s to %s", name, path)
    return path


__all__ = ["env_path", "env_text", "env_value"]
