"""
Helper utilities for the file ingestion pipeline.

Common functions used across domains.
"""

import locale
from pathlib import Path
from typing import Optional

# Characters removed by trim_value: ASCII control characters and space.
_TRIM_CHARS = "".join(chr(c) for c in range(0x21))


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""

    try:
        return path.expanduser().resolve()
    except FileNotFoundError:
        return path.expanduser().absolute()


def normalise_extension(extension: str) -> str:
    """Return ``extension`` with a leading dot."""
    if not extension.startswith('.'):
        extension = '.' + extension
    return extension


def platform_encoding(charset: Optional[str] = None) -> str:
    """Resolve an optional charset name to the platform default."""
    return charset or locale.getpreferredencoding(False)


def trim_value(value: str) -> str:
    """Strip surrounding spaces and control characters (NUL padding included)."""
    return value.strip(_TRIM_CHARS)
