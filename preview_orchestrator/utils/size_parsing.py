"""
Size parsing utilities for container configuration.

Converts human-readable sizes into values the Kubernetes API understands:
- Memory limits: "512m" -> 536870912 (bytes)
- Storage sizes: "10g" -> "10Gi" (quantity string)

The last character of the input is the unit candidate. Recognized units are
k, m and g (case-insensitive). A trailing digit means the input carries no
unit at all.
"""

import re
from typing import Tuple

DEFAULT_STORAGE_SIZE = "1Gi"

_MEMORY_EXPONENTS = {"k": 1, "m": 2, "g": 3}
_STORAGE_SUFFIXES = {"k": "Ki", "m": "Mi", "g": "Gi"}
_NUMBER = re.compile(r"[0-9]+")


class InvalidSizeFormat(ValueError):
    """Raised when a size string is not a number followed by an optional unit."""
    pass


def _split_unit(value: str) -> Tuple[str, str]:
    if not value:
        raise InvalidSizeFormat("Size must not be empty")

    if value[-1].isdigit():
        number, unit = value, ""
    else:
        number, unit = value[:-1], value[-1].lower()

    if not _NUMBER.fullmatch(number):
        raise InvalidSizeFormat(f"Invalid size format: '{value}'")

    return number, unit


def parse_memory_limit(value: str) -> int:
    """
    Parse a memory limit into bytes.

    Args:
        value: Size string such as "512m", "1G" or "1024"

    Returns:
        Number of bytes

    Raises:
        InvalidSizeFormat: If the numeric part is not an unsigned integer

    Examples:
        >>> parse_memory_limit("10M")
        10485760
        >>> parse_memory_limit("5")
        5
    """
    number, unit = _split_unit(value)
    return int(number) * 1024 ** _MEMORY_EXPONENTS.get(unit, 0)


def parse_storage_size(value: str) -> str:
    """
    Parse a storage size into a Kubernetes binary quantity.

    No numeric conversion happens; the unit letter is mapped onto the
    matching binary suffix and unknown units are dropped.

    Examples:
        >>> parse_storage_size("10M")
        '10Mi'
        >>> parse_storage_size("2g")
        '2Gi'
    """
    number, unit = _split_unit(value)
    return f"{number}{_STORAGE_SUFFIXES.get(unit, '')}"
