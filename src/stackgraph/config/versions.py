"""
Dotted version parsing and comparison.

Tools versions ("5.9") and platform versions ("14", "17.2") are compared
numerically component by component, with missing components treated as 0.
"""

import re
from typing import Tuple

_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")


def parse_version(value: str) -> Tuple[int, ...]:
    """Parse a dotted version string into a tuple of integers.

    Args:
        value: Version string (e.g., "5.9", "14.0.1")

    Returns:
        Tuple of version components with trailing zeros removed

    Raises:
        ValueError: If the value is not a dotted numeric version

    Example:
        >>> parse_version("5.9")
        (5, 9)
        >>> parse_version("14.0")
        (14,)
    """
    text = str(value).strip()
    if text.lower().startswith("v"):
        text = text[1:]
    if not _VERSION_RE.match(text):
        raise ValueError(f"Invalid version: '{value}'")

    parts = [int(part) for part in text.split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def format_version(version: Tuple[int, ...]) -> str:
    """Format a version tuple as a dotted string (always at least major.minor)."""
    parts = list(version)
    if len(parts) < 2:
        parts.append(0)
    return ".".join(str(part) for part in parts)
