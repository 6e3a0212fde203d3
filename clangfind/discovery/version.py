# SPDX-License-Identifier: MIT
"""Numeric version tuples.

Versions compare component-wise as integers ("10" ranks above "9"),
missing trailing components count as zero, and between otherwise equal
versions the one with more components present ranks higher, so 14.0
outranks 14.
"""

from __future__ import annotations

import re
from functools import total_ordering
from pathlib import PurePath

_LEADING_VERSION_RE = re.compile(r"\d+(?:\.\d+)*")

# Version embedded in an install directory name: llvm-14, llvm@15, llvm18, clang-17.
_DIR_VERSION_RE = re.compile(r"^(?:llvm|clang)[-@_]?(\d+(?:\.\d+)*)$", re.IGNORECASE)


@total_ordering
class VersionTuple:
    """An ordered sequence of non-negative integers.

    Attributes:
        parts: The integer components, most significant first.
    """

    __slots__ = ("parts",)

    def __init__(self, parts: tuple[int, ...] | list[int]) -> None:
        parts = tuple(parts)
        if not parts:
            raise ValueError("a version needs at least one component")
        if any(p < 0 for p in parts):
            raise ValueError(f"negative version component in {parts}")
        self.parts = parts

    def _key(self, width: int) -> tuple[tuple[int, ...], int]:
        padded = self.parts + (0,) * (width - len(self.parts))
        return padded, len(self.parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionTuple):
            return NotImplemented
        return self.parts == other.parts

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionTuple):
            return NotImplemented
        width = max(len(self.parts), len(other.parts))
        return self._key(width) < other._key(width)

    def __hash__(self) -> int:
        return hash(self.parts)

    def __str__(self) -> str:
        return ".".join(str(p) for p in self.parts)

    def __repr__(self) -> str:
        return f"VersionTuple({self})"


def parse_version(text: str) -> VersionTuple | None:
    """Parse the leading dotted numeric run of a version string.

    Trailing vendor text is ignored: '14.0.0-1ubuntu1' and '18.1.3git' parse
    as 14.0.0 and 18.1.3.

    Returns:
        The version, or None if the text does not start with a digit.
    """
    match = _LEADING_VERSION_RE.match(text.strip())
    if match is None:
        return None
    return VersionTuple([int(p) for p in match.group(0).split(".")])


def version_from_directory(path: PurePath) -> VersionTuple | None:
    """Find a version in the install directories above a library.

    Looks at each parent directory name, nearest first, for the llvm-N /
    llvm@N / clang-N conventions used by distribution packages and Homebrew.
    """
    for parent in path.parents:
        match = _DIR_VERSION_RE.match(parent.name)
        if match:
            return parse_version(match.group(1))
    return None
