# SPDX-License-Identifier: MIT
"""Filesystem probe.

Scans search directories (non-recursively) for files matching the
platform's naming templates. Missing or unreadable directories are
skipped: most default locations do not exist on any given machine.
"""

from __future__ import annotations

import logging
import os
import struct
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from clangfind.configure.platform import Platform
from clangfind.discovery.search_dirs import DirectorySource, SearchDirectory
from clangfind.discovery.templates import LibraryKind, NamingTemplate
from clangfind.discovery.version import (
    VersionTuple,
    parse_version,
    version_from_directory,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LibraryCandidate:
    """A discovered library file.

    Attributes:
        path: Path to the file.
        kind: How the linker consumes the file.
        form: Name form of the template that matched.
        form_rank: Position of that template in the platform table (0 = preferred).
        parsed_version: Version parsed from the filename, if any.
        directory_version: Version found in the install directory name, if any.
        source: Source of the directory the file was found in.
        order: Position in discovery order (directory order, then name).
    """

    path: Path
    kind: LibraryKind
    form: str
    form_rank: int = 0
    parsed_version: VersionTuple | None = None
    directory_version: VersionTuple | None = None
    source: DirectorySource = DirectorySource.EXPLICIT
    order: int = 0

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def version_label(self) -> str:
        return str(self.parsed_version) if self.parsed_version else "unversioned"


@dataclass
class ProbeResult:
    """Outcome of probing a set of directories.

    Attributes:
        candidates: Usable candidates in discovery order.
        rejected: (path, reason) pairs for matching files that were unusable.
        directories: Every directory that was probed, in order.
        forced: True if the result came from a forced file override.
    """

    candidates: list[LibraryCandidate] = field(default_factory=list)
    rejected: list[tuple[Path, str]] = field(default_factory=list)
    directories: list[Path] = field(default_factory=list)
    forced: bool = False


def _list_directory(path: Path) -> list[str]:
    try:
        names = os.listdir(path)
    except OSError as e:
        logger.debug("Skipping %s: %s", path, e.strerror or e)
        return []
    return sorted(names)


def library_pointer_width(path: Path) -> int | None:
    """Read the pointer width (32 or 64) from a library's header.

    Understands ELF, PE and Mach-O headers.

    Returns:
        The pointer width, or None if the format is unknown or unreadable.
    """
    try:
        with open(path, "rb") as f:
            header = f.read(64)
            if header[:4] == b"\x7fELF" and len(header) > 4:
                return {1: 32, 2: 64}.get(header[4])
            if header[:4] in (b"\xcf\xfa\xed\xfe", b"\xfe\xed\xfa\xcf"):
                return 64
            if header[:4] in (b"\xce\xfa\xed\xfe", b"\xfe\xed\xfa\xce"):
                return 32
            if header[:2] == b"MZ" and len(header) >= 0x40:
                (pe_offset,) = struct.unpack_from("<I", header, 0x3C)
                f.seek(pe_offset)
                pe = f.read(6)
                if len(pe) == 6 and pe[:4] == b"PE\0\0":
                    (machine,) = struct.unpack_from("<H", pe, 4)
                    return {0x14C: 32, 0x1C4: 32, 0x8664: 64, 0xAA64: 64}.get(
                        machine
                    )
    except OSError:
        return None
    return None


def validate_candidate(path: Path, kind: LibraryKind, platform: Platform) -> str | None:
    """Check a runtime library's pointer width against the target.

    Returns:
        A rejection reason, or None if the file is usable.
    """
    if kind is not LibraryKind.DYNAMIC:
        return None
    width = library_pointer_width(path)
    expected = 64 if platform.is_64bit else 32
    if width is not None and width != expected:
        return f"invalid: {width}-bit library, expected {expected}-bit"
    return None


def match_file(
    path: Path, templates: Sequence[NamingTemplate]
) -> tuple[int, NamingTemplate, VersionTuple | None] | None:
    """Match a filename against templates, first match wins."""
    for rank, template in enumerate(templates):
        match = template.match(path.name)
        if match is None:
            continue
        version_text = match.groupdict().get("version")
        version = parse_version(version_text) if version_text else None
        return rank, template, version
    return None


def probe_directories(
    directories: Iterable[SearchDirectory],
    templates: Sequence[NamingTemplate],
    platform: Platform,
) -> ProbeResult:
    """Scan directories for files matching the templates.

    Directory entries are sorted by name so the result never depends on
    the order the filesystem returns them in.

    Args:
        directories: Directories to scan, in priority order.
        templates: Filename templates, preferred first.
        platform: Target platform (for header validation).

    Returns:
        The candidates and rejections found.
    """
    result = ProbeResult()
    seen: set[Path] = set()
    for directory in directories:
        result.directories.append(directory.path)
        for name in _list_directory(directory.path):
            path = directory.path / name
            if path in seen or not path.is_file():
                continue
            matched = match_file(path, templates)
            if matched is None:
                continue
            seen.add(path)
            rank, template, version = matched
            reason = validate_candidate(path, template.kind, platform)
            if reason is not None:
                logger.info("Rejecting %s: %s", path, reason)
                result.rejected.append((path, reason))
                continue
            candidate = LibraryCandidate(
                path=path,
                kind=template.kind,
                form=template.form,
                form_rank=rank,
                parsed_version=version,
                directory_version=version_from_directory(path),
                source=directory.source,
                order=len(result.candidates),
            )
            logger.debug("Found candidate %s (%s)", path, candidate.version_label)
            result.candidates.append(candidate)
    return result


def probe_forced_file(
    path: Path, templates: Sequence[NamingTemplate], platform: Platform
) -> ProbeResult:
    """Build a single-candidate result for an exact file override.

    The file is used even if its name matches no template; the template
    match only supplies its kind and version.
    """
    matched = match_file(path, templates)
    if matched is None:
        kind = LibraryKind.DYNAMIC
        if path.name.lower().endswith((".lib", ".dll.a")):
            kind = LibraryKind.IMPORT
        candidate = LibraryCandidate(path=path, kind=kind, form="forced")
    else:
        rank, template, version = matched
        candidate = LibraryCandidate(
            path=path,
            kind=template.kind,
            form=template.form,
            form_rank=rank,
            parsed_version=version,
        )
    reason = validate_candidate(path, candidate.kind, platform)
    if reason is not None:
        logger.warning("Using %s despite header check: %s", path, reason)
    return ProbeResult(
        candidates=[candidate], directories=[path.parent], forced=True
    )
