# SPDX-License-Identifier: MIT
"""Link plan synthesis.

A LinkPlan is the ordered set of directives a consumer build needs to link
against libclang, either as one shared library or as the full graph of
Clang and LLVM static archives.

Static archives can reference each other in both directions, and a
single-pass linker only resolves symbols against archives that come later
on the command line. Rather than computing a dependency order, the plan
either wraps all archives in one archive group (for linkers that rescan
groups) or lists them twice in a row.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from clangfind.configure.platform import Platform
from clangfind.core.errors import MissingStaticComponentError
from clangfind.discovery.probe import LibraryCandidate
from clangfind.discovery.templates import LibraryKind, static_archive_name

logger = logging.getLogger(__name__)


class ArchiveStrategy(Enum):
    """How static archives with circular references are emitted."""

    GROUP = "group"
    REPEAT = "repeat"


@dataclass(frozen=True)
class ComponentSpec:
    """A static component and the system libraries it needs.

    Attributes:
        name: Library name without prefix or suffix (e.g., 'clangAST').
        system_libs: System libraries required by this component.
    """

    name: str
    system_libs: tuple[str, ...] = ()


@dataclass(frozen=True)
class LinkDirective:
    """One library to link.

    Attributes:
        name: Library name without prefix/suffix, or an absolute path
            that is passed to the linker verbatim.
        directory: Directory holding the library, if known.
        kind: How the library is consumed.
    """

    name: str
    directory: Path | None = None
    kind: LibraryKind = LibraryKind.DYNAMIC

    @property
    def is_path(self) -> bool:
        return Path(self.name).is_absolute()


@dataclass(frozen=True)
class ArchiveGroup:
    """Static archives the linker rescans until no new symbols resolve."""

    members: tuple[LinkDirective, ...]

    @property
    def names(self) -> list[str]:
        return [m.name for m in self.members]


LinkEntry = LinkDirective | ArchiveGroup


@dataclass
class LinkPlan:
    """Everything a consumer needs to link.

    Attributes:
        search_dirs: Library search directories, in order.
        link: Library directives (or one archive group), in link order.
        system: System and runtime libraries, after all components.
        runtime_dir: Directory the shared library is loaded from at run
            time, when it differs from the link directory (Windows DLLs).
        include_dir: Header directory reported by llvm-config, if any.
        static: True for a static plan.
    """

    search_dirs: list[Path] = field(default_factory=list)
    link: list[LinkEntry] = field(default_factory=list)
    system: list[LinkDirective] = field(default_factory=list)
    runtime_dir: Path | None = None
    include_dir: Path | None = None
    static: bool = False

    def names(self) -> list[str | list[str]]:
        """Get the link sequence as names; a group becomes a nested list."""
        result: list[str | list[str]] = []
        for entry in self.link:
            if isinstance(entry, ArchiveGroup):
                result.append(entry.names)
            else:
                result.append(entry.name)
        result.extend(d.name for d in self.system)
        return result


def supports_archive_groups(platform: Platform) -> bool:
    """Whether the platform's default linker understands archive groups.

    GNU ld, gold and lld in ELF mode do; Apple's ld64 and MSVC link.exe
    rescan archives on their own and reject the group flags.
    """
    return platform.family == "elf"


# The C++ runtime and zlib, which LLVM's support library always uses when
# built on these systems. MSVC links its runtime implicitly.
RUNTIME_LIBRARIES: dict[str, tuple[str, ...]] = {
    "darwin": ("c++", "z"),
    "freebsd": ("c++", "z"),
    "windows": (),
}


def runtime_libraries(platform: Platform) -> tuple[str, ...]:
    """Get the runtime libraries a static libclang always needs."""
    return RUNTIME_LIBRARIES.get(platform.os, ("stdc++", "z"))


def _dedupe(names: Iterable[str], exclude: Iterable[str] = ()) -> list[str]:
    seen = set(exclude)
    result: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


def _unique_dirs(dirs: Iterable[Path]) -> list[Path]:
    result: list[Path] = []
    for d in dirs:
        if d not in result:
            result.append(d)
    return result


def find_import_library(dll: Path) -> Path | None:
    """Find the import library that goes with a Windows DLL.

    Looks next to the DLL, then in the sibling 'lib' directory.
    """
    names = [f"{dll.stem}.lib", f"lib{dll.stem}.lib", f"{dll.name}.a"]
    for directory in (dll.parent, dll.parent.parent / "lib"):
        for name in names:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def library_link_name(path: Path, platform: Platform) -> str:
    """Get the name a linker uses for a library file.

    'libclang.so.14' -> 'clang', 'libclang-14.so.1' -> 'clang-14',
    'libclang.lib' -> 'libclang', 'libclang.dll.a' -> 'clang'.
    """
    name = path.name
    if platform.is_windows:
        if name.lower().endswith(".dll.a"):
            name = name[: -len(".dll.a")]
            return name[3:] if name.startswith("lib") else name
        return path.stem
    name = name.split(platform.shared_lib_suffix, 1)[0]
    if name.startswith("lib"):
        name = name[3:]
    if platform.is_macos and "." in name:
        name = name.split(".", 1)[0]
    return name


def synthesize_dynamic(
    candidate: LibraryCandidate,
    platform: Platform,
    *,
    include_dir: Path | None = None,
) -> LinkPlan:
    """Build the plan for linking against the selected shared library.

    On Linux a versioned file such as 'libclang.so.14' has no '-lclang'
    name a linker would find, so the full path is linked instead.

    Args:
        candidate: The selected library.
        platform: Target platform.
        include_dir: Header directory to carry along, if known.

    Returns:
        A plan with one search directory and one library directive.
    """
    path = candidate.path
    runtime_dir: Path | None = None
    if platform.is_windows and candidate.kind is LibraryKind.DYNAMIC:
        import_lib = find_import_library(path)
        if import_lib is not None:
            logger.debug("Using import library %s for %s", import_lib, path)
            runtime_dir = path.parent
            path = import_lib
        else:
            logger.info("No import library for %s; linking the DLL directly", path)

    name = library_link_name(path, platform)
    kind = LibraryKind.IMPORT if path != candidate.path else candidate.kind
    linkable = platform.is_windows or path.name == (
        f"{platform.shared_lib_prefix}{name}{platform.shared_lib_suffix}"
    )
    directive = LinkDirective(
        name if linkable else str(path.absolute()), path.parent, kind
    )
    if runtime_dir is not None and runtime_dir == path.parent:
        runtime_dir = None
    return LinkPlan(
        search_dirs=[path.parent],
        link=[directive],
        runtime_dir=runtime_dir,
        include_dir=include_dir,
    )


def index_archives(
    candidates: Iterable[LibraryCandidate], platform: Platform
) -> dict[str, LibraryCandidate]:
    """Map component names to archives; the first archive for a name wins."""
    prefix = platform.static_lib_prefix
    suffix = platform.static_lib_suffix
    index: dict[str, LibraryCandidate] = {}
    for candidate in candidates:
        if candidate.kind is not LibraryKind.STATIC:
            continue
        name = candidate.path.name
        if not (name.startswith(prefix) and name.endswith(suffix)):
            continue
        index.setdefault(name[len(prefix) : len(name) - len(suffix)], candidate)
    return index


def _collapse_adjacent(entries: list[LinkDirective]) -> list[LinkDirective]:
    result: list[LinkDirective] = []
    for entry in entries:
        if not result or result[-1] != entry:
            result.append(entry)
    return result


def synthesize_static(
    components: Sequence[ComponentSpec],
    archives: Mapping[str, LibraryCandidate],
    platform: Platform,
    *,
    group_archives: bool,
    runtime_libs: Sequence[str] = (),
    directories: Sequence[Path] = (),
    include_dir: Path | None = None,
) -> LinkPlan:
    """Build the plan for linking every component statically.

    Args:
        components: Components in link order.
        archives: Discovered archives keyed by component name.
        platform: Target platform.
        group_archives: True if the consumer's linker supports archive
            groups; otherwise the component list is emitted twice.
        runtime_libs: Runtime libraries appended last.
        directories: Directories searched for archives (for diagnostics).
        include_dir: Header directory to carry along, if known.

    Returns:
        The static link plan.

    Raises:
        MissingStaticComponentError: If a component has no archive.
    """
    directives: list[LinkDirective] = []
    for component in _dedupe_components(components):
        archive = archives.get(component.name)
        if archive is None:
            raise MissingStaticComponentError(
                component.name,
                directories,
                static_archive_name(component.name, platform),
            )
        directives.append(
            LinkDirective(component.name, archive.directory, LibraryKind.STATIC)
        )

    strategy = ArchiveStrategy.GROUP if group_archives else ArchiveStrategy.REPEAT
    link: list[LinkEntry]
    if strategy is ArchiveStrategy.GROUP and len(directives) > 1:
        link = [ArchiveGroup(tuple(directives))]
    elif strategy is ArchiveStrategy.REPEAT:
        link = list(_collapse_adjacent(directives + directives))
    else:
        link = list(directives)
    logger.debug(
        "Static plan: %d components, strategy %s", len(directives), strategy.value
    )

    component_names = [d.name for d in directives]
    system_names = _dedupe(
        (lib for c in components for lib in c.system_libs), exclude=component_names
    )
    runtime_names = _dedupe(runtime_libs, exclude=[*component_names, *system_names])
    system = [LinkDirective(n, kind=LibraryKind.DYNAMIC) for n in system_names]
    system.extend(LinkDirective(n, kind=LibraryKind.DYNAMIC) for n in runtime_names)

    return LinkPlan(
        search_dirs=_unique_dirs(d.directory for d in directives if d.directory),
        link=link,
        system=system,
        include_dir=include_dir,
        static=True,
    )


def _dedupe_components(components: Sequence[ComponentSpec]) -> list[ComponentSpec]:
    seen: set[str] = set()
    result: list[ComponentSpec] = []
    for component in components:
        if component.name not in seen:
            seen.add(component.name)
            result.append(component)
    return result
