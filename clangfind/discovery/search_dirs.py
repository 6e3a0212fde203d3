# SPDX-License-Identifier: MIT
"""Search directories and their sources.

Directories are merged from several sources in a fixed priority order:
explicit overrides, the directory reported by llvm-config, the loader
path from the environment, the platform's well-known install locations
and, finally, locations reported by the platform's SDK query mechanism.
"""

from __future__ import annotations

import glob
import logging
import os
import subprocess
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from clangfind.configure.platform import Platform

logger = logging.getLogger(__name__)


class DirectorySource(IntEnum):
    """Where a search directory came from; lower values are probed first."""

    EXPLICIT = 0
    ORACLE = 1
    ENVIRONMENT = 2
    PLATFORM = 3
    SDK = 4


@dataclass(frozen=True)
class SearchDirectory:
    """A directory believed to contain libraries.

    Attributes:
        path: The directory path.
        source: Where the directory came from.
    """

    path: Path
    source: DirectorySource

    def __str__(self) -> str:
        return f"{self.path} ({self.source.name.lower()})"


DEFAULT_DIRECTORIES: dict[str, tuple[str, ...]] = {
    "linux": (
        "/usr/local/llvm*/lib*",
        "/usr/local/lib*/*/*",
        "/usr/lib*/*/*",
        "/usr/lib*/*",
        "/usr/lib*",
    ),
    "darwin": (
        "/usr/local/opt/llvm*/lib/llvm*/lib",
        "/Library/Developer/CommandLineTools/usr/lib",
        "/Applications/Xcode.app/Contents/Developer/Toolchains/XcodeDefault.xctoolchain/usr/lib",
        "/usr/local/opt/llvm*/lib",
        "/opt/homebrew/opt/llvm*/lib",
    ),
    "windows": (
        r"C:\Program Files*\LLVM\lib",
        r"C:\LLVM\lib",
        r"C:\Program Files*\CastXML\bin",
        r"C:\msys*\MinGW*\lib",
        r"C:\msys*\clang*\lib",
    ),
    "freebsd": ("/usr/local/llvm*/lib*",),
    "illumos": ("/opt/ooce/llvm-*/lib", "/opt/ooce/clang-*/lib"),
    "haiku": (
        "/boot/home/config/non-packaged/develop/lib",
        "/boot/system/develop/lib",
    ),
}


def default_patterns(platform: Platform) -> tuple[str, ...]:
    """Get the well-known install location patterns for a platform."""
    if platform.os in DEFAULT_DIRECTORIES:
        return DEFAULT_DIRECTORIES[platform.os]
    return DEFAULT_DIRECTORIES["linux"] if platform.family == "elf" else ()


def expand_pattern(pattern: str) -> list[Path]:
    """Expand a glob pattern into existing directories, sorted by path."""
    if not any(c in pattern for c in "*?["):
        return [Path(pattern)] if os.path.isdir(pattern) else []
    return [Path(p) for p in sorted(glob.glob(pattern)) if os.path.isdir(p)]


def platform_directories(platform: Platform) -> list[Path]:
    """Expand the platform's default install locations."""
    result: list[Path] = []
    for pattern in default_patterns(platform):
        result.extend(expand_pattern(pattern))
    return result


def environment_directories(
    platform: Platform, loader_dirs: Iterable[Path] = ()
) -> list[Path]:
    """Get the loader search directories (ELF hosts only).

    Args:
        platform: Target platform.
        loader_dirs: Directories resolved from LD_LIBRARY_PATH.
    """
    if platform.family != "elf":
        return []
    return list(loader_dirs)


def _xcode_toolchain_directory() -> Path | None:
    try:
        result = subprocess.run(
            ["xcode-select", "--print-path"],
            capture_output=True,
            text=True,
        )
    except OSError:
        return None
    if result.returncode != 0 or not result.stdout.strip():
        return None
    developer = Path(result.stdout.strip())
    return developer / "Toolchains" / "XcodeDefault.xctoolchain" / "usr" / "lib"


def _registry_llvm_directory() -> Path | None:
    try:
        import winreg
    except ImportError:
        return None
    for hive in (winreg.HKEY_LOCAL_MACHINE, winreg.HKEY_CURRENT_USER):
        try:
            with winreg.OpenKey(hive, r"SOFTWARE\LLVM\LLVM") as key:
                value, _ = winreg.QueryValueEx(key, "")
        except OSError:
            continue
        if value:
            return Path(value) / "lib"
    return None


def sdk_directories(platform: Platform) -> list[Path]:
    """Get directories reported by the platform's SDK query mechanism.

    macOS: the active Xcode toolchain from xcode-select.
    Windows: the LLVM install directory recorded in the registry.
    """
    found: Path | None = None
    if platform.is_macos:
        found = _xcode_toolchain_directory()
    elif platform.is_windows:
        found = _registry_llvm_directory()
    if found is None:
        return []
    logger.debug("SDK query reported %s", found)
    return [found]


def merge_directories(
    groups: Iterable[tuple[DirectorySource, Iterable[Path]]],
    *,
    windows_bin_siblings: bool = False,
) -> list[SearchDirectory]:
    """Merge directory groups in order, dropping duplicates.

    A directory seen more than once keeps only its first (highest priority)
    occurrence.

    Args:
        groups: (source, directories) pairs in priority order.
        windows_bin_siblings: Also add the sibling 'bin' of every 'lib'
            directory, where Windows installers put the DLL.

    Returns:
        Search directories in probe order.
    """
    seen: set[str] = set()
    merged: list[SearchDirectory] = []

    def add(path: Path, source: DirectorySource) -> None:
        key = os.path.normcase(os.path.abspath(path))
        if key in seen:
            return
        seen.add(key)
        merged.append(SearchDirectory(path, source))

    for source, paths in groups:
        for path in paths:
            add(path, source)
            if windows_bin_siblings and path.name.lower() == "lib":
                add(path.parent / "bin", source)
    return merged


DirectoryProvider = Callable[[Platform], list[Path]]


def collect_search_directories(
    platform: Platform,
    *,
    explicit: Iterable[Path] = (),
    oracle: Path | None = None,
    loader_dirs: Iterable[Path] = (),
    include_environment: bool = True,
    include_defaults: bool = True,
    defaults: DirectoryProvider = platform_directories,
    sdk: DirectoryProvider = sdk_directories,
) -> list[SearchDirectory]:
    """Build the merged search directory list for a discovery run.

    Args:
        platform: Target platform.
        explicit: Directories from overrides, most specific first.
        oracle: Library directory reported by llvm-config, if any.
        loader_dirs: Directories resolved from LD_LIBRARY_PATH.
        include_environment: Include loader path directories.
        include_defaults: Include platform and SDK locations.
        defaults: Provider of the platform's default directories.
        sdk: Provider of SDK-query directories.

    Returns:
        Search directories in probe order.
    """
    groups: list[tuple[DirectorySource, Iterable[Path]]] = [
        (DirectorySource.EXPLICIT, list(explicit)),
        (DirectorySource.ORACLE, [oracle] if oracle is not None else []),
    ]
    if include_environment:
        loader = environment_directories(platform, loader_dirs)
        groups.append((DirectorySource.ENVIRONMENT, loader))
    if include_defaults:
        groups.append((DirectorySource.PLATFORM, defaults(platform)))
        groups.append((DirectorySource.SDK, sdk(platform)))
    return merge_directories(groups, windows_bin_siblings=platform.is_windows)
