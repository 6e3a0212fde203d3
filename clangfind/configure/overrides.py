# SPDX-License-Identifier: MIT
"""User overrides read from the environment.

The Environment Resolver: turns the recognized override variables into
explicit search directories, an optional forced library file and the
llvm-config path. This module is the only place the environment is read;
everything downstream receives the resolved values.

Recognized variables:
    LLVM_CONFIG_PATH: Path to an llvm-config executable.
    LIBCLANG_PATH: Directory (or os.pathsep-separated directories) holding
        the libclang shared library, or the exact path of that library.
    LIBCLANG_STATIC_PATH: Directory (or directories) holding the Clang and
        LLVM static archives.
    LD_LIBRARY_PATH: Loader search path, searched after llvm-config's
        directory on ELF systems.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

LLVM_CONFIG_PATH = "LLVM_CONFIG_PATH"
LIBCLANG_PATH = "LIBCLANG_PATH"
LIBCLANG_STATIC_PATH = "LIBCLANG_STATIC_PATH"

LD_LIBRARY_PATH = "LD_LIBRARY_PATH"

OVERRIDE_NAMES = (LLVM_CONFIG_PATH, LIBCLANG_PATH, LIBCLANG_STATIC_PATH)

# Every variable this package reads.
ENVIRONMENT_NAMES = (*OVERRIDE_NAMES, LD_LIBRARY_PATH)


@dataclass(frozen=True)
class Overrides:
    """Raw override values; None means unset.

    Attributes:
        llvm_config_path: Value of LLVM_CONFIG_PATH.
        libclang_path: Value of LIBCLANG_PATH.
        libclang_static_path: Value of LIBCLANG_STATIC_PATH.
        loader_path: Value of LD_LIBRARY_PATH.
    """

    llvm_config_path: str | None = None
    libclang_path: str | None = None
    libclang_static_path: str | None = None
    loader_path: str | None = None

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> Overrides:
        """Read overrides from an environment mapping (default: os.environ).

        Empty values are treated as unset.
        """
        if environ is None:
            environ = os.environ
        return cls(
            llvm_config_path=environ.get(LLVM_CONFIG_PATH) or None,
            libclang_path=environ.get(LIBCLANG_PATH) or None,
            libclang_static_path=environ.get(LIBCLANG_STATIC_PATH) or None,
            loader_path=environ.get(LD_LIBRARY_PATH) or None,
        )


@dataclass(frozen=True)
class ResolvedOverrides:
    """Overrides classified for the discovery pipeline.

    Attributes:
        dynamic_dirs: Explicit directories for the shared library, in order.
        static_dirs: Explicit directories for static archives, in order.
        forced_file: Exact library file named by LIBCLANG_PATH, if any.
        llvm_config: Explicit llvm-config path, if any.
        loader_dirs: Directories from LD_LIBRARY_PATH, in order.
        conflict: True if both static and dynamic overrides were supplied.
    """

    dynamic_dirs: tuple[Path, ...] = ()
    static_dirs: tuple[Path, ...] = ()
    forced_file: Path | None = None
    llvm_config: Path | None = None
    loader_dirs: tuple[Path, ...] = ()
    conflict: bool = False

    @property
    def conflicting_names(self) -> list[str]:
        """Override names involved in a conflict (empty if none)."""
        if not self.conflict:
            return []
        return [LIBCLANG_PATH, LIBCLANG_STATIC_PATH]


def _split_paths(value: str | None) -> list[Path]:
    if not value:
        return []
    return [Path(part) for part in value.split(os.pathsep) if part.strip()]


def resolve_overrides(overrides: Overrides) -> ResolvedOverrides:
    """Classify override values into directories and files.

    The first LIBCLANG_PATH entry that names an existing regular file becomes
    the forced file; the remaining entries are kept as directories in the
    order given. Paths that do not exist are kept as directories so they show
    up in diagnostics. Never raises.

    Args:
        overrides: Raw override values.

    Returns:
        The resolved overrides.
    """
    forced_file: Path | None = None
    dynamic_dirs: list[Path] = []
    for path in _split_paths(overrides.libclang_path):
        if forced_file is None and path.is_file():
            forced_file = path
        elif not path.is_file():
            dynamic_dirs.append(path)

    static_dirs = _split_paths(overrides.libclang_static_path)
    llvm_config = (
        Path(overrides.llvm_config_path) if overrides.llvm_config_path else None
    )

    return ResolvedOverrides(
        dynamic_dirs=tuple(dynamic_dirs),
        static_dirs=tuple(static_dirs),
        forced_file=forced_file,
        llvm_config=llvm_config,
        loader_dirs=tuple(_split_paths(overrides.loader_path)),
        conflict=bool(overrides.libclang_path and overrides.libclang_static_path),
    )
