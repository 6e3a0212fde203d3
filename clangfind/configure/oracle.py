# SPDX-License-Identifier: MIT
"""Query adapter for llvm-config.

llvm-config is an optional oracle: when present it reports the installed
version, library and include directories and the static component list.
Every query returns None on any failure (missing executable, non-zero exit,
unparsable output, or an installation older than the supported minimum),
and each query runs on its own so one failure never invalidates another.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from enum import Enum
from pathlib import Path, PureWindowsPath

from clangfind.configure.platform import Platform, get_platform
from clangfind.core.errors import OracleUnavailableError, OracleVersionTooOldError
from clangfind.discovery.version import VersionTuple, parse_version

logger = logging.getLogger(__name__)

# Oldest Clang release with the C API surface this package links against.
MIN_VERSION = VersionTuple((3, 5))


class OracleQuery(Enum):
    """The fixed llvm-config query vocabulary."""

    VERSION = ("--version",)
    LIBDIR = ("--libdir",)
    INCLUDEDIR = ("--includedir",)
    COMPONENT_NAMES = ("--libs", "--link-static")
    SYSTEM_LIBS = ("--system-libs", "--link-static")

    @property
    def flags(self) -> tuple[str, ...]:
        return self.value


def parse_library_tokens(output: str) -> list[str]:
    """Parse llvm-config library output into library names.

    '-lLLVMCore' -> 'LLVMCore', 'LLVMCore.lib' (or a full path to it) ->
    'LLVMCore'. Absolute paths to other library files are kept verbatim so
    the emitter can pass them to the linker unchanged. Order is preserved.
    """
    names: list[str] = []
    for token in output.split():
        if token.startswith("-l"):
            name = token[2:]
        elif token.lower().endswith(".lib"):
            name = PureWindowsPath(token).stem
        else:
            name = token
        if name:
            names.append(name)
    return names


def component_name(token: str, platform: Platform) -> str:
    """Reduce a library token from '--libs' to a component name.

    Some llvm-config builds print full archive paths instead of '-l' flags;
    '/usr/lib/llvm-17/lib/libLLVMCore.a' -> 'LLVMCore'. Bare names pass
    through unchanged.
    """
    name = PureWindowsPath(token).name
    suffix = platform.static_lib_suffix
    if not name.endswith(suffix):
        return name
    name = name[: len(name) - len(suffix)]
    prefix = platform.static_lib_prefix
    if prefix and name.startswith(prefix):
        name = name[len(prefix) :]
    return name


class LlvmConfig:
    """Adapter around an llvm-config executable.

    The executable is the explicit override when given, otherwise the
    platform's default name resolved through PATH.

    Example:
        oracle = LlvmConfig.locate(explicit=None)
        libdir = oracle.libdir()
        if libdir is None:
            ...  # fall back to probing the filesystem
    """

    def __init__(
        self,
        executable: Path | None,
        *,
        min_version: VersionTuple = MIN_VERSION,
        platform: Platform | None = None,
    ) -> None:
        self.executable = executable
        self.min_version = min_version
        self.platform = platform or get_platform()
        self._checked: bool | None = None
        self._version: VersionTuple | None = None

    @classmethod
    def locate(
        cls,
        explicit: Path | None = None,
        *,
        platform: Platform | None = None,
        min_version: VersionTuple = MIN_VERSION,
    ) -> LlvmConfig:
        """Resolve the llvm-config executable.

        Args:
            explicit: Path from LLVM_CONFIG_PATH, if set.
            platform: Target platform (default: host).
            min_version: Oldest accepted llvm-config version.

        Returns:
            An adapter; its executable is None if nothing was found.
        """
        platform = platform or get_platform()
        if explicit is not None:
            return cls(explicit, min_version=min_version, platform=platform)
        found = shutil.which("llvm-config" + platform.exe_suffix)
        return cls(
            Path(found) if found else None,
            min_version=min_version,
            platform=platform,
        )

    def _run(self, *args: str) -> str:
        """Run llvm-config and return its output with trailing whitespace removed."""
        if self.executable is None:
            raise OracleUnavailableError("llvm-config not found")
        cmd = [str(self.executable), *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise OracleUnavailableError(
                f"failed to run {self.executable}: {e}"
            ) from e
        if result.returncode != 0:
            raise OracleUnavailableError(
                f"{' '.join(cmd)} exited with status {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout.rstrip()

    def _ensure_supported(self) -> None:
        if self._checked is True:
            return
        if self._checked is False:
            raise OracleUnavailableError("llvm-config is unavailable")
        self._checked = False
        output = self._run(*OracleQuery.VERSION.flags)
        version = parse_version(output)
        if version is None:
            raise OracleUnavailableError(f"unparsable llvm-config version: {output!r}")
        if version < self.min_version:
            raise OracleVersionTooOldError(str(version), str(self.min_version))
        self._version = version
        self._checked = True

    def query(self, query: OracleQuery, *extra: str) -> str | None:
        """Run one query and return its raw output.

        Args:
            query: The query to run.
            extra: Additional arguments (e.g., component names).

        Returns:
            The output with trailing whitespace removed, or None on failure.
        """
        try:
            self._ensure_supported()
            output = self._run(*query.flags, *extra)
        except OracleUnavailableError as e:
            logger.info("llvm-config unavailable for %s: %s", query.flags[0], e.message)
            return None
        return output

    def version(self) -> VersionTuple | None:
        """Get the installed LLVM version."""
        try:
            self._ensure_supported()
        except OracleUnavailableError as e:
            logger.info("llvm-config unavailable for --version: %s", e.message)
            return None
        return self._version

    def _path_query(self, query: OracleQuery) -> Path | None:
        output = self.query(query)
        if not output:
            return None
        return Path(output.splitlines()[0].strip())

    def libdir(self) -> Path | None:
        """Get the directory holding the LLVM/Clang libraries."""
        return self._path_query(OracleQuery.LIBDIR)

    def includedir(self) -> Path | None:
        """Get the directory holding the LLVM/Clang headers."""
        return self._path_query(OracleQuery.INCLUDEDIR)

    def component_names(self) -> list[str] | None:
        """Get the LLVM static libraries, dependents first."""
        output = self.query(OracleQuery.COMPONENT_NAMES)
        if output is None:
            return None
        return [
            component_name(token, self.platform)
            for token in parse_library_tokens(output)
        ]

    def system_libs(self, *components: str) -> list[str] | None:
        """Get the system libraries required by the given components (default: all)."""
        output = self.query(OracleQuery.SYSTEM_LIBS, *components)
        if output is None:
            return None
        return parse_library_tokens(output)

    def __repr__(self) -> str:
        return f"LlvmConfig({str(self.executable) if self.executable else None!r})"
