# SPDX-License-Identifier: MIT
"""Custom exceptions for clangfind.

All clangfind exceptions inherit from ClangFindError. Fatal errors carry
enough state (directories searched, candidates rejected) to let a user fix
their environment without reading the discovery code.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class ClangFindError(Exception):
    """Base class for all clangfind exceptions.

    Attributes:
        message: The error message.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigConflictError(ClangFindError):
    """Mutually exclusive overrides were supplied together.

    Attributes:
        names: The conflicting override names.
    """

    def __init__(self, names: Sequence[str]) -> None:
        self.names = list(names)
        joined = " and ".join(self.names)
        super().__init__(
            f"conflicting overrides: {joined} are both set; "
            "unset one of them (static and dynamic linking are exclusive)"
        )


class OracleUnavailableError(ClangFindError):
    """llvm-config could not be used for a query.

    Never fatal: the oracle adapter absorbs it and callers fall back to
    filesystem probing.
    """


class OracleVersionTooOldError(OracleUnavailableError):
    """llvm-config reported a version below the supported minimum.

    Attributes:
        version: The reported version string.
        minimum: The minimum supported version string.
    """

    def __init__(self, version: str, minimum: str) -> None:
        self.version = version
        self.minimum = minimum
        super().__init__(
            f"llvm-config reports version {version}, "
            f"older than the minimum supported {minimum}"
        )


class NoCandidateFoundError(ClangFindError):
    """No usable library was found in any search directory.

    Attributes:
        library: Name of the library searched for.
        directories: Every directory searched, in search order.
        templates: Every filename template tried.
        rejected: (path, reason) pairs for files that matched but were unusable.
    """

    def __init__(
        self,
        library: str,
        directories: Sequence[Path],
        templates: Sequence[str],
        rejected: Sequence[tuple[Path, str]] = (),
    ) -> None:
        self.library = library
        self.directories = list(directories)
        self.templates = list(templates)
        self.rejected = list(rejected)
        super().__init__(self._describe())

    def _describe(self) -> str:
        lines = [f"couldn't find any valid {self.library} library"]
        lines.append("searched directories:")
        if self.directories:
            lines.extend(f"    {d}" for d in self.directories)
        else:
            lines.append("    (none)")
        lines.append("tried filenames:")
        lines.extend(f"    {t}" for t in self.templates)
        if self.rejected:
            lines.append("rejected candidates:")
            lines.extend(f"    {path}: {reason}" for path, reason in self.rejected)
        lines.append(
            "set LIBCLANG_PATH to the directory (or file) of the library, "
            "or LLVM_CONFIG_PATH to an llvm-config executable"
        )
        return "\n".join(lines)


class MissingStaticComponentError(ClangFindError):
    """A component named for static linking has no archive on disk.

    Attributes:
        component: The component name (e.g., 'clangAST').
        directories: Directories that were searched for its archive.
    """

    def __init__(
        self,
        component: str,
        directories: Sequence[Path],
        archive_name: str | None = None,
    ) -> None:
        self.component = component
        self.directories = list(directories)
        self.archive_name = archive_name
        lines = [f"missing static archive for component: {component}"]
        if archive_name:
            lines.append(f"expected file: {archive_name}")
        lines.append("searched directories:")
        if self.directories:
            lines.extend(f"    {d}" for d in self.directories)
        else:
            lines.append(
                "    (none; set LIBCLANG_STATIC_PATH or LLVM_CONFIG_PATH)"
            )
        super().__init__("\n".join(lines))


class StaticComponentsUnavailableError(ClangFindError):
    """The component list for static linking could not be obtained."""
