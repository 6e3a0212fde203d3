# SPDX-License-Identifier: MIT
"""The discovery and link-plan pipeline.

LibclangFinder runs the whole search once per instance: it resolves the
overrides, asks llvm-config for what it knows, probes the filesystem,
selects the library and synthesizes the link plan. Nothing is cached
between runs; every invocation searches from scratch.

Example:
    finder = LibclangFinder(Overrides.from_environ())
    plan = finder.link(static=False)
    print(format_plan(plan, "gnu"))
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from clangfind.configure.oracle import MIN_VERSION, LlvmConfig
from clangfind.configure.overrides import (
    Overrides,
    ResolvedOverrides,
    resolve_overrides,
)
from clangfind.configure.platform import Platform, get_platform
from clangfind.core.errors import (
    ConfigConflictError,
    StaticComponentsUnavailableError,
)
from clangfind.discovery.probe import (
    LibraryCandidate,
    ProbeResult,
    probe_directories,
    probe_forced_file,
)
from clangfind.discovery.search_dirs import (
    DirectoryProvider,
    DirectorySource,
    SearchDirectory,
    collect_search_directories,
    platform_directories,
    sdk_directories,
)
from clangfind.discovery.selector import Selection, select_candidate
from clangfind.discovery.templates import (
    clang_archive_template,
    dynamic_templates,
    static_template,
)
from clangfind.discovery.version import VersionTuple
from clangfind.link.plan import (
    ComponentSpec,
    LinkPlan,
    index_archives,
    runtime_libraries,
    supports_archive_groups,
    synthesize_dynamic,
    synthesize_static,
)

logger = logging.getLogger(__name__)

# Used when no Clang archive can be found to derive the component list from.
CLANG_LIBRARIES = (
    "clang",
    "clangAST",
    "clangAnalysis",
    "clangBasic",
    "clangDriver",
    "clangEdit",
    "clangFrontend",
    "clangIndex",
    "clangLex",
    "clangParse",
    "clangRewrite",
    "clangSema",
    "clangSerialization",
)


@dataclass
class DynamicDiscovery:
    """Everything the dynamic search saw, for reporting.

    Attributes:
        directories: Search directories in probe order.
        probe: The probe result.
        selection: The selection made from it.
    """

    directories: list[SearchDirectory]
    probe: ProbeResult
    selection: Selection


class LibclangFinder:
    """Finds libclang and builds the directives to link against it.

    Args:
        overrides: User overrides (default: read from os.environ).
        platform: Target platform (default: host).
        min_version: Oldest llvm-config version to trust.
        environ: Environment to read the overrides from when none are
            given (default: os.environ).
        oracle: llvm-config adapter (default: located from overrides and PATH).
        default_dirs: Provider of the platform's default directories.
        sdk_dirs: Provider of SDK-query directories.
    """

    def __init__(
        self,
        overrides: Overrides | None = None,
        *,
        platform: Platform | None = None,
        min_version: VersionTuple = MIN_VERSION,
        environ: Mapping[str, str] | None = None,
        oracle: LlvmConfig | None = None,
        default_dirs: DirectoryProvider = platform_directories,
        sdk_dirs: DirectoryProvider = sdk_directories,
    ) -> None:
        if overrides is None:
            overrides = Overrides.from_environ(environ)
        self.overrides = overrides
        self.resolved: ResolvedOverrides = resolve_overrides(overrides)
        self.platform = platform or get_platform()
        self._default_dirs = default_dirs
        self._sdk_dirs = sdk_dirs
        self.oracle = oracle or LlvmConfig.locate(
            self.resolved.llvm_config,
            platform=self.platform,
            min_version=min_version,
        )

    def check_conflicts(self) -> None:
        """Raise if mutually exclusive overrides were supplied.

        Raises:
            ConfigConflictError: If static and dynamic overrides are both set.
        """
        if self.resolved.conflict:
            raise ConfigConflictError(self.resolved.conflicting_names)

    # -- Dynamic --------------------------------------------------------------

    def search_directories(self) -> list[SearchDirectory]:
        """Get the merged search directories for the shared library."""
        return collect_search_directories(
            self.platform,
            explicit=self.resolved.dynamic_dirs,
            oracle=self.oracle.libdir(),
            loader_dirs=self.resolved.loader_dirs,
            defaults=self._default_dirs,
            sdk=self._sdk_dirs,
        )

    def discover(self) -> DynamicDiscovery:
        """Probe for the shared library and select one.

        Raises:
            ConfigConflictError: If conflicting overrides are set.
            NoCandidateFoundError: If no usable library was found.
        """
        self.check_conflicts()
        templates = dynamic_templates(self.platform)
        forced = self.resolved.forced_file
        if forced is not None:
            directories = [SearchDirectory(forced.parent, DirectorySource.EXPLICIT)]
            probe = probe_forced_file(forced, templates, self.platform)
        else:
            directories = self.search_directories()
            probe = probe_directories(directories, templates, self.platform)
        selection = select_candidate(probe, templates)
        return DynamicDiscovery(directories, probe, selection)

    def find_dynamic(self) -> LibraryCandidate:
        """Find the shared library to link against."""
        return self.discover().selection.candidate

    def include_dir(self, candidate: LibraryCandidate | None = None) -> Path | None:
        """Get the Clang header directory.

        Uses llvm-config when available, otherwise looks for
        'include/clang-c' next to the library's directory.
        """
        include = self.oracle.includedir()
        if include is not None:
            return include
        if candidate is None:
            return None
        for root in (candidate.directory.parent, candidate.directory.parent.parent):
            guess = root / "include"
            if (guess / "clang-c" / "Index.h").is_file():
                logger.debug("Derived include directory %s", guess)
                return guess
        return None

    # -- Static ---------------------------------------------------------------

    def static_directories(self) -> list[Path]:
        """Get the directories searched for static archives."""
        dirs = list(self.resolved.static_dirs)
        libdir = self.oracle.libdir()
        if libdir is not None and libdir not in dirs:
            dirs.append(libdir)
        return dirs

    def static_components(
        self, clang_archives: list[str]
    ) -> list[ComponentSpec]:
        """Get the static components in link order.

        Args:
            clang_archives: Clang component names found on disk, if any.

        Raises:
            StaticComponentsUnavailableError: If llvm-config cannot report
                the LLVM components.
        """
        llvm = self.oracle.component_names()
        if llvm is None:
            raise StaticComponentsUnavailableError(
                "static linking needs llvm-config to list the LLVM libraries; "
                "set LLVM_CONFIG_PATH to a working llvm-config "
                f"(tried: {self.oracle.executable or 'llvm-config on PATH'})"
            )
        system = self.oracle.system_libs()
        if system is None:
            raise StaticComponentsUnavailableError(
                "llvm-config failed to report the system libraries"
            )

        if clang_archives:
            clang = clang_archives
        else:
            logger.info("No Clang archives found; using the default component list")
            clang = list(CLANG_LIBRARIES)
        components = [ComponentSpec(name) for name in clang]
        components.extend(ComponentSpec(name, tuple(system)) for name in llvm)
        return components

    def link_static(self, *, group_archives: bool | None = None) -> LinkPlan:
        """Build the static link plan.

        Raises:
            ConfigConflictError: If conflicting overrides are set.
            StaticComponentsUnavailableError: If the component list is unavailable.
            MissingStaticComponentError: If a component's archive is missing.
        """
        self.check_conflicts()
        directories = self.static_directories()
        search = [SearchDirectory(d, DirectorySource.EXPLICIT) for d in directories]
        archives = probe_directories(
            search, (static_template(self.platform),), self.platform
        )
        clang_template = clang_archive_template(self.platform)
        clang_archives: list[str] = []
        for candidate in archives.candidates:
            match = clang_template.match(candidate.path.name)
            if match and match.group("name") not in clang_archives:
                clang_archives.append(match.group("name"))

        components = self.static_components(clang_archives)
        if group_archives is None:
            group_archives = supports_archive_groups(self.platform)
        return synthesize_static(
            components,
            index_archives(archives.candidates, self.platform),
            self.platform,
            group_archives=group_archives,
            runtime_libs=runtime_libraries(self.platform),
            directories=directories,
            include_dir=self.oracle.includedir(),
        )

    # -- Entry point ----------------------------------------------------------

    def link(
        self, *, static: bool = False, group_archives: bool | None = None
    ) -> LinkPlan:
        """Find libclang and build its link plan.

        Args:
            static: Link the static archives instead of the shared library.
            group_archives: Whether the consumer's linker supports archive
                groups (default: the platform's usual linker). Static only.

        Returns:
            The link plan.
        """
        if static:
            return self.link_static(group_archives=group_archives)
        candidate = self.find_dynamic()
        return synthesize_dynamic(
            candidate, self.platform, include_dir=self.include_dir(candidate)
        )


def find_libclang(
    environ: Mapping[str, str] | None = None,
    *,
    static: bool = False,
    group_archives: bool | None = None,
    platform: Platform | None = None,
) -> LinkPlan:
    """Find libclang using overrides from an environment mapping.

    Args:
        environ: Environment to read overrides from (default: os.environ).
        static: Link statically.
        group_archives: Archive group capability of the consumer's linker.
        platform: Target platform (default: host).

    Returns:
        The link plan.
    """
    finder = LibclangFinder(
        Overrides.from_environ(environ), platform=platform
    )
    return finder.link(static=static, group_archives=group_archives)
