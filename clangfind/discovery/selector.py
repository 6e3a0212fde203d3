# SPDX-License-Identifier: MIT
"""Candidate selection.

Picks exactly one library from the probed candidates. Precedence, highest
first:

1. A forced file override.
2. The highest version parsed from the filename (unversioned names rank lowest).
3. The platform's preferred name form.
4. A version in the install directory name (llvm-14, llvm@15, ...).
5. Discovery order (directory priority, then filename).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from clangfind.core.errors import NoCandidateFoundError
from clangfind.discovery.probe import LibraryCandidate, ProbeResult
from clangfind.discovery.templates import NamingTemplate
from clangfind.discovery.version import VersionTuple

logger = logging.getLogger(__name__)

_ZERO = VersionTuple((0,))


@dataclass
class Selection:
    """The chosen candidate and how it was chosen.

    Attributes:
        candidate: The selected library.
        forced: True if a forced file override decided the selection.
        ties: Other candidates with the same filename version that lost on
            a later tie-break. Not an error, but worth reporting.
        considered: Every candidate that took part in the selection.
    """

    candidate: LibraryCandidate
    forced: bool = False
    ties: list[LibraryCandidate] = field(default_factory=list)
    considered: list[LibraryCandidate] = field(default_factory=list)

    @property
    def ambiguous(self) -> bool:
        return bool(self.ties)


def _version_key(candidate: LibraryCandidate) -> tuple[bool, VersionTuple]:
    version = candidate.parsed_version
    return version is not None, version or _ZERO


def rank_key(candidate: LibraryCandidate) -> tuple:
    """Sort key for candidates; the maximum is the best candidate."""
    directory_version = candidate.directory_version
    return (
        _version_key(candidate),
        -candidate.form_rank,
        (directory_version is not None, directory_version or _ZERO),
        -candidate.order,
    )


def select_candidate(
    probe: ProbeResult,
    templates: Sequence[NamingTemplate],
    *,
    library: str = "libclang",
) -> Selection:
    """Select the best candidate from a probe result.

    Args:
        probe: Result of probing the search directories.
        templates: Templates that were tried (for diagnostics).
        library: Library name used in diagnostics.

    Returns:
        The selection.

    Raises:
        NoCandidateFoundError: If there are no usable candidates.
    """
    candidates = probe.candidates
    if not candidates:
        raise NoCandidateFoundError(
            library,
            probe.directories,
            [t.display for t in templates],
            probe.rejected,
        )

    if probe.forced:
        chosen = candidates[0]
        logger.info("Using forced library file %s", chosen.path)
        return Selection(chosen, forced=True, considered=list(candidates))

    ranked = sorted(candidates, key=rank_key, reverse=True)
    chosen = ranked[0]
    ties = [c for c in ranked[1:] if _version_key(c) == _version_key(chosen)]
    if ties:
        logger.info(
            "Several candidates with version %s; chose %s over %s",
            chosen.version_label,
            chosen.path,
            ", ".join(str(c.path) for c in ties),
        )
    logger.info("Selected %s (%s)", chosen.path, chosen.version_label)
    return Selection(chosen, ties=ties, considered=ranked)
