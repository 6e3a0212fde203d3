# SPDX-License-Identifier: MIT
"""
clangfind: find libclang on the host and synthesize the directives to link it.

Searches the locations named by LLVM_CONFIG_PATH, LIBCLANG_PATH and
LIBCLANG_STATIC_PATH, the directories reported by llvm-config and the
platform's usual install locations, then produces a link plan for either
the shared library or the full set of Clang and LLVM static archives.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export commonly used names for convenient imports
from clangfind.configure.overrides import Overrides  # noqa: E402
from clangfind.core.errors import ClangFindError  # noqa: E402
from clangfind.finder import LibclangFinder, find_libclang  # noqa: E402
from clangfind.link.emit import format_plan  # noqa: E402
from clangfind.link.plan import LinkPlan  # noqa: E402

__all__ = [
    "ClangFindError",
    "LibclangFinder",
    "LinkPlan",
    "Overrides",
    "__version__",
    "find_libclang",
    "format_plan",
]
