# SPDX-License-Identifier: MIT
"""Link directive emitters.

Turns a LinkPlan into the argument syntax of a consumer's linker driver.
The prefixes follow the usual driver conventions: '-L'/'-l' for GCC and
Clang style drivers, '/LIBPATH:' and 'name.lib' for MSVC link.exe.
"""

from __future__ import annotations

import json
from typing import Any

from clangfind.link.plan import ArchiveGroup, LinkDirective, LinkPlan

FORMATS = ("gnu", "msvc", "json")

GROUP_START = "-Wl,--start-group"
GROUP_END = "-Wl,--end-group"


def _gnu_lib(directive: LinkDirective) -> str:
    if directive.is_path:
        return directive.name
    return f"-l{directive.name}"


def _msvc_lib(directive: LinkDirective) -> str:
    if directive.is_path or directive.name.lower().endswith(".lib"):
        return directive.name
    return f"{directive.name}.lib"


def gnu_flags(plan: LinkPlan, *, include: bool = False) -> list[str]:
    """Get GCC/Clang driver flags for a plan.

    Args:
        plan: The link plan.
        include: Also emit '-I' for the include directory.

    Returns:
        Flags in link order.
    """
    flags: list[str] = []
    if include and plan.include_dir is not None:
        flags.append(f"-I{plan.include_dir}")
    flags.extend(f"-L{d}" for d in plan.search_dirs)
    for entry in plan.link:
        if isinstance(entry, ArchiveGroup):
            flags.append(GROUP_START)
            flags.extend(_gnu_lib(m) for m in entry.members)
            flags.append(GROUP_END)
        else:
            flags.append(_gnu_lib(entry))
    flags.extend(_gnu_lib(d) for d in plan.system)
    return flags


def msvc_flags(plan: LinkPlan, *, include: bool = False) -> list[str]:
    """Get MSVC link.exe arguments for a plan.

    link.exe rescans libraries on its own, so a group is emitted as its
    members in order.
    """
    flags: list[str] = []
    if include and plan.include_dir is not None:
        flags.append(f"/I{plan.include_dir}")
    flags.extend(f"/LIBPATH:{d}" for d in plan.search_dirs)
    for entry in plan.link:
        members = entry.members if isinstance(entry, ArchiveGroup) else (entry,)
        flags.extend(_msvc_lib(m) for m in members)
    flags.extend(_msvc_lib(d) for d in plan.system)
    return flags


def _directive_dict(directive: LinkDirective) -> dict[str, Any]:
    return {
        "name": directive.name,
        "kind": directive.kind.value,
        "directory": str(directive.directory) if directive.directory else None,
    }


def plan_to_dict(plan: LinkPlan) -> dict[str, Any]:
    """Get a JSON-serializable description of a plan."""
    link: list[dict[str, Any]] = []
    for entry in plan.link:
        if isinstance(entry, ArchiveGroup):
            link.append({"group": [_directive_dict(m) for m in entry.members]})
        else:
            link.append(_directive_dict(entry))
    return {
        "mode": "static" if plan.static else "dynamic",
        "search": [str(d) for d in plan.search_dirs],
        "link": link,
        "system": [d.name for d in plan.system],
        "runtime_dir": str(plan.runtime_dir) if plan.runtime_dir else None,
        "include": str(plan.include_dir) if plan.include_dir else None,
    }


def format_plan(plan: LinkPlan, fmt: str = "gnu", *, include: bool = False) -> str:
    """Render a plan in the requested format.

    Args:
        plan: The link plan.
        fmt: One of FORMATS.
        include: Also emit the include directory (flag formats only).

    Returns:
        One flag per line for flag formats, or an indented JSON document.

    Raises:
        ValueError: If the format is unknown.
    """
    if fmt == "gnu":
        return "\n".join(gnu_flags(plan, include=include))
    if fmt == "msvc":
        return "\n".join(msvc_flags(plan, include=include))
    if fmt == "json":
        return json.dumps(plan_to_dict(plan), indent=2)
    raise ValueError(f"unknown output format {fmt!r}, expected one of {FORMATS}")
