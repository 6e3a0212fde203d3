# SPDX-License-Identifier: MIT
"""Library filename templates per platform family.

Each template is a small record of a filename pattern, the library kind it
identifies and its name form. The tables are keyed by platform family so
the probe itself needs no platform branching. Within a table, earlier
templates are preferred when candidates tie on version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from clangfind.configure.platform import Platform

_VER = r"(?P<version>\d+(?:\.\d+)*)"


class LibraryKind(Enum):
    """How a library file is consumed by the linker."""

    DYNAMIC = "dynamic"
    IMPORT = "import"
    STATIC = "static"


@dataclass(frozen=True)
class NamingTemplate:
    """A filename pattern for one name form of a library.

    Attributes:
        form: Short name of the form (e.g., 'soname-suffix', 'bare').
        display: Human-readable pattern shown in diagnostics.
        pattern: Regular expression matched against the whole filename; a
            'version' group, if present, carries the version.
        kind: Library kind identified by this form.
    """

    form: str
    display: str
    pattern: str
    kind: LibraryKind = LibraryKind.DYNAMIC
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_regex", re.compile(self.pattern))

    def match(self, filename: str) -> re.Match[str] | None:
        return self._regex.fullmatch(filename)


DYNAMIC_TEMPLATES: dict[str, tuple[NamingTemplate, ...]] = {
    "elf": (
        NamingTemplate(
            "dashed-soname", "libclang-*.so.*", rf"libclang-{_VER}\.so\.\d+(?:\.\d+)*"
        ),
        NamingTemplate("dashed", "libclang-*.so", rf"libclang-{_VER}\.so"),
        NamingTemplate("soname-suffix", "libclang.so.*", rf"libclang\.so\.{_VER}"),
        NamingTemplate("bare", "libclang.so", r"libclang\.so"),
    ),
    "darwin": (
        NamingTemplate("dotted", "libclang.*.dylib", rf"libclang\.{_VER}\.dylib"),
        NamingTemplate("bare", "libclang.dylib", r"libclang\.dylib"),
    ),
    "windows": (
        NamingTemplate(
            "import", "libclang.lib", r"libclang\.lib", LibraryKind.IMPORT
        ),
        NamingTemplate("import-short", "clang.lib", r"clang\.lib", LibraryKind.IMPORT),
        NamingTemplate(
            "mingw-import", "libclang.dll.a", r"libclang\.dll\.a", LibraryKind.IMPORT
        ),
        NamingTemplate("dll", "libclang.dll", r"libclang\.dll"),
        NamingTemplate("dll-short", "clang.dll", r"clang\.dll"),
    ),
}


def dynamic_templates(platform: Platform) -> tuple[NamingTemplate, ...]:
    """Get the shared-library templates for a platform, preferred first."""
    return DYNAMIC_TEMPLATES[platform.family]


def static_archive_name(name: str, platform: Platform) -> str:
    """Get the archive filename for a library name ('clangAST' -> 'libclangAST.a')."""
    return f"{platform.static_lib_prefix}{name}{platform.static_lib_suffix}"


def static_template(platform: Platform) -> NamingTemplate:
    """Get the template matching any static archive, capturing its base name."""
    prefix = re.escape(platform.static_lib_prefix)
    suffix = re.escape(platform.static_lib_suffix)
    return NamingTemplate(
        "archive",
        static_archive_name("*", platform),
        rf"{prefix}(?P<name>.+){suffix}",
        LibraryKind.STATIC,
    )


def clang_archive_template(platform: Platform) -> NamingTemplate:
    """Get the template matching the Clang component archives."""
    prefix = re.escape(platform.static_lib_prefix)
    suffix = re.escape(platform.static_lib_suffix)
    return NamingTemplate(
        "clang-archive",
        static_archive_name("clang*", platform),
        rf"{prefix}(?P<name>clang[A-Za-z]*){suffix}",
        LibraryKind.STATIC,
    )
