# SPDX-License-Identifier: MIT
"""Platform detection.

Describes the target platform's library naming conventions so the rest of
the pipeline can stay platform-agnostic.
"""

from __future__ import annotations

import platform as _platform
import struct
import sys
from dataclasses import dataclass
from functools import cache


@dataclass(frozen=True)
class Platform:
    """Target platform description.

    Attributes:
        os: Operating system name ('linux', 'darwin', 'windows', 'freebsd', ...).
        arch: Machine architecture ('x86_64', 'arm64', ...).
        is_64bit: True if pointers are 64 bits wide.
        exe_suffix: Suffix for executables ('' or '.exe').
        shared_lib_suffix: Suffix for shared libraries.
        shared_lib_prefix: Prefix for shared libraries.
        static_lib_suffix: Suffix for static archives.
        static_lib_prefix: Prefix for static archives.
    """

    os: str
    arch: str
    is_64bit: bool
    exe_suffix: str
    shared_lib_suffix: str
    shared_lib_prefix: str
    static_lib_suffix: str
    static_lib_prefix: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def is_macos(self) -> bool:
        return self.os == "darwin"

    @property
    def is_linux(self) -> bool:
        return self.os == "linux"

    @property
    def is_posix(self) -> bool:
        return not self.is_windows

    @property
    def family(self) -> str:
        """Naming-convention family: 'windows', 'darwin' or 'elf'."""
        if self.is_windows:
            return "windows"
        if self.is_macos:
            return "darwin"
        return "elf"


def _normalize_os(name: str) -> str:
    name = name.lower()
    if name.startswith("win") or name.startswith("cygwin") or name.startswith("msys"):
        return "windows"
    if name.startswith("linux"):
        return "linux"
    if name.startswith("freebsd"):
        return "freebsd"
    if name in ("sunos5", "sunos"):
        return "illumos"
    return name


def _normalize_arch(machine: str) -> str:
    machine = machine.lower()
    if machine in ("amd64", "x64"):
        return "x86_64"
    if machine == "aarch64":
        return "arm64"
    if machine in ("i386", "i486", "i586", "i686"):
        return "x86"
    return machine


def make_platform(os_name: str, arch: str, is_64bit: bool = True) -> Platform:
    """Build a Platform for the given OS using that OS's naming conventions."""
    os_name = _normalize_os(os_name)
    if os_name == "windows":
        return Platform(
            os="windows",
            arch=_normalize_arch(arch),
            is_64bit=is_64bit,
            exe_suffix=".exe",
            shared_lib_suffix=".dll",
            shared_lib_prefix="",
            static_lib_suffix=".lib",
            static_lib_prefix="",
        )
    return Platform(
        os=os_name,
        arch=_normalize_arch(arch),
        is_64bit=is_64bit,
        exe_suffix="",
        shared_lib_suffix=".dylib" if os_name == "darwin" else ".so",
        shared_lib_prefix="lib",
        static_lib_suffix=".a",
        static_lib_prefix="lib",
    )


@cache
def get_platform() -> Platform:
    """Detect the host platform."""
    return make_platform(
        sys.platform,
        _platform.machine() or "unknown",
        is_64bit=struct.calcsize("P") == 8,
    )
