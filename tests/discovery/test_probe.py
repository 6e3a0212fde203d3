# SPDX-License-Identifier: MIT
"""Tests for clangfind.discovery.probe."""

import struct
from pathlib import Path

from clangfind.configure.platform import make_platform
from clangfind.discovery.probe import (
    library_pointer_width,
    probe_directories,
    probe_forced_file,
    validate_candidate,
)
from clangfind.discovery.search_dirs import DirectorySource, SearchDirectory
from clangfind.discovery.templates import LibraryKind, dynamic_templates
from clangfind.discovery.version import VersionTuple

ELF64 = b"\x7fELF\x02\x01\x01" + b"\0" * 57
ELF32 = b"\x7fELF\x01\x01\x01" + b"\0" * 57


def pe_header(machine: int) -> bytes:
    header = bytearray(0x80)
    header[:2] = b"MZ"
    struct.pack_into("<I", header, 0x3C, 0x40)
    header[0x40:0x44] = b"PE\0\0"
    struct.pack_into("<H", header, 0x44, machine)
    return bytes(header)


def search(*paths: Path) -> list[SearchDirectory]:
    return [SearchDirectory(p, DirectorySource.EXPLICIT) for p in paths]


class TestPointerWidth:
    """Tests for header inspection."""

    def test_elf(self, tmp_path, library_writer):
        assert library_pointer_width(library_writer(tmp_path / "a.so", ELF64)) == 64
        assert library_pointer_width(library_writer(tmp_path / "b.so", ELF32)) == 32

    def test_pe(self, tmp_path, library_writer):
        amd64 = library_writer(tmp_path / "a.dll", pe_header(0x8664))
        i386 = library_writer(tmp_path / "b.dll", pe_header(0x14C))
        assert library_pointer_width(amd64) == 64
        assert library_pointer_width(i386) == 32

    def test_macho(self, tmp_path, library_writer):
        path = library_writer(tmp_path / "a.dylib", b"\xcf\xfa\xed\xfe" + b"\0" * 28)
        assert library_pointer_width(path) == 64

    def test_unknown_or_missing(self, tmp_path, library_writer):
        assert library_pointer_width(library_writer(tmp_path / "x", b"junk")) is None
        assert library_pointer_width(tmp_path / "missing") is None


class TestValidateCandidate:
    """Tests for validate_candidate."""

    def test_mismatched_width_rejected(self, tmp_path, linux, library_writer):
        path = library_writer(tmp_path / "libclang.so", ELF32)
        reason = validate_candidate(path, LibraryKind.DYNAMIC, linux)
        assert reason == "invalid: 32-bit library, expected 64-bit"

    def test_matching_width_accepted(self, tmp_path, library_writer):
        platform = make_platform("linux", "i686", is_64bit=False)
        path = library_writer(tmp_path / "libclang.so", ELF32)
        assert validate_candidate(path, LibraryKind.DYNAMIC, platform) is None

    def test_import_libraries_not_checked(self, tmp_path, windows, library_writer):
        path = library_writer(tmp_path / "libclang.lib", b"!<arch>\n")
        assert validate_candidate(path, LibraryKind.IMPORT, windows) is None


class TestProbeDirectories:
    """Tests for probe_directories."""

    def test_finds_matching_files(self, tmp_path, linux, library_writer):
        library_writer(tmp_path / "libclang.so")
        library_writer(tmp_path / "libclang-14.so.1")
        library_writer(tmp_path / "libLLVM-14.so")
        (tmp_path / "libclang.so.13").mkdir()

        result = probe_directories(search(tmp_path), dynamic_templates(linux), linux)

        names = [c.path.name for c in result.candidates]
        assert names == ["libclang-14.so.1", "libclang.so"]
        assert result.candidates[0].parsed_version == VersionTuple((14,))
        assert result.candidates[1].parsed_version is None
        assert result.directories == [tmp_path]

    def test_missing_directories_are_skipped(self, tmp_path, linux, library_writer):
        good = tmp_path / "good"
        library_writer(good / "libclang.so")
        missing = tmp_path / "missing"

        result = probe_directories(
            search(missing, good), dynamic_templates(linux), linux
        )

        assert [c.path for c in result.candidates] == [good / "libclang.so"]
        assert result.directories == [missing, good]

    def test_not_recursive(self, tmp_path, linux, library_writer):
        library_writer(tmp_path / "nested" / "libclang.so")
        result = probe_directories(search(tmp_path), dynamic_templates(linux), linux)
        assert result.candidates == []

    def test_rejected_candidates_recorded(self, tmp_path, linux, library_writer):
        library_writer(tmp_path / "libclang.so", ELF32)
        result = probe_directories(search(tmp_path), dynamic_templates(linux), linux)
        assert result.candidates == []
        assert result.rejected == [
            (tmp_path / "libclang.so", "invalid: 32-bit library, expected 64-bit")
        ]

    def test_discovery_order_follows_directories(self, tmp_path, linux, library_writer):
        first, second = tmp_path / "b", tmp_path / "a"
        library_writer(first / "libclang.so")
        library_writer(second / "libclang.so")
        result = probe_directories(
            search(first, second), dynamic_templates(linux), linux
        )
        assert [c.path.parent for c in result.candidates] == [first, second]
        assert [c.order for c in result.candidates] == [0, 1]

    def test_directory_version_recorded(self, tmp_path, linux, library_writer):
        lib = tmp_path / "llvm-16" / "lib"
        library_writer(lib / "libclang.so")
        result = probe_directories(search(lib), dynamic_templates(linux), linux)
        assert result.candidates[0].directory_version == VersionTuple((16,))


class TestProbeForcedFile:
    """Tests for the exact-file shortcut."""

    def test_single_candidate(self, tmp_path, linux, library_writer):
        path = library_writer(tmp_path / "libclang.so.12")
        result = probe_forced_file(path, dynamic_templates(linux), linux)
        assert result.forced is True
        assert [c.path for c in result.candidates] == [path]
        assert result.candidates[0].parsed_version == VersionTuple((12,))

    def test_unmatched_name_still_used(self, tmp_path, linux, library_writer):
        path = library_writer(tmp_path / "my-custom-clang.so")
        result = probe_forced_file(path, dynamic_templates(linux), linux)
        assert result.candidates[0].path == path
        assert result.candidates[0].form == "forced"
