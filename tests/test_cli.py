# SPDX-License-Identifier: MIT
"""Tests for clangfind CLI."""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from clangfind.cli import command_first, main, parse_variables, setup_logging

ELF64 = b"\x7fELF\x02\x01\x01" + b"\0" * 57

linux_only = pytest.mark.skipif(
    not sys.platform.startswith("linux"), reason="uses ELF library names"
)


@pytest.fixture
def isolated(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide the host's llvm-config, install locations and overrides."""
    monkeypatch.setattr("shutil.which", lambda name: None)
    monkeypatch.setattr(
        "clangfind.discovery.search_dirs.default_patterns", lambda platform: ()
    )
    monkeypatch.setattr(
        "clangfind.discovery.search_dirs._xcode_toolchain_directory", lambda: None
    )
    monkeypatch.setattr(
        "clangfind.discovery.search_dirs._registry_llvm_directory", lambda: None
    )
    for name in (
        "LD_LIBRARY_PATH",
        "LLVM_CONFIG_PATH",
        "LIBCLANG_PATH",
        "LIBCLANG_STATIC_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


def make_library(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(ELF64)
    return path


class TestParseVariables:
    """Tests for parse_variables function."""

    def test_parse_variables(self) -> None:
        """Test KEY=value arguments are split from the rest."""
        variables, remaining = parse_variables(
            ["LIBCLANG_PATH=/opt/llvm/lib", "stray", "LLVM_CONFIG_PATH="]
        )
        assert variables == {"LIBCLANG_PATH": "/opt/llvm/lib", "LLVM_CONFIG_PATH": ""}
        assert remaining == ["stray"]

    def test_flags_are_not_variables(self) -> None:
        """Test that arguments starting with '-' stay in remaining."""
        variables, remaining = parse_variables(["-DFOO=1", "=value"])
        assert variables == {}
        assert remaining == ["-DFOO=1", "=value"]


class TestCommandFirst:
    """Tests for command_first function."""

    def test_options_before_command(self) -> None:
        """Test that the subcommand is found after leading options."""
        assert command_first(["-v", "include"]) == ["include", "-v"]

    def test_overrides_before_command(self) -> None:
        """Test that KEY=value arguments do not hide the subcommand."""
        assert command_first(["LIBCLANG_PATH=/x", "candidates", "--debug"]) == [
            "candidates",
            "LIBCLANG_PATH=/x",
            "--debug",
        ]

    def test_default_command(self) -> None:
        """Test that arguments without a subcommand go to link."""
        assert command_first(["-v"]) == ["link", "-v"]
        assert command_first([]) == ["link"]

    def test_later_words_are_not_commands(self) -> None:
        """Test that only the first bare word can name the subcommand."""
        assert command_first(["stray", "include"]) == ["link", "stray", "include"]

    def test_top_level_flags_untouched(self) -> None:
        """Test that top-level help and version pass through."""
        assert command_first(["--version"]) == ["--version"]
        assert command_first(["link", "--help"]) == ["link", "--help"]


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_levels(self) -> None:
        """Test that every verbosity level can be configured."""
        setup_logging(verbose=False, debug=False)
        setup_logging(verbose=True, debug=False)
        setup_logging(verbose=False, debug=True)


@pytest.mark.usefixtures("isolated")
class TestLinkCommand:
    """Tests for 'clangfind link'."""

    def test_forced_file(self, tmp_path: Path, capsys) -> None:
        """Test linking against an exact file given on the command line."""
        lib = make_library(tmp_path / "libclang.so")
        assert main(["link", f"LIBCLANG_PATH={lib}"]) == 0
        out = capsys.readouterr().out
        assert out.splitlines()[0] == f"-L{tmp_path}"

    def test_default_command_is_link(self, tmp_path: Path, capsys) -> None:
        """Test that the link command runs when none is given."""
        lib = make_library(tmp_path / "libclang.so")
        assert main([f"LIBCLANG_PATH={lib}"]) == 0
        assert f"-L{tmp_path}" in capsys.readouterr().out

    def test_json_format(self, tmp_path: Path, capsys) -> None:
        """Test the JSON output format."""
        lib = make_library(tmp_path / "libclang.so")
        assert main(["link", "-f", "json", f"LIBCLANG_PATH={lib}"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["mode"] == "dynamic"
        assert data["search"] == [str(tmp_path)]

    def test_environment_override(
        self, tmp_path: Path, capsys, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that overrides are read from the environment."""
        lib = make_library(tmp_path / "libclang.so")
        monkeypatch.setenv("LIBCLANG_PATH", str(lib))
        assert main(["link"]) == 0
        assert f"-L{tmp_path}" in capsys.readouterr().out

    def test_conflict(self, tmp_path: Path, caplog) -> None:
        """Test that static and dynamic overrides together fail."""
        result = main(
            ["link", f"LIBCLANG_PATH={tmp_path}", f"LIBCLANG_STATIC_PATH={tmp_path}"]
        )
        assert result == 1
        assert "conflicting overrides" in caplog.text

    def test_not_found(self, tmp_path: Path, caplog) -> None:
        """Test the diagnostic when nothing is found."""
        assert main(["link", f"LIBCLANG_PATH={tmp_path}"]) == 1
        assert "couldn't find any valid libclang library" in caplog.text
        assert str(tmp_path) in caplog.text

    def test_static_without_llvm_config(self, tmp_path: Path, caplog) -> None:
        """Test that static linking without llvm-config fails cleanly."""
        assert main(["link", "--static", f"LIBCLANG_STATIC_PATH={tmp_path}"]) == 1
        assert "LLVM_CONFIG_PATH" in caplog.text

    def test_unexpected_argument(self, caplog) -> None:
        """Test that stray positional arguments are rejected."""
        assert main(["link", "bogus"]) == 1
        assert "Unexpected arguments: bogus" in caplog.text

    def test_unknown_variable_warns(self, tmp_path: Path, caplog) -> None:
        """Test that unknown KEY=value arguments are reported."""
        lib = make_library(tmp_path / "libclang.so")
        assert main(["link", "FOO=bar", f"LIBCLANG_PATH={lib}"]) == 0
        assert "Ignoring unknown variable FOO" in caplog.text


@pytest.mark.usefixtures("isolated")
class TestCandidatesCommand:
    """Tests for 'clangfind candidates'."""

    @linux_only
    def test_marks_selection(self, tmp_path: Path, capsys) -> None:
        """Test that the selected candidate is marked."""
        make_library(tmp_path / "libclang.so")
        versioned = make_library(tmp_path / "libclang.so.14")
        assert main(["candidates", f"LIBCLANG_PATH={tmp_path}"]) == 0
        out = capsys.readouterr().out
        assert "Search directories:" in out
        assert f"* {versioned} [soname-suffix, 14]" in out
        assert f"  {tmp_path / 'libclang.so'} [bare, unversioned]" in out

    @linux_only
    def test_lists_rejections(self, tmp_path: Path, capsys) -> None:
        """Test that rejected files are listed alongside the selection."""
        make_library(tmp_path / "good" / "libclang.so")
        bad = tmp_path / "bad" / "libclang.so"
        bad.parent.mkdir()
        bad.write_bytes(b"\x7fELF\x01\x01\x01" + b"\0" * 57)
        dirs = os.pathsep.join([str(tmp_path / "bad"), str(tmp_path / "good")])
        value = f"LIBCLANG_PATH={dirs}"
        assert main(["candidates", value]) == 0
        out = capsys.readouterr().out
        assert "Rejected:" in out
        assert f"{bad}: invalid: 32-bit library" in out


@pytest.mark.usefixtures("isolated")
class TestIncludeCommand:
    """Tests for 'clangfind include'."""

    def test_without_llvm_config(self, caplog) -> None:
        """Test that include fails without llvm-config."""
        assert main(["include"]) == 1
        assert "did not report an include directory" in caplog.text

    def test_verbose_before_command(self, caplog) -> None:
        """Test that options may precede the subcommand."""
        assert main(["-v", "include"]) == 1
        assert "did not report an include directory" in caplog.text


class TestCLIProcess:
    """Tests running the CLI as a module."""

    def test_clangfind_help(self) -> None:
        """Test clangfind --help."""
        result = subprocess.run(
            [sys.executable, "-m", "clangfind.cli", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "clangfind" in result.stdout
        assert "link" in result.stdout
        assert "candidates" in result.stdout
        assert "include" in result.stdout

    def test_clangfind_version(self) -> None:
        """Test clangfind --version."""
        result = subprocess.run(
            [sys.executable, "-m", "clangfind", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "0.1.0" in result.stdout
