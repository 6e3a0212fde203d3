# SPDX-License-Identifier: MIT
"""Shared fixtures for clangfind tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from clangfind.configure.oracle import LlvmConfig
from clangfind.configure.platform import Platform, make_platform
from clangfind.core.errors import OracleUnavailableError

ELF64_HEADER = b"\x7fELF\x02\x01\x01" + b"\0" * 57


class FakeLlvmConfig(LlvmConfig):
    """llvm-config stand-in answering from a table of canned outputs.

    Keys are the space-joined arguments; a missing key behaves like a
    failing invocation.
    """

    def __init__(self, responses: dict[str, str], **kwargs) -> None:
        super().__init__(Path("/opt/llvm/bin/llvm-config"), **kwargs)
        self.responses = responses
        self.calls: list[tuple[str, ...]] = []

    def _run(self, *args: str) -> str:
        self.calls.append(args)
        key = " ".join(args)
        if key not in self.responses:
            raise OracleUnavailableError(f"no canned output for {key}")
        return self.responses[key].rstrip()


def write_library(path: Path, header: bytes = ELF64_HEADER) -> Path:
    """Create a fake library file with the given header bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(header)
    return path


@pytest.fixture
def linux() -> Platform:
    return make_platform("linux", "x86_64")


@pytest.fixture
def macos() -> Platform:
    return make_platform("darwin", "arm64")


@pytest.fixture
def windows() -> Platform:
    return make_platform("win32", "AMD64")


@pytest.fixture
def fake_oracle():
    """Factory for FakeLlvmConfig instances."""
    return FakeLlvmConfig


@pytest.fixture
def library_writer():
    """Factory writing fake library files."""
    return write_library
