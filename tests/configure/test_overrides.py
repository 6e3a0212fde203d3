# SPDX-License-Identifier: MIT
"""Tests for clangfind.configure.overrides."""

import os
from pathlib import Path

from clangfind.configure.overrides import (
    LD_LIBRARY_PATH,
    LIBCLANG_PATH,
    LIBCLANG_STATIC_PATH,
    LLVM_CONFIG_PATH,
    Overrides,
    resolve_overrides,
)


class TestFromEnviron:
    """Tests for Overrides.from_environ."""

    def test_reads_recognized_variables(self):
        overrides = Overrides.from_environ(
            {
                LLVM_CONFIG_PATH: "/opt/llvm/bin/llvm-config",
                LIBCLANG_PATH: "/opt/llvm/lib",
                "UNRELATED": "x",
            }
        )
        assert overrides.llvm_config_path == "/opt/llvm/bin/llvm-config"
        assert overrides.libclang_path == "/opt/llvm/lib"
        assert overrides.libclang_static_path is None

    def test_empty_values_are_unset(self):
        overrides = Overrides.from_environ({LIBCLANG_PATH: ""})
        assert overrides.libclang_path is None

    def test_defaults_to_os_environ(self, monkeypatch):
        monkeypatch.setenv(LIBCLANG_STATIC_PATH, "/static")
        assert Overrides.from_environ().libclang_static_path == "/static"

    def test_reads_loader_path(self):
        overrides = Overrides.from_environ({LD_LIBRARY_PATH: "/opt/a"})
        assert overrides.loader_path == "/opt/a"
        assert Overrides.from_environ({}).loader_path is None


class TestResolveOverrides:
    """Tests for resolve_overrides."""

    def test_nothing_set(self):
        resolved = resolve_overrides(Overrides())
        assert resolved.dynamic_dirs == ()
        assert resolved.static_dirs == ()
        assert resolved.forced_file is None
        assert resolved.llvm_config is None
        assert not resolved.conflict

    def test_directory(self, tmp_path):
        resolved = resolve_overrides(Overrides(libclang_path=str(tmp_path)))
        assert resolved.dynamic_dirs == (tmp_path,)
        assert resolved.forced_file is None

    def test_exact_file(self, tmp_path):
        lib = tmp_path / "libclang.so"
        lib.write_bytes(b"")
        resolved = resolve_overrides(Overrides(libclang_path=str(lib)))
        assert resolved.forced_file == lib
        assert resolved.dynamic_dirs == ()

    def test_multiple_directories_keep_order(self, tmp_path):
        a, b = tmp_path / "a", tmp_path / "b"
        value = os.pathsep.join([str(b), str(a)])
        resolved = resolve_overrides(Overrides(libclang_path=value))
        assert resolved.dynamic_dirs == (b, a)

    def test_missing_path_kept_as_directory(self, tmp_path):
        missing = tmp_path / "nope"
        resolved = resolve_overrides(Overrides(libclang_path=str(missing)))
        assert resolved.dynamic_dirs == (missing,)

    def test_loader_dirs(self, tmp_path):
        a, b = tmp_path / "a", tmp_path / "b"
        value = os.pathsep.join([str(a), str(b)])
        resolved = resolve_overrides(Overrides(loader_path=value))
        assert resolved.loader_dirs == (a, b)
        assert resolved.dynamic_dirs == ()

    def test_llvm_config(self):
        resolved = resolve_overrides(Overrides(llvm_config_path="/x/llvm-config"))
        assert resolved.llvm_config == Path("/x/llvm-config")

    def test_static_and_dynamic_conflict(self, tmp_path):
        resolved = resolve_overrides(
            Overrides(libclang_path=str(tmp_path), libclang_static_path=str(tmp_path))
        )
        assert resolved.conflict
        assert resolved.conflicting_names == [LIBCLANG_PATH, LIBCLANG_STATIC_PATH]
        assert resolved.static_dirs == (tmp_path,)

    def test_never_raises_on_odd_input(self):
        resolved = resolve_overrides(Overrides(libclang_path=os.pathsep * 3))
        assert resolved.dynamic_dirs == ()
