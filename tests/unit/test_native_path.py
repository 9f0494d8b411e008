"""Native library path tests."""

from __future__ import annotations

import os
import threading

import pytest

from model_archive.core.errors import NativePathUpdateError
from model_archive.runtime.native_path import NativeLibraryPath, default_variable_name


def test_default_variable_name():
    assert default_variable_name("linux") == "LD_LIBRARY_PATH"
    assert default_variable_name("darwin") == "DYLD_LIBRARY_PATH"
    assert default_variable_name("win32") == "PATH"


class TestMergeDirectories:
    def test_union_keeps_existing_entries_first(self, tmp_path):
        env = {"LD_LIBRARY_PATH": os.pathsep.join(["/opt/a", "/opt/b"])}
        native = NativeLibraryPath("LD_LIBRARY_PATH", environ=env)

        merged = native.merge_directories([tmp_path])

        assert merged == ["/opt/a", "/opt/b", str(tmp_path.resolve())]
        assert env["LD_LIBRARY_PATH"] == os.pathsep.join(merged)

    def test_deduplicates(self, tmp_path, native_path):
        native_path.merge_directories([tmp_path, tmp_path])
        native_path.merge_directories([tmp_path])

        assert native_path.environ["LD_LIBRARY_PATH"] == str(tmp_path.resolve())
        assert native_path.directories() == [str(tmp_path.resolve())]

    def test_empty_merge_is_noop(self, native_path):
        assert native_path.merge_directories([]) == []
        assert "LD_LIBRARY_PATH" not in native_path.environ

    def test_append_only_across_merges(self, tmp_path, native_path):
        first, second = tmp_path / "one", tmp_path / "two"
        native_path.merge_directories([first])
        native_path.merge_directories([second])

        assert native_path.directories() == [str(first.resolve()), str(second.resolve())]

    def test_concurrent_merges_lose_nothing(self, tmp_path, native_path):
        dirs = [tmp_path / f"d{i}" for i in range(20)]
        threads = [
            threading.Thread(target=native_path.merge_directories, args=([d],)) for d in dirs
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stored = native_path.environ["LD_LIBRARY_PATH"].split(os.pathsep)
        assert sorted(stored) == sorted(str(d.resolve()) for d in dirs)


class TestFailures:
    def test_unwritable_storage(self, tmp_path):
        class _ReadOnly(dict):
            def __setitem__(self, key, value):
                raise TypeError("read-only")

        native = NativeLibraryPath("LD_LIBRARY_PATH", environ=_ReadOnly())
        with pytest.raises(NativePathUpdateError) as exc_info:
            native.merge_directories([tmp_path])

        assert exc_info.value.directories == [str(tmp_path.resolve())]
        assert str(tmp_path.resolve()) in str(exc_info.value)

    def test_bound_exceeded(self, tmp_path):
        native = NativeLibraryPath("LD_LIBRARY_PATH", environ={}, max_entries=1)
        native.merge_directories([tmp_path / "a"])

        with pytest.raises(NativePathUpdateError, match="bound of 1"):
            native.merge_directories([tmp_path / "b"])

    def test_invalid_bound(self):
        with pytest.raises(ValueError):
            NativeLibraryPath(environ={}, max_entries=0)


class TestResetAndLocate:
    def test_reset_restores_initial_value(self, tmp_path):
        env = {"LD_LIBRARY_PATH": "/opt/a"}
        native = NativeLibraryPath("LD_LIBRARY_PATH", environ=env)
        native.merge_directories([tmp_path])
        native.reset()

        assert env["LD_LIBRARY_PATH"] == "/opt/a"
        assert native.directories() == []

    def test_reset_removes_variable_when_unset(self, tmp_path, native_path):
        native_path.merge_directories([tmp_path])
        native_path.reset()

        assert "LD_LIBRARY_PATH" not in native_path.environ

    def test_locate(self, tmp_path, native_path):
        (tmp_path / "libscore.so").write_bytes(b"\x7fELF")
        native_path.merge_directories([tmp_path])

        assert native_path.locate("score") == tmp_path.resolve() / "libscore.so"
        assert native_path.locate("libscore.so") == tmp_path.resolve() / "libscore.so"
        assert native_path.locate("missing") is None
