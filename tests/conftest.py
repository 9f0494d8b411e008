"""Shared fixtures: archive builders, isolated settings and native paths."""

from __future__ import annotations

import textwrap
import zipfile
from pathlib import Path
from typing import Callable

import pytest

from model_archive.core.settings import ScratchSettings, Settings
from model_archive.runtime.loader_registry import LoaderRegistry
from model_archive.runtime.native_path import NativeLibraryPath

ECHO_LOADER_SOURCE = textwrap.dedent(
    '''
    from model_archive.core.contracts import BaseModelLoader, BaseScoringModel, Field


    class EchoModel(BaseScoringModel):
        def __init__(self, archive_path):
            self.archive_path = archive_path

        def score(self, record):
            return [sum(record)]

        def input(self):
            return [Field("x", "float"), Field("y", "float")]

        def output(self):
            return [Field("total", "float")]

        def metadata(self):
            return {"archive": str(self.archive_path), "source": __name__}


    class EchoLoader(BaseModelLoader):
        def load(self, archive_path):
            return EchoModel(archive_path)
    '''
)

ECHO_LOADER_ID = "echo_loader.EchoLoader"
ECHO_WHEEL_NAME = "echo_loader-0.1.0-py3-none-any.whl"


@pytest.fixture(autouse=True)
def _isolated_registry():
    saved = dict(LoaderRegistry._LOADERS)
    LoaderRegistry._LOADERS.clear()
    yield
    LoaderRegistry._LOADERS.clear()
    LoaderRegistry._LOADERS.update(saved)


@pytest.fixture
def make_wheel(tmp_path: Path) -> Callable[..., Path]:
    """Build a zip-importable wheel holding `package/__init__.py`."""

    def _make(
        name: str = ECHO_WHEEL_NAME,
        package: str = "echo_loader",
        source: str = ECHO_LOADER_SOURCE,
    ) -> Path:
        wheel_dir = tmp_path / "wheels"
        wheel_dir.mkdir(exist_ok=True)
        wheel_path = wheel_dir / name
        with zipfile.ZipFile(wheel_path, "w") as zf:
            zf.writestr(f"{package}/__init__.py", source)
        return wheel_path

    return _make


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    """Build a raw container from `(entry name, bytes)` pairs."""

    def _make(entries: list[tuple[str, bytes]], name: str = "raw.mar") -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as zf:
            for entry_name, content in entries:
                if entry_name.endswith("/"):
                    zf.writestr(zipfile.ZipInfo(entry_name), b"")
                else:
                    zf.writestr(entry_name, content)
        return path

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(scratch=ScratchSettings(directory=str(tmp_path / "scratch")))


@pytest.fixture
def native_path() -> NativeLibraryPath:
    return NativeLibraryPath(variable="LD_LIBRARY_PATH", environ={})
