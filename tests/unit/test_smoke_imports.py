"""Smoke tests for package imports.

This module verifies that all key packages can be imported successfully.
It serves as a basic sanity check for the project structure.
"""

import pytest


@pytest.mark.unit
class TestSmokeImports:
    """Smoke tests to verify all key packages are importable."""

    def test_import_model_archive_package(self) -> None:
        """Test that the model_archive package can be imported."""
        import model_archive
        assert model_archive is not None

    def test_import_core(self) -> None:
        """Test that the core package can be imported."""
        from model_archive import core
        assert core is not None

    def test_import_format(self) -> None:
        """Test that the format package can be imported."""
        from model_archive import format
        assert format is not None

    def test_import_runtime(self) -> None:
        """Test that the runtime package can be imported."""
        from model_archive import runtime
        assert runtime is not None

    def test_import_observability(self) -> None:
        """Test that the observability package can be imported."""
        from model_archive import observability
        assert observability is not None

    def test_public_api(self) -> None:
        """Test that the top-level API is re-exported."""
        from model_archive import ArchiveReader, inspect, read, write
        assert callable(read) and callable(write) and callable(inspect)
        assert ArchiveReader is not None

    def test_import_cli(self) -> None:
        """Test that the command line entry can be imported."""
        import main
        assert callable(main.main)
