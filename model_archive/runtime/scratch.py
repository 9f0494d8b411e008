"""Scratch directories for archive extraction.

A base directory is resolved once (configured path or a fresh system temp
dir) and removed at interpreter exit. Each read then works in its own unique
subdirectory of that base, so concurrent reads never overwrite each other's
entries, and the subdirectory is removed when the read finishes unless
retention was requested.
"""

from __future__ import annotations

import atexit
import shutil
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from model_archive.core.errors import ExtractionIOError
from model_archive.observability.logger import get_logger

TEMP_PREFIX = "mar-"

logger = get_logger("model-archive.scratch")

_registered: set[Path] = set()
_registered_lock = threading.Lock()


def _remove_quietly(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)


def register_for_removal(path: Path) -> None:
    """Schedule `path` for removal at interpreter exit (once per path)."""

    resolved = path.resolve()
    with _registered_lock:
        if resolved in _registered:
            return
        _registered.add(resolved)
    atexit.register(_remove_quietly, resolved)


def resolve_scratch_directory(configured_path: str | Path | None = None) -> Path:
    """Return the base scratch directory.

    A configured path that exists or can be created is used as-is and is
    shared by every caller with the same configuration. Otherwise a uniquely
    named system temp directory is created.
    """

    scratch_dir: Path | None = None
    if configured_path:
        candidate = Path(configured_path)
        try:
            candidate.mkdir(parents=True, exist_ok=True)
            scratch_dir = candidate
        except OSError as e:
            logger.warning("Configured scratch directory %s is unusable: %s", candidate, e)

    if scratch_dir is None:
        try:
            scratch_dir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
        except OSError as e:
            logger.error("Failed to create temporary directory for extracting model: %s", e)
            raise ExtractionIOError(
                "Failed to create temporary directory for extracting model"
            ) from e

    logger.info("Installing model to temporary directory: %s", scratch_dir.resolve())
    register_for_removal(scratch_dir)
    return scratch_dir


class ScratchDirectoryManager:
    """Hands out one unique scratch directory per read call.

    Args:
        configured_path: Optional base directory (`scratch.directory`).
        retain: Keep per-read directories until interpreter exit instead of
            removing them when the read finishes.
    """

    def __init__(self, configured_path: str | Path | None = None, retain: bool = False) -> None:
        self.configured_path = configured_path
        self.retain = retain
        self._base_dir: Path | None = None
        self._lock = threading.Lock()

    @property
    def base_dir(self) -> Path:
        with self._lock:
            if self._base_dir is None or not self._base_dir.exists():
                self._base_dir = resolve_scratch_directory(self.configured_path)
            return self._base_dir

    @contextmanager
    def acquire(self) -> Iterator[Path]:
        try:
            scratch_dir = Path(tempfile.mkdtemp(prefix="read-", dir=self.base_dir))
        except OSError as e:
            raise ExtractionIOError(
                "Failed to create scratch directory",
                base_dir=self.base_dir,
            ) from e

        logger.debug("Acquired scratch directory %s", scratch_dir)
        try:
            yield scratch_dir
        finally:
            if self.retain:
                logger.debug("Retaining scratch directory %s until exit", scratch_dir)
            else:
                _remove_quietly(scratch_dir)
                logger.debug("Removed scratch directory %s", scratch_dir)


_managers: dict[tuple[str | None, bool], ScratchDirectoryManager] = {}
_managers_lock = threading.Lock()


def scratch_manager_for(
    configured_path: str | Path | None = None,
    retain: bool = False,
) -> ScratchDirectoryManager:
    """Shared manager per configuration, so reads reuse one base directory."""

    key = (str(configured_path) if configured_path else None, retain)
    with _managers_lock:
        manager = _managers.get(key)
        if manager is None:
            manager = ScratchDirectoryManager(configured_path, retain=retain)
            _managers[key] = manager
        return manager
