"""Read / write / inspect entry points for model archives (`.mar`)."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any

from model_archive.core.settings import Settings, default_settings
from model_archive.core.types import ArchiveEntry
from model_archive.format.extractor import ArchiveExtractor, list_entries
from model_archive.format.writer import write
from model_archive.observability.logger import get_logger
from model_archive.runtime.context import ResolutionContext
from model_archive.runtime.native_path import NativeLibraryPath
from model_archive.runtime.resolver import LoaderResolver
from model_archive.runtime.scratch import ScratchDirectoryManager, scratch_manager_for

ARCHIVE_SUFFIX = ".mar"

__all__ = ["ARCHIVE_SUFFIX", "ArchiveReader", "inspect", "read", "write"]

logger = get_logger("model-archive")


class ArchiveReader:
    """Reads models out of archives.

    Each `read` extracts into its own scratch directory. With
    `scratch.cleanup: read` (default) that directory is removed when the read
    returns; with `exit` it is kept until interpreter exit.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        native_path: NativeLibraryPath | None = None,
        scratch: ScratchDirectoryManager | None = None,
    ) -> None:
        self.settings = settings or default_settings()
        retain = self.settings.scratch.cleanup == "exit"
        self.scratch = scratch or scratch_manager_for(self.settings.scratch.directory, retain)
        self.resolver = LoaderResolver(native_path=native_path, retain_imports=self.scratch.retain)

    def read(
        self,
        archive_file: str | Path,
        parent_context: ResolutionContext | None = None,
        buffer_size: int | None = None,
    ) -> Any:
        archive_path = Path(archive_file)
        if buffer_size is None:
            buffer_size = self.settings.extract.buffer_size
        extractor = ArchiveExtractor(buffer_size)

        try:
            with self.scratch.acquire() as scratch_dir:
                result = extractor.extract(archive_path, scratch_dir)
                logger.info(
                    "Extracted %s: %d executable entries, %d native directories, loader %s",
                    archive_path,
                    len(result.executable_entries),
                    len(result.native_directories),
                    result.descriptor.loader_identifier,
                )
                return self.resolver.resolve(result, parent_context, archive_path)
        except Exception as e:
            logger.error("Reading model failed for %s: %s", archive_path, e)
            raise


def read(
    archive_file: str | Path,
    parent_context: ResolutionContext | None = None,
    buffer_size: int | None = None,
    *,
    settings: Settings | None = None,
) -> Any:
    """Load the model held by `archive_file`.

    `parent_context` defaults to the loader registry, entry-point plugins
    and then the host process's own modules.
    """

    return ArchiveReader(settings=settings).read(archive_file, parent_context, buffer_size)


def inspect(archive_file: str | Path | IO[bytes]) -> list[ArchiveEntry]:
    """List entries and their classification without extracting anything."""

    return list_entries(archive_file)
