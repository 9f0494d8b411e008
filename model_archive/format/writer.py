"""Archive writer.

Packs dependency files plus one descriptor entry into a zip container.
Entries are named by base filename, in input order; the descriptor is always
last.
"""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import IO, Iterable, Mapping

from model_archive.core.errors import ArchiveWriteError, DependencyWriteError
from model_archive.core.settings import Settings, default_settings
from model_archive.format import descriptor
from model_archive.observability.logger import get_logger

logger = get_logger("model-archive.writer")

_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}


_READ_CHUNK_SIZE = 64 * 1024


def _read_dependency(path: Path) -> bytes:
    chunks = []
    with open(path, "rb") as source:
        while True:
            chunk = source.read(_READ_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def _add_file_to_zip(zip_file: zipfile.ZipFile, path: Path) -> None:
    # The entry is only created once the whole file has been read.
    info = zipfile.ZipInfo.from_file(path, arcname=path.name)
    info.compress_type = zip_file.compression
    content = _read_dependency(path)
    zip_file.writestr(info, content)


def _add_bytes_to_zip(zip_file: zipfile.ZipFile, entry_name: str, content: bytes) -> None:
    zip_file.writestr(entry_name, content)


class ArchiveWriter:
    """Writes model archives.

    Args:
        settings: Source of the `write.strict` and `write.compression` defaults.
        strict: Overrides `write.strict`. When true, a dependency that fails
            to be added aborts the write with `DependencyWriteError`;
            otherwise the failure is logged and the file skipped.
        legacy_descriptor: Write the bare-text `modelReader.txt` descriptor
            understood by old readers instead of the JSON form.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        strict: bool | None = None,
        legacy_descriptor: bool = False,
    ) -> None:
        settings = settings or default_settings()
        self.strict = settings.write.strict if strict is None else strict
        self.compression = _COMPRESSION[settings.write.compression]
        self.legacy_descriptor = legacy_descriptor

    def _descriptor_entry(
        self,
        loader_identifier: str,
        extras: Mapping[str, str] | None,
    ) -> tuple[str, bytes]:
        if self.legacy_descriptor:
            if extras:
                raise ValueError("Legacy descriptors cannot carry extras")
            legacy_payload = descriptor.encode_legacy(loader_identifier)
            return descriptor.LEGACY_DESCRIPTOR_ENTRY_NAME, legacy_payload
        return descriptor.DESCRIPTOR_ENTRY_NAME, descriptor.encode(loader_identifier, extras)

    def _add_dependencies(
        self,
        zip_file: zipfile.ZipFile,
        dependency_files: Iterable[str | Path],
    ) -> int:
        added = 0
        for raw_path in dependency_files:
            path = Path(raw_path)
            if not path.exists() or path.is_dir():
                logger.debug("Skipping missing or directory dependency: %s", path)
                continue

            try:
                _add_file_to_zip(zip_file, path)
            except (OSError, ValueError, zipfile.LargeZipFile) as e:
                error = DependencyWriteError(
                    "Failed to add the given file to zip",
                    entry=path.name,
                    path=path,
                )
                if self.strict:
                    raise error from e
                logger.warning("%s: %s", error, e)
                continue
            added += 1
        return added

    def write(
        self,
        dependency_files: Iterable[str | Path],
        loader_identifier: str,
        destination: str | Path | IO[bytes],
        extras: Mapping[str, str] | None = None,
    ) -> None:
        """Write an archive to `destination` (a path or a writable binary stream).

        A stream passed in by the caller is finalized but left open; a path
        is opened and closed here.
        """

        entry_name, payload = self._descriptor_entry(loader_identifier, extras)

        try:
            zip_file = zipfile.ZipFile(destination, mode="w", compression=self.compression)
        except (OSError, ValueError) as e:
            logger.error("Writing model failed: %s", e)
            raise ArchiveWriteError(
                "Failed to open archive destination",
                destination=destination,
            ) from e

        try:
            added = self._add_dependencies(zip_file, dependency_files)
            _add_bytes_to_zip(zip_file, entry_name, payload)
        except Exception as e:
            logger.error("Writing model failed: %s", e)
            self._finalize(zip_file, destination)
            raise

        self._finalize(zip_file, destination)
        logger.info(
            "Wrote model archive with %d dependencies and loader %s",
            added,
            loader_identifier,
        )

    @staticmethod
    def _finalize(zip_file: zipfile.ZipFile, destination: object) -> None:
        try:
            zip_file.close()
        except (OSError, ValueError) as e:
            logger.error("Writing model failed: could not finalize archive: %s", e)
            raise ArchiveWriteError("Failed to finalize archive", destination=destination) from e


def write(
    dependency_files: Iterable[str | Path],
    loader_identifier: str,
    destination: str | Path | IO[bytes],
    *,
    extras: Mapping[str, str] | None = None,
    strict: bool | None = None,
    settings: Settings | None = None,
) -> None:
    """Pack `dependency_files` and a descriptor naming `loader_identifier`."""

    ArchiveWriter(settings=settings, strict=strict).write(
        dependency_files,
        loader_identifier,
        destination,
        extras=extras,
    )
