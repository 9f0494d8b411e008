"""Archive extractor.

Unpacks every container entry into a scratch directory, flattening names to
their base filename, and sorts the results by role:

1. import-path entries (`.jar`, `.whl`, `.egg`, `.pyz`, `.py`)
2. native libraries (`.so`, `.dll`, `.dylib`), reported by directory
3. the descriptor (`modelReader*`)
4. everything else, left uninterpreted

Matching is a case-sensitive substring test on the entry name and the first
matching rule wins. Two entries with the same base name overwrite each
other; the later one in container order is what ends up on disk.
"""

from __future__ import annotations

import zipfile
import zlib
from pathlib import Path
from typing import IO

from model_archive.core.errors import ExtractionIOError, MissingOrMalformedDescriptorError
from model_archive.core.settings import DEFAULT_BUFFER_SIZE
from model_archive.core.types import ArchiveEntry, Descriptor, EntryKind, ExtractionResult
from model_archive.format import descriptor as descriptor_codec
from model_archive.observability.logger import get_logger

EXECUTABLE_MARKERS = (".jar", ".whl", ".egg", ".pyz", ".py")
NATIVE_MARKERS = (".so", ".dll", ".dylib")

_READ_ERRORS = (OSError, EOFError, zipfile.BadZipFile, zlib.error)

logger = get_logger("model-archive.extractor")


def classify(entry_name: str) -> EntryKind:
    if any(marker in entry_name for marker in EXECUTABLE_MARKERS):
        return EntryKind.EXECUTABLE
    if any(marker in entry_name for marker in NATIVE_MARKERS):
        return EntryKind.NATIVE
    if descriptor_codec.is_descriptor_name(entry_name):
        return EntryKind.DESCRIPTOR
    return EntryKind.OTHER


def base_name(entry_name: str) -> str:
    """Last path component of a container entry name (`/` or `\\` separated)."""

    return entry_name.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]


def directory_path(path: Path) -> Path:
    """A directory stands for itself; a file for its parent directory."""

    if path.is_dir():
        return path.resolve()
    return path.resolve().parent


def _archive_label(archive: str | Path | IO[bytes]) -> str:
    if isinstance(archive, (str, Path)):
        return str(archive)
    return str(getattr(archive, "name", "<stream>"))


def _copy_entry(
    zip_file: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    target: Path,
    buffer_size: int,
) -> None:
    with zip_file.open(info) as source, target.open("wb") as sink:
        while True:
            chunk = source.read(buffer_size)
            if not chunk:
                break
            sink.write(chunk)


def extract_entry(
    zip_file: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    scratch_dir: Path,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> Path:
    """Write one entry to `scratch_dir/<base name>` and return its path."""

    name = base_name(info.filename)
    if name in ("", ".", ".."):
        raise ExtractionIOError("Invalid entry name in archive", entry=info.filename)

    target = scratch_dir / name
    try:
        if info.is_dir():
            target.mkdir(parents=True, exist_ok=True)
        else:
            _copy_entry(zip_file, info, target, buffer_size)
    except _READ_ERRORS as e:
        logger.error("Reading model failed due to error extracting file: %s", info.filename)
        raise ExtractionIOError(
            "Failed to extract archive entry",
            entry=info.filename,
            target=target,
        ) from e
    return target


class ArchiveExtractor:
    """Extracts and classifies archive entries.

    Args:
        buffer_size: Read/write chunk size used while copying entries.
    """

    def __init__(self, buffer_size: int | None = None) -> None:
        size = DEFAULT_BUFFER_SIZE if buffer_size is None else buffer_size
        if size <= 0:
            raise ValueError("buffer_size must be positive")
        self.buffer_size = size

    def extract(
        self,
        archive: str | Path | IO[bytes],
        scratch_dir: str | Path,
    ) -> ExtractionResult:
        scratch = Path(scratch_dir)
        label = _archive_label(archive)

        executable_entries: list[Path] = []
        native_directories: set[Path] = set()
        other_files: set[Path] = set()
        descriptors: list[tuple[str, Descriptor]] = []

        try:
            with zipfile.ZipFile(archive) as zip_file:
                for info in zip_file.infolist():
                    path = extract_entry(zip_file, info, scratch, self.buffer_size)
                    kind = classify(info.filename)
                    logger.debug("Extracted %s as %s", info.filename, kind.value)

                    if kind is EntryKind.EXECUTABLE:
                        if path not in executable_entries:
                            executable_entries.append(path)
                    elif kind is EntryKind.NATIVE:
                        native_directories.add(directory_path(path))
                    elif kind is EntryKind.DESCRIPTOR and not info.is_dir():
                        try:
                            decoded = descriptor_codec.decode(path.read_bytes())
                        except MissingOrMalformedDescriptorError as e:
                            e.context.update(archive=label, entry=info.filename)
                            raise
                        descriptors.append((info.filename, decoded))
                    else:
                        other_files.add(path)
        except ExtractionIOError as e:
            e.context.setdefault("archive", label)
            raise
        except _READ_ERRORS as e:
            logger.error("Reading model failed: cannot read archive %s", label)
            raise ExtractionIOError("Failed to read archive", archive=label) from e

        if not descriptors:
            raise MissingOrMalformedDescriptorError(
                "Archive has no descriptor entry",
                archive=label,
            )
        if len(descriptors) > 1:
            raise MissingOrMalformedDescriptorError(
                "Archive has more than one descriptor entry",
                archive=label,
                entries=",".join(name for name, _ in descriptors),
            )

        return ExtractionResult(
            executable_entries=executable_entries,
            native_directories=native_directories,
            descriptor=descriptors[0][1],
            other_files=other_files,
            scratch_dir=scratch,
        )


def extract(
    archive: str | Path | IO[bytes],
    scratch_dir: str | Path,
    buffer_size: int | None = None,
) -> ExtractionResult:
    return ArchiveExtractor(buffer_size).extract(archive, scratch_dir)


def list_entries(archive: str | Path | IO[bytes]) -> list[ArchiveEntry]:
    """Classify entries without extracting them."""

    label = _archive_label(archive)
    try:
        with zipfile.ZipFile(archive) as zip_file:
            return [
                ArchiveEntry(
                    name=base_name(info.filename),
                    kind=classify(info.filename),
                    size=info.file_size,
                )
                for info in zip_file.infolist()
            ]
    except _READ_ERRORS as e:
        raise ExtractionIOError("Failed to read archive", archive=label) from e
