"""Core data types shared by the writer, extractor and resolver.

Rules:
- entry names are base filenames; directory structure is not kept
- types are JSON-serializable via to_dict()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

LOADER_KEY = "modelLoaderClassName"


class EntryKind(str, Enum):
    EXECUTABLE = "executable"
    NATIVE = "native"
    DESCRIPTOR = "descriptor"
    OTHER = "other"


@dataclass(frozen=True)
class Descriptor:
    """The metadata entry naming the loader that rebuilds the model."""

    loader_identifier: str
    extras: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, str]:
        return {LOADER_KEY: self.loader_identifier, **self.extras}


@dataclass(frozen=True)
class ArchiveEntry:
    """One container entry.

    `name` is the base filename only. `content` stays empty when an entry
    is only listed, not extracted.
    """

    name: str
    kind: EntryKind
    size: int = 0
    content: bytes = b""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "kind": self.kind.value, "size": self.size}


@dataclass
class ExtractionResult:
    """Classified output of one extraction.

    Attributes:
        executable_entries: Import-path entries in container order
        native_directories: Directories holding native libraries
        descriptor: Decoded descriptor
        other_files: Opaque payload files
        scratch_dir: Directory the entries were written into
    """

    executable_entries: list[Path]
    native_directories: set[Path]
    descriptor: Descriptor
    other_files: set[Path]
    scratch_dir: Path

    def to_dict(self) -> dict[str, Any]:
        return {
            "executable_entries": [str(p) for p in self.executable_entries],
            "native_directories": sorted(str(p) for p in self.native_directories),
            "descriptor": self.descriptor.to_dict(),
            "other_files": sorted(str(p) for p in self.other_files),
            "scratch_dir": str(self.scratch_dir),
        }
