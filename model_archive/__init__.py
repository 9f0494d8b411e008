"""Model archive format (`.mar`).

`write` packs a model's dependencies and a descriptor naming its loader;
`read` extracts an archive, resolves that loader and returns the model it
builds.
"""

from model_archive.core.contracts import BaseModelLoader, BaseScoringModel, Field
from model_archive.core.errors import (
    ArchiveWriteError,
    DependencyWriteError,
    ExtractionIOError,
    LoaderInstantiationError,
    MissingOrMalformedDescriptorError,
    ModelArchiveError,
    NativePathUpdateError,
    UnresolvableLoaderError,
)
from model_archive.format.archive import ArchiveReader, inspect, read, write
from model_archive.runtime.loader_registry import LoaderRegistry, register_loader

__all__ = [
    "ArchiveReader",
    "ArchiveWriteError",
    "BaseModelLoader",
    "BaseScoringModel",
    "DependencyWriteError",
    "ExtractionIOError",
    "Field",
    "LoaderInstantiationError",
    "LoaderRegistry",
    "MissingOrMalformedDescriptorError",
    "ModelArchiveError",
    "NativePathUpdateError",
    "UnresolvableLoaderError",
    "inspect",
    "read",
    "register_loader",
    "write",
]
