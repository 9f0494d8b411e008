"""Runtime support for reading archives.

Resolution contexts, the loader registry, native library path handling and
scratch directories.
"""

from model_archive.runtime.context import (
    ArchiveContext,
    ImportContext,
    RegistryContext,
    ResolutionContext,
    default_context,
)
from model_archive.runtime.loader_registry import LoaderRegistry, register_loader
from model_archive.runtime.native_path import NativeLibraryPath
from model_archive.runtime.resolver import LoaderResolver
from model_archive.runtime.scratch import ScratchDirectoryManager, resolve_scratch_directory

__all__ = [
    "ArchiveContext",
    "ImportContext",
    "LoaderRegistry",
    "LoaderResolver",
    "NativeLibraryPath",
    "RegistryContext",
    "ResolutionContext",
    "ScratchDirectoryManager",
    "default_context",
    "register_loader",
    "resolve_scratch_directory",
]
