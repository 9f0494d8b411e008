"""Loader resolver.

Turns an `ExtractionResult` into a model:

1. build an `ArchiveContext` over the executable entries, chained to the
   caller's parent context
2. resolve the descriptor's loader identifier to a zero-argument factory
3. construct the loader
4. merge native library directories into the process search path
5. hand the original archive path to `loader.load` and return its model

Exceptions raised by `loader.load` reach the caller unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from model_archive.core.contracts import is_model_loader
from model_archive.core.errors import LoaderInstantiationError, UnresolvableLoaderError
from model_archive.core.types import ExtractionResult
from model_archive.observability.logger import get_logger
from model_archive.runtime.context import ArchiveContext, ResolutionContext, default_context
from model_archive.runtime.native_path import NativeLibraryPath, default_native_path

logger = get_logger("model-archive.resolver")


class LoaderResolver:
    """Resolves and invokes the loader named by an archive's descriptor.

    Args:
        native_path: Native search path manager. Defaults to the process-wide one.
        retain_imports: Leave the archive import finder installed after
            `resolve` returns, for models that import archive code lazily.
            Only sensible when the scratch directory outlives the read.
    """

    def __init__(
        self,
        native_path: NativeLibraryPath | None = None,
        retain_imports: bool = False,
    ) -> None:
        self.native_path = native_path
        self.retain_imports = retain_imports

    def build_context(
        self,
        result: ExtractionResult,
        parent_context: ResolutionContext | None = None,
    ) -> ArchiveContext:
        parent = parent_context if parent_context is not None else default_context()
        return ArchiveContext(result.executable_entries, parent=parent)

    def instantiate(self, context: ResolutionContext, identifier: str) -> Any:
        factory = context.resolve(identifier)
        if not callable(factory):
            raise LoaderInstantiationError("Loader is not callable", loader=identifier)

        try:
            loader = factory()
        except Exception as e:  # noqa: BLE001
            raise LoaderInstantiationError(
                f"Failed to instantiate loader: {e}",
                loader=identifier,
            ) from e

        if not is_model_loader(loader):
            raise LoaderInstantiationError(
                f"Loader does not implement load(): {type(loader).__name__}",
                loader=identifier,
            )
        return loader

    def resolve(
        self,
        result: ExtractionResult,
        parent_context: ResolutionContext | None,
        archive_path: Path,
    ) -> Any:
        identifier = result.descriptor.loader_identifier
        context = self.build_context(result, parent_context)
        try:
            try:
                loader = self.instantiate(context, identifier)
            except (UnresolvableLoaderError, LoaderInstantiationError) as e:
                e.context.setdefault("archive", archive_path)
                raise

            logger.info("Resolved loader %s for %s", identifier, archive_path)
            native_path = self.native_path or default_native_path()
            native_path.merge_directories(result.native_directories)
            return loader.load(archive_path)
        finally:
            if not self.retain_imports:
                context.close()


def resolve(
    result: ExtractionResult,
    parent_context: ResolutionContext | None,
    archive_path: Path,
) -> Any:
    return LoaderResolver().resolve(result, parent_context, archive_path)
