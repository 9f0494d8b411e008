"""Resolution contexts: where a loader identifier is looked up.

Contexts form a chain. Each one first searches its own scope and then
defers to its parent:

- `ArchiveContext`: code shipped inside the archive (wheels, eggs, jars,
  `.pyz` and loose `.py` files), imported through a finder scoped to the
  archive's extracted entries
- `RegistryContext`: loaders registered explicitly in `LoaderRegistry`, then
  plugins advertised under the `model_archive.loaders` entry-point group
- `ImportContext`: modules importable by the host process itself

Identifiers are either `package.module:Attr` or dotted `package.module.Attr`.
"""

from __future__ import annotations

import importlib
import importlib.machinery
import sys
import threading
import uuid
from abc import ABC, abstractmethod
from importlib.metadata import entry_points
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable, Iterator

from model_archive.core.errors import UnresolvableLoaderError
from model_archive.observability.logger import get_logger
from model_archive.runtime.loader_registry import LoaderFactory, LoaderRegistry

ENTRY_POINT_GROUP = "model_archive.loaders"

logger = get_logger("model-archive.context")

_meta_path_lock = threading.RLock()
# module name -> token of the ArchiveContext that imported it
_module_owners: dict[str, str] = {}


def candidate_splits(identifier: str) -> Iterator[tuple[str, str]]:
    """Yield `(module, attribute path)` pairs to try for `identifier`.

    `a.b:C.D` has exactly one split. A dotted name is tried from the
    longest module prefix down, so `a.b.C` yields `("a.b", "C")` then
    `("a", "b.C")`.
    """

    identifier = identifier.strip()
    if ":" in identifier:
        module, _, attr = identifier.partition(":")
        if module and attr:
            yield module, attr
        return

    parts = identifier.split(".")
    for index in range(len(parts) - 1, 0, -1):
        yield ".".join(parts[:index]), ".".join(parts[index:])


def _get_attr_path(module: ModuleType, attr_path: str) -> Any | None:
    target: Any = module
    for attr in attr_path.split("."):
        target = getattr(target, attr, None)
        if target is None:
            return None
    return target


def _is_missing_module(error: ModuleNotFoundError, module_name: str) -> bool:
    missing = error.name or ""
    return module_name == missing or module_name.startswith(missing + ".")


class ResolutionContext(ABC):
    """A scope in which loader identifiers are resolved to factories."""

    def __init__(self, parent: ResolutionContext | None = None) -> None:
        self.parent = parent

    @abstractmethod
    def find_local(self, identifier: str) -> LoaderFactory | None:
        """Look `identifier` up in this context only."""

    def find(self, identifier: str) -> LoaderFactory | None:
        factory = self.find_local(identifier)
        if factory is None and self.parent is not None:
            return self.parent.find(identifier)
        return factory

    def resolve(self, identifier: str) -> LoaderFactory:
        factory = self.find(identifier)
        if factory is None:
            raise UnresolvableLoaderError(
                "Loader not found in resolution context",
                loader=identifier,
            )
        return factory


class ImportContext(ResolutionContext):
    """Resolves identifiers against the host process's import path."""

    def _import(self, module_name: str) -> ModuleType | None:
        try:
            return importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if _is_missing_module(e, module_name):
                return None
            raise UnresolvableLoaderError(
                "Failed to import loader module",
                loader_module=module_name,
            ) from e
        except Exception as e:  # noqa: BLE001
            raise UnresolvableLoaderError(
                "Failed to import loader module",
                loader_module=module_name,
            ) from e

    def find_local(self, identifier: str) -> LoaderFactory | None:
        for module_name, attr_path in candidate_splits(identifier):
            module = self._import(module_name)
            if module is None:
                continue
            target = _get_attr_path(module, attr_path)
            if target is not None:
                return target
        return None


class RegistryContext(ResolutionContext):
    """Resolves identifiers from `LoaderRegistry` and entry-point plugins."""

    def __init__(
        self,
        parent: ResolutionContext | None = None,
        entry_point_group: str | None = ENTRY_POINT_GROUP,
    ) -> None:
        super().__init__(parent)
        self.entry_point_group = entry_point_group

    def _find_entry_point(self, identifier: str) -> LoaderFactory | None:
        if not self.entry_point_group:
            return None
        for entry_point in entry_points(group=self.entry_point_group):
            if identifier not in (entry_point.name, entry_point.value):
                continue
            try:
                return entry_point.load()
            except Exception as e:  # noqa: BLE001
                raise UnresolvableLoaderError(
                    "Failed to load loader plugin",
                    loader=identifier,
                    entry_point=entry_point.value,
                ) from e
        return None

    def find_local(self, identifier: str) -> LoaderFactory | None:
        factory = LoaderRegistry.get(identifier)
        if factory is not None:
            return factory
        return self._find_entry_point(identifier.strip())


class _ArchivePathFinder:
    """Meta path finder answering top-level imports from archive entries."""

    def __init__(self, search_path: list[str]) -> None:
        self.search_path = search_path

    def find_spec(
        self,
        fullname: str,
        path: Any = None,
        target: ModuleType | None = None,
    ) -> importlib.machinery.ModuleSpec | None:
        if path is not None:
            # Submodules resolve through their package's __path__.
            return None
        return importlib.machinery.PathFinder.find_spec(fullname, self.search_path)

    def invalidate_caches(self) -> None:
        for entry in self.search_path:
            sys.path_importer_cache.pop(entry, None)


def _search_path(entries: Iterable[str | Path]) -> list[str]:
    path: list[str] = []
    for entry in entries:
        entry_path = Path(entry)
        # A loose module is importable from the directory holding it.
        location = entry_path.parent if entry_path.suffix == ".py" else entry_path
        text = str(location)
        if text not in path:
            path.append(text)
    return path


class ArchiveContext(ResolutionContext):
    """Resolves identifiers from an archive's executable entries first.

    The archive finder is installed on `sys.meta_path` on the first local
    hit and stays there until `close()`, so loader code can keep importing
    its own dependencies while it runs. Modules imported from another
    archive under the same name are dropped from `sys.modules` before a
    local import, giving each archive its own copy. A host module with the
    same name is set aside for as long as the context is open and put back
    by `close()`; a context left open keeps the archive's copy in place.
    """

    def __init__(
        self,
        executable_entries: Iterable[str | Path],
        parent: ResolutionContext | None = None,
    ) -> None:
        super().__init__(parent)
        self.search_path = _search_path(executable_entries)
        self._finder = _ArchivePathFinder(self.search_path)
        self._token = uuid.uuid4().hex
        self._installed = False
        self._displaced: dict[str, ModuleType] = {}

    def __enter__(self) -> "ArchiveContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _install(self) -> None:
        with _meta_path_lock:
            # Keep this archive ahead of finders installed by concurrent reads.
            if self._installed:
                sys.meta_path.remove(self._finder)
            sys.meta_path.insert(0, self._finder)
            self._installed = True

    def close(self) -> None:
        with _meta_path_lock:
            if self._installed:
                sys.meta_path.remove(self._finder)
                self._installed = False
            self._finder.invalidate_caches()
            self._restore_displaced()

    def _is_local(self, top_level: str) -> bool:
        if not self.search_path:
            return False
        return self._finder.find_spec(top_level) is not None

    def _claim(self, top_level: str) -> None:
        prefix = top_level + "."
        for name in list(sys.modules):
            if name != top_level and not name.startswith(prefix):
                continue
            owner = _module_owners.get(name)
            if owner == self._token:
                continue
            module = sys.modules.pop(name, None)
            if module is None:
                continue
            if owner is None:
                self._displaced.setdefault(name, module)
            else:
                del _module_owners[name]

    def _restore_displaced(self) -> None:
        if not self._displaced:
            return
        top_levels = {name.split(".", 1)[0] for name in self._displaced}
        for name in list(sys.modules):
            if name.split(".", 1)[0] not in top_levels:
                continue
            if _module_owners.get(name) == self._token:
                del sys.modules[name]
                del _module_owners[name]
        sys.modules.update(self._displaced)
        self._displaced.clear()

    def _record_owner(self, top_level: str) -> None:
        prefix = top_level + "."
        for name in list(sys.modules):
            if name == top_level or name.startswith(prefix):
                _module_owners.setdefault(name, self._token)

    def find_local(self, identifier: str) -> LoaderFactory | None:
        for module_name, attr_path in candidate_splits(identifier):
            top_level = module_name.split(".", 1)[0]
            if not self._is_local(top_level):
                continue

            with _meta_path_lock:
                self._install()
                self._claim(top_level)
                try:
                    module = importlib.import_module(module_name)
                except ModuleNotFoundError as e:
                    if _is_missing_module(e, module_name):
                        continue
                    raise UnresolvableLoaderError(
                        "Failed to import loader module from archive",
                        loader_module=module_name,
                    ) from e
                except Exception as e:  # noqa: BLE001
                    raise UnresolvableLoaderError(
                        "Failed to import loader module from archive",
                        loader_module=module_name,
                    ) from e
                finally:
                    self._record_owner(top_level)

            target = _get_attr_path(module, attr_path)
            if target is not None:
                logger.debug("Resolved %s from archive entries", identifier)
                return target
        return None


def default_context() -> ResolutionContext:
    """Registry and plugins first, then the host process's own modules."""

    return RegistryContext(parent=ImportContext())
