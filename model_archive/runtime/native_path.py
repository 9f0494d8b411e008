"""Process-wide native library search path.

Directories holding `.so`/`.dll`/`.dylib` files extracted from archives are
merged into the platform search path variable. The path only grows: a
directory stays on it for the life of the process even after its scratch
directory is gone. `reset()` exists for callers that need a bounded
lifetime (tests, long-running servers that reload models).

Note: on Linux the dynamic linker reads `LD_LIBRARY_PATH` only at process
start, so loaders that open libraries themselves should use `locate()` and
pass the absolute path to `ctypes.CDLL`.
"""

from __future__ import annotations

import os
import sys
import threading
from pathlib import Path
from typing import Any, Iterable, MutableMapping

from model_archive.core.errors import NativePathUpdateError
from model_archive.observability.logger import get_logger

NATIVE_SUFFIXES = (".so", ".dll", ".dylib")

logger = get_logger("model-archive.native-path")


def default_variable_name(platform: str = sys.platform) -> str:
    if platform.startswith("win"):
        return "PATH"
    if platform == "darwin":
        return "DYLD_LIBRARY_PATH"
    return "LD_LIBRARY_PATH"


class NativeLibraryPath:
    """Owns the native search path variable; all merges go through a lock.

    Args:
        variable: Environment variable to manage. Defaults per platform.
        environ: Mapping to mutate. Defaults to `os.environ`.
        max_entries: Optional bound on the number of directories this
            instance may add.
    """

    def __init__(
        self,
        variable: str | None = None,
        environ: MutableMapping[str, str] | None = None,
        max_entries: int | None = None,
    ) -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.variable = variable or default_variable_name()
        self.environ: MutableMapping[str, str] = os.environ if environ is None else environ
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._added: list[str] = []
        self._dll_handles: list[Any] = []
        self._initial_value = self.environ.get(self.variable)

    def _current(self) -> list[str]:
        raw = self.environ.get(self.variable, "")
        return [part for part in raw.split(os.pathsep) if part]

    def directories(self) -> list[str]:
        """Directories merged by this instance, in merge order."""

        with self._lock:
            return list(self._added)

    def merge_directories(self, new_dirs: Iterable[str | Path]) -> list[str]:
        """Union `new_dirs` into the search path and return the new path list."""

        requested = sorted({str(Path(d).resolve()) for d in new_dirs})
        if not requested:
            return self._current()

        with self._lock:
            try:
                current = self._current()
                fresh = [d for d in requested if d not in current]
                bound = self.max_entries
                if bound is not None and len(self._added) + len(fresh) > bound:
                    raise NativePathUpdateError(
                        f"Native library path bound of {self.max_entries} directories exceeded",
                        directories=requested,
                        variable=self.variable,
                    )

                merged = current + fresh
                self.environ[self.variable] = os.pathsep.join(merged)
                if fresh and hasattr(os, "add_dll_directory") and self.environ is os.environ:
                    for directory in fresh:
                        self._dll_handles.append(os.add_dll_directory(directory))
            except NativePathUpdateError:
                raise
            except (OSError, TypeError, ValueError) as e:
                logger.error(
                    "Reading model failed due to failure to set %s: %s",
                    self.variable,
                    ",".join(requested),
                )
                raise NativePathUpdateError(
                    f"Failed to update native library path {self.variable}",
                    directories=requested,
                    variable=self.variable,
                ) from e

            self._added.extend(fresh)

        if fresh:
            logger.info("Added native library directories to %s: %s", self.variable, ",".join(fresh))
        return merged

    def locate(self, library_name: str) -> Path | None:
        """Find `library_name` (e.g. `libfoo.so` or `foo`) in merged directories."""

        candidates = [library_name]
        if not library_name.endswith(NATIVE_SUFFIXES):
            candidates += [
                f"{prefix}{library_name}{suffix}"
                for prefix in ("lib", "")
                for suffix in NATIVE_SUFFIXES
            ]

        for directory in self.directories():
            for name in candidates:
                path = Path(directory) / name
                if path.is_file():
                    return path
        return None

    def reset(self) -> None:
        """Restore the variable to the value seen at construction."""

        with self._lock:
            if self._initial_value is None:
                self.environ.pop(self.variable, None)
            else:
                self.environ[self.variable] = self._initial_value
            for handle in self._dll_handles:
                handle.close()
            self._dll_handles.clear()
            self._added.clear()


_default_path: NativeLibraryPath | None = None
_default_lock = threading.Lock()


def default_native_path() -> NativeLibraryPath:
    """Process-wide instance used by the resolver."""

    global _default_path
    with _default_lock:
        if _default_path is None:
            _default_path = NativeLibraryPath()
        return _default_path


def merge_directories(new_dirs: Iterable[str | Path]) -> list[str]:
    return default_native_path().merge_directories(new_dirs)
