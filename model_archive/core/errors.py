"""Error taxonomy for archive read/write.

Every error carries a `context` mapping (archive path, loader identifier,
entry name where known) so a failed read can be diagnosed from the message
alone.
"""

from __future__ import annotations

from typing import Any, Iterable


class ModelArchiveError(Exception):
    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"

    def to_dict(self) -> dict[str, object]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "context": {key: str(value) for key, value in self.context.items()},
        }


class MissingOrMalformedDescriptorError(ModelArchiveError):
    """No descriptor entry, more than one, or neither encoding decodes."""


class UnresolvableLoaderError(ModelArchiveError):
    """The loader identifier is unknown to the combined resolution context."""


class LoaderInstantiationError(ModelArchiveError):
    """The loader was found but constructing it failed."""


class ExtractionIOError(ModelArchiveError):
    """Reading the container or writing an extracted entry failed."""


class NativePathUpdateError(ModelArchiveError):
    def __init__(self, message: str, directories: Iterable[str] = (), **context: Any) -> None:
        self.directories = sorted(str(d) for d in directories)
        super().__init__(message, directories=",".join(self.directories) or None, **context)


class DependencyWriteError(ModelArchiveError):
    """A single dependency file could not be added to the container."""


class ArchiveWriteError(ModelArchiveError):
    """The container could not be finalized."""
