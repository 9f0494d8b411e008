"""Model and loader contracts consumed at the archive boundary.

An archive is only useful together with a loader that understands its
payload. Loaders and models are written by whoever publishes a model; this
module only fixes the shape both must have:

- `BaseModelLoader.load(archive_path)` turns an archive into a model.
- `BaseScoringModel` exposes `score` / `input` / `output` / `metadata`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence


@dataclass(frozen=True)
class Field:
    """A named, typed column of a model's input or output record."""

    name: str
    data_type: str


class BaseScoringModel(ABC):
    """A scoreable unit reconstructed from an archive."""

    @abstractmethod
    def score(self, record: Sequence[Any]) -> Sequence[Any]:
        """Score one input record and return the output record."""

    @abstractmethod
    def input(self) -> list[Field]:
        """Fields expected by `score`, in record order."""

    @abstractmethod
    def output(self) -> list[Field]:
        """Fields produced by `score`, in record order."""

    @abstractmethod
    def metadata(self) -> Mapping[str, Any]:
        """Free-form description of the model."""


class BaseModelLoader(ABC):
    """Rebuilds a model from an archive.

    Implementations are instantiated with no arguments by the resolver, so
    any setup belongs in `load`.
    """

    @abstractmethod
    def load(self, archive_path: Path) -> BaseScoringModel:
        """Read `archive_path` and return the model it holds."""


def is_model_loader(candidate: object) -> bool:
    if isinstance(candidate, BaseModelLoader):
        return True
    return callable(getattr(candidate, "load", None))
