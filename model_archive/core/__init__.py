"""
Core layer.

- Configuration (settings.py)
- Shared data types (types.py)
- Model / loader contracts (contracts.py)
- Error taxonomy (errors.py)
"""

from model_archive.core.contracts import BaseModelLoader, BaseScoringModel, Field
from model_archive.core.types import ArchiveEntry, Descriptor, EntryKind, ExtractionResult

__all__ = [
    "ArchiveEntry",
    "BaseModelLoader",
    "BaseScoringModel",
    "Descriptor",
    "EntryKind",
    "ExtractionResult",
    "Field",
]
