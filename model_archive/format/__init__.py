"""Container format: descriptor codec, writer, extractor."""

from model_archive.format.archive import ArchiveReader, inspect, read, write

__all__ = ["ArchiveReader", "inspect", "read", "write"]
