"""Settings loading and validation.

Design principles:
- Fail-fast: invalid fields raise a readable error that includes field path
- Every section is optional; `default_settings()` mirrors an empty file
- No side effects: this module only parses/validates configuration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

CLEANUP_MODES = ("read", "exit")
COMPRESSION_MODES = ("deflated", "stored")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
DEFAULT_BUFFER_SIZE = 4096


class SettingsError(ValueError):
    """Raised when settings are missing or invalid."""


@dataclass(frozen=True)
class ScratchSettings:
    directory: str | None = None
    cleanup: str = "read"


@dataclass(frozen=True)
class ExtractSettings:
    buffer_size: int = DEFAULT_BUFFER_SIZE


@dataclass(frozen=True)
class WriteSettings:
    strict: bool = False
    compression: str = "deflated"


@dataclass(frozen=True)
class ObservabilitySettings:
    log_level: str = "INFO"


@dataclass(frozen=True)
class Settings:
    scratch: ScratchSettings = field(default_factory=ScratchSettings)
    extract: ExtractSettings = field(default_factory=ExtractSettings)
    write: WriteSettings = field(default_factory=WriteSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)


def _optional_section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SettingsError(f"Invalid section type: {key}")
    return value


def _as_str(value: Any, path: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"Invalid value for {path}: expected non-empty string")
    return value


def _as_optional_str(value: Any, path: str) -> str | None:
    if value is None:
        return None
    return _as_str(value, path)


def _as_int(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SettingsError(f"Invalid value for {path}: expected int")
    return value


def _as_bool(value: Any, path: str) -> bool:
    if not isinstance(value, bool):
        raise SettingsError(f"Invalid value for {path}: expected bool")
    return value


def validate_settings(settings: Settings) -> None:
    """Validate enumerations and basic invariants."""

    if settings.scratch.cleanup not in CLEANUP_MODES:
        raise SettingsError(
            f"Invalid value for scratch.cleanup: expected one of {', '.join(CLEANUP_MODES)}"
        )
    if settings.extract.buffer_size <= 0:
        raise SettingsError("Invalid value for extract.buffer_size: expected positive int")
    if settings.write.compression not in COMPRESSION_MODES:
        raise SettingsError(
            "Invalid value for write.compression: "
            f"expected one of {', '.join(COMPRESSION_MODES)}"
        )
    if settings.observability.log_level not in LOG_LEVELS:
        raise SettingsError(
            "Invalid value for observability.log_level: "
            f"expected one of {', '.join(LOG_LEVELS)}"
        )


def default_settings() -> Settings:
    return Settings()


def parse_settings(raw_obj: Any, source: str = "<memory>") -> Settings:
    """Build `Settings` from an already-parsed mapping."""

    if raw_obj is None:
        raw_obj = {}
    if not isinstance(raw_obj, Mapping):
        raise SettingsError(f"Invalid settings root: expected mapping in {source}")

    scratch_raw = _optional_section(raw_obj, "scratch")
    extract_raw = _optional_section(raw_obj, "extract")
    write_raw = _optional_section(raw_obj, "write")
    observability_raw = _optional_section(raw_obj, "observability")

    scratch = ScratchSettings(
        directory=_as_optional_str(scratch_raw.get("directory"), "scratch.directory"),
        cleanup=_as_str(scratch_raw.get("cleanup", "read"), "scratch.cleanup").strip().lower(),
    )
    extract = ExtractSettings(
        buffer_size=_as_int(
            extract_raw.get("buffer_size", DEFAULT_BUFFER_SIZE),
            "extract.buffer_size",
        ),
    )
    write = WriteSettings(
        strict=_as_bool(write_raw.get("strict", False), "write.strict"),
        compression=_as_str(
            write_raw.get("compression", "deflated"),
            "write.compression",
        ).strip().lower(),
    )
    observability = ObservabilitySettings(
        log_level=_as_str(
            observability_raw.get("log_level", "INFO"),
            "observability.log_level",
        ).strip().upper(),
    )

    settings = Settings(
        scratch=scratch,
        extract=extract,
        write=write,
        observability=observability,
    )

    validate_settings(settings)
    return settings


def load_settings(path: str | Path) -> Settings:
    """Load settings from a YAML file."""

    settings_path = Path(path)
    if not settings_path.exists():
        raise SettingsError(f"Settings file not found: {settings_path}")

    try:
        raw_obj = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in settings file: {settings_path}") from e

    return parse_settings(raw_obj, source=str(settings_path))
