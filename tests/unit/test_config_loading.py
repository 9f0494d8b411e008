"""Tests for settings loading and validation."""

from __future__ import annotations

from pathlib import Path
import textwrap

import pytest

from model_archive.core.settings import (
    DEFAULT_BUFFER_SIZE,
    SettingsError,
    default_settings,
    load_settings,
    parse_settings,
)


def _write_yaml(path: Path, content: str) -> None:
    path.write_text(textwrap.dedent(content).strip() + "\n", encoding="utf-8")


def test_load_settings_success(tmp_path: Path) -> None:
    config = """
    scratch:
      directory: ./data/scratch
      cleanup: exit
    extract:
      buffer_size: 65536
    write:
      strict: true
      compression: stored
    observability:
      log_level: DEBUG
    """
    settings_path = tmp_path / "settings.yaml"
    _write_yaml(settings_path, config)

    settings = load_settings(settings_path)

    assert settings.scratch.directory == "./data/scratch"
    assert settings.scratch.cleanup == "exit"
    assert settings.extract.buffer_size == 65536
    assert settings.write.strict is True
    assert settings.write.compression == "stored"
    assert settings.observability.log_level == "DEBUG"


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text("", encoding="utf-8")

    assert load_settings(settings_path) == default_settings()


def test_defaults() -> None:
    settings = default_settings()

    assert settings.scratch.directory is None
    assert settings.scratch.cleanup == "read"
    assert settings.extract.buffer_size == DEFAULT_BUFFER_SIZE
    assert settings.write.strict is False
    assert settings.write.compression == "deflated"


def test_partial_sections_keep_defaults() -> None:
    settings = parse_settings({"write": {"strict": True}})

    assert settings.write.strict is True
    assert settings.write.compression == "deflated"
    assert settings.scratch.cleanup == "read"


def test_enumerations_are_case_insensitive() -> None:
    settings = parse_settings({"scratch": {"cleanup": "EXIT"}, "write": {"compression": "Stored"}})

    assert settings.scratch.cleanup == "exit"
    assert settings.write.compression == "stored"


def test_repo_settings_file_is_valid() -> None:
    settings = load_settings(Path(__file__).parents[2] / "config" / "settings.yaml")

    assert settings.scratch.cleanup in ("read", "exit")


def test_missing_file_raises_error(tmp_path: Path) -> None:
    with pytest.raises(SettingsError, match="Settings file not found"):
        load_settings(tmp_path / "missing.yaml")


def test_invalid_yaml_raises_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text("scratch: [unclosed\n", encoding="utf-8")

    with pytest.raises(SettingsError, match="Invalid YAML"):
        load_settings(settings_path)


@pytest.mark.parametrize(
    "raw, message",
    [
        (["not", "a", "mapping"], "Invalid settings root"),
        ({"scratch": "tmp"}, "Invalid section type: scratch"),
        ({"scratch": {"cleanup": "never"}}, "scratch.cleanup"),
        ({"scratch": {"directory": ""}}, "scratch.directory"),
        ({"extract": {"buffer_size": 0}}, "extract.buffer_size"),
        ({"extract": {"buffer_size": "4k"}}, "extract.buffer_size"),
        ({"extract": {"buffer_size": True}}, "extract.buffer_size"),
        ({"write": {"strict": "yes"}}, "write.strict"),
        ({"write": {"compression": "bzip2"}}, "write.compression"),
        ({"observability": {"log_level": 10}}, "observability.log_level"),
        ({"observability": {"log_level": "LOUD"}}, "observability.log_level"),
    ],
)
def test_invalid_values_raise_error(raw, message) -> None:
    with pytest.raises(SettingsError, match=message):
        parse_settings(raw)


def test_log_level_is_normalized() -> None:
    assert parse_settings({"observability": {"log_level": "debug"}}).observability.log_level == "DEBUG"
