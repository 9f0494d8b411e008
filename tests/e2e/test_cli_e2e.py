"""E2E smoke tests for the command line entry."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

import main


def _settings_file(tmp_path: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(
        textwrap.dedent(
            f"""
            scratch:
              directory: {tmp_path / "scratch"}
              cleanup: read
            observability:
              log_level: WARNING
            """
        ),
        encoding="utf-8",
    )
    return path


def test_write_inspect_read(tmp_path, make_wheel, capsys):
    settings_path = str(_settings_file(tmp_path))
    archive = tmp_path / "echo.mar"

    main.main(
        [
            "--settings",
            settings_path,
            "write",
            str(make_wheel()),
            str(tmp_path / "missing.bin"),
            "--loader",
            "echo_loader.EchoLoader",
            "--output",
            str(archive),
        ]
    )
    assert archive.is_file()
    assert f"Wrote {archive}" in capsys.readouterr().out

    main.main(["--settings", settings_path, "inspect", str(archive)])
    listing = capsys.readouterr().out.splitlines()
    assert listing[0].startswith("executable")
    assert listing[0].endswith("echo_loader-0.1.0-py3-none-any.whl")
    assert listing[1].startswith("descriptor")
    assert len(listing) == 2

    main.main(["--settings", settings_path, "read", str(archive)])
    summary = json.loads(capsys.readouterr().out)
    assert summary["model"] == "EchoModel"
    assert summary["input"] == [
        {"name": "x", "data_type": "float"},
        {"name": "y", "data_type": "float"},
    ]
    assert summary["metadata"]["archive"] == str(archive)


def test_read_missing_archive_exits_nonzero(tmp_path):
    settings_path = str(_settings_file(tmp_path))

    with pytest.raises(SystemExit) as exc_info:
        main.main(["--settings", settings_path, "read", str(tmp_path / "missing.mar")])

    assert exc_info.value.code == 1


def test_invalid_settings_exit_nonzero(tmp_path):
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text("scratch:\n  cleanup: never\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        main.main(["--settings", str(settings_path), "inspect", str(tmp_path / "a.mar")])

    assert exc_info.value.code == 1
