"""Command line entry for writing, inspecting and reading model archives."""

from __future__ import annotations

import argparse
import json

from model_archive.core.errors import ModelArchiveError
from model_archive.core.settings import Settings, SettingsError, default_settings, load_settings
from model_archive.format.archive import ArchiveReader, inspect, write
from model_archive.observability.logger import configure_logging, get_logger


def _load(path: str | None) -> Settings:
    if path is None:
        return default_settings()
    return load_settings(path)


def _cmd_write(args: argparse.Namespace, settings: Settings) -> None:
    with open(args.output, "wb") as destination:
        write(
            args.files,
            args.loader,
            destination,
            strict=True if args.strict else None,
            settings=settings,
        )
    print(f"Wrote {args.output}")


def _cmd_inspect(args: argparse.Namespace, settings: Settings) -> None:
    for entry in inspect(args.archive):
        print(f"{entry.kind.value:<11} {entry.size:>10}  {entry.name}")


def _cmd_read(args: argparse.Namespace, settings: Settings) -> None:
    model = ArchiveReader(settings=settings).read(args.archive)
    summary = {
        "model": type(model).__name__,
        "input": [vars(field) for field in model.input()],
        "output": [vars(field) for field in model.output()],
        "metadata": dict(model.metadata()),
    }
    print(json.dumps(summary, ensure_ascii=False, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Model archive (.mar) tool")
    parser.add_argument("--settings", default=None, help="Settings file path")
    sub = parser.add_subparsers(dest="command", required=True)

    write_parser = sub.add_parser("write", help="Pack dependency files into an archive")
    write_parser.add_argument("files", nargs="*", help="Dependency files (missing files are skipped)")
    write_parser.add_argument("--loader", required=True, help="Loader identifier for the descriptor")
    write_parser.add_argument("--output", required=True, help="Destination .mar path")
    write_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when a dependency cannot be added instead of skipping it",
    )
    write_parser.set_defaults(handler=_cmd_write)

    inspect_parser = sub.add_parser("inspect", help="List entries and their classification")
    inspect_parser.add_argument("archive")
    inspect_parser.set_defaults(handler=_cmd_inspect)

    read_parser = sub.add_parser("read", help="Load the model and print its signature")
    read_parser.add_argument("archive")
    read_parser.set_defaults(handler=_cmd_read)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        settings = _load(args.settings)
    except SettingsError as e:
        get_logger("model-archive.cli").error(str(e))
        raise SystemExit(1) from e

    configure_logging(settings.observability.log_level)
    logger = get_logger("model-archive.cli", settings.observability.log_level)

    try:
        args.handler(args, settings)
    except ModelArchiveError as e:
        logger.error(str(e))
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        raise SystemExit(130)


if __name__ == "__main__":
    main()
