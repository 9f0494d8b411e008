"""Logging setup.

All components log to stderr under the `model-archive` namespace. Component
loggers are created at import time, before any settings file is read, so the
level configured in `observability.log_level` is recorded here as the
namespace default and picked up by every logger created or configured after
`configure_logging`.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "model-archive"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_default_level = "INFO"


def _in_namespace(name: str) -> bool:
    return name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + ".")


def get_logger(name: str = ROOT_LOGGER_NAME, level: Optional[str] = None) -> logging.Logger:
    """Create (or return) a stderr logger.

    Args:
        name: Logger name. Component loggers use `model-archive.<component>`.
        level: Explicit level. Without one, a new logger takes the configured
            namespace default and an existing logger keeps its level.
    """

    logger = logging.getLogger(name)
    logger.propagate = False

    if level is not None:
        logger.setLevel(level.upper())
    elif logger.level == logging.NOTSET:
        logger.setLevel(_default_level)

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def configure_logging(log_level: str) -> None:
    """Make `log_level` the namespace default and apply it to existing loggers."""

    global _default_level
    level = log_level.upper()
    _default_level = level

    for name in list(logging.root.manager.loggerDict):
        if _in_namespace(name):
            logging.getLogger(name).setLevel(level)


def configured_level() -> str:
    return _default_level
