"""Logging configuration for the command-line entry point."""

import logging
import os
from logging.config import dictConfig
from typing import Optional

from rich.logging import RichHandler

DEFAULT_LOG_LEVEL = "WARNING"


def resolve_level(level: Optional[str] = None) -> str:
    """Pick the log level from the argument, SPACES_LOG_LEVEL, or the default."""
    name = (level or os.environ.get("SPACES_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(name), int):
        return DEFAULT_LOG_LEVEL
    return name


def setup_logging(level: Optional[str] = None, rich_output: bool = True) -> None:
    """Configure the spaces_uploader loggers.

    Args:
        level: Log level name; falls back to SPACES_LOG_LEVEL.
        rich_output: Render through rich's RichHandler instead of a plain
            stream handler.
    """
    if rich_output:
        handler = {
            "()": RichHandler,
            "show_path": False,
            "rich_tracebacks": True,
        }
        formatter = "rich"
    else:
        handler = {"class": "logging.StreamHandler"}
        formatter = "plain"
    handler["formatter"] = formatter

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "rich": {"format": "%(message)s", "datefmt": "[%X]"},
                "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
            },
            "handlers": {"console": handler},
            "loggers": {
                "spaces_uploader": {
                    "handlers": ["console"],
                    "level": resolve_level(level),
                    "propagate": False,
                },
                # botocore is noisy below WARNING
                "botocore": {"level": "WARNING"},
            },
        }
    )
