"""Logging bootstrap and the colored console formatter."""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import IO, Any

from guild_audio.domain.shared.constants import ConfigKeys
from guild_audio.domain.shared.messages import LogTemplates

DEFAULT_LOGGING_CONFIG = Path(__file__).resolve().parents[3] / "logging_config.json"

_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class ColoredFormatter(logging.Formatter):
    """Logging formatter that applies ANSI color codes to the levelname field.

    Colors are disabled when the ``NO_COLOR`` environment variable is set or
    when *stream* (stdout by default) is not a TTY.
    ``logging_config.json`` wires it in with the ``()`` factory syntax.
    """

    COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",     # cyan
        logging.INFO: "\033[32m",      # green
        logging.WARNING: "\033[33m",   # yellow
        logging.ERROR: "\033[31m",     # red
        logging.CRITICAL: "\033[1;31m",  # bold red
    }
    RESET = "\033[0m"

    def __init__(self, *args: Any, stream: IO[str] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._stream = stream

    def _use_color(self) -> bool:
        if os.environ.get(ConfigKeys.NO_COLOR) is not None:
            return False
        stream = self._stream or sys.stdout
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if self._use_color():
            color = self.COLORS.get(record.levelno, "")
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def resolve_logging_config(explicit: Path | None = None) -> Path:
    """Pick the dictConfig file: *explicit*, then ``$LOG_CONFIG_PATH``, then the repo default."""
    if explicit is not None:
        return explicit
    override = os.environ.get(ConfigKeys.LOG_CONFIG_PATH)
    return Path(override) if override else DEFAULT_LOGGING_CONFIG


def setup_logging(log_level: str = "INFO", config_path: Path | None = None) -> None:
    """Configure logging from a dictConfig JSON file.

    Falls back to ``logging.basicConfig`` when the file is missing or invalid.
    The root logger level is always forced to *log_level* afterwards.
    """
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)
    path = resolve_logging_config(config_path)

    try:
        with open(path) as f:
            logging.config.dictConfig(json.load(f))
        logging.getLogger(__name__).debug(LogTemplates.LOGGING_CONFIG_LOADED, path)
    except (FileNotFoundError, json.JSONDecodeError, ValueError) as e:
        logging.basicConfig(
            level=resolved_level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"
        )
        logging.getLogger(__name__).warning(LogTemplates.LOGGING_CONFIG_FALLBACK, path, e)

    logging.getLogger().setLevel(resolved_level)
