"""Central logging utilities for the Cricket Data Pipeline.

- One place to configure logging for the API server, the CLI and tests.
- Console output (colored on a TTY) or JSON lines (``LOG_FORMAT=json``).
- Environment variables win over the values passed in from ``Settings``:
    LOG_LEVEL=INFO|DEBUG|...
    LOG_FORMAT=console|json
    LOG_NO_COLOR=1 disables color output.

Usage:
    from cricket_pipeline.common.logging_utils import configure_logging, get_logger
    configure_logging(level=settings.log_level, fmt=settings.log_format)
    logger = get_logger(__name__)

Calling configure_logging() more than once is a no-op unless ``force=True``.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

_CONFIG_LOCK = threading.Lock()
_ALREADY_CONFIGURED = False

# LogRecord attributes that are never copied into the JSON payload
_RESERVED = {
    "args", "name", "msg", "levelno", "levelname", "pathname", "filename", "module",
    "exc_info", "exc_text", "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "stack_info", "taskName",
}


class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[38;5;245m",
        "INFO": "\x1b[38;5;39m",
        "WARNING": "\x1b[38;5;214m",
        "ERROR": "\x1b[38;5;196m",
        "CRITICAL": "\x1b[48;5;196m\x1b[38;5;231m",
    }
    RESET = "\x1b[0m"

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).astimezone()
        base = f"{ts:%Y-%m-%d %H:%M:%S} | {record.levelname:<8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        color = self.COLORS.get(record.levelname)
        return f"{color}{base}{self.RESET}" if color else base


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # extra={...} attributes
        for key, value in record.__dict__.items():
            if key in _RESERVED or key in payload or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = repr(value)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    *,
    log_file: Optional[str] = None,
    force: bool = False,
) -> None:
    """Configure root logging once.

    Parameters
    ----------
    level: default log level, overridden by ``LOG_LEVEL``
    fmt: ``console`` or ``json``, overridden by ``LOG_FORMAT``
    log_file: optional directory; adds a file handler writing ``cricket_pipeline.log``
    force: reconfigure even if already configured
    """
    global _ALREADY_CONFIGURED
    with _CONFIG_LOCK:
        if _ALREADY_CONFIGURED and not force:
            return

        log_level = os.getenv("LOG_LEVEL", level).upper()
        log_format = os.getenv("LOG_FORMAT", fmt).lower()
        no_color = os.getenv("LOG_NO_COLOR") == "1"

        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)

        plain = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        if log_format == "json":
            formatter: logging.Formatter = JsonFormatter()
        elif sys.stderr.isatty() and not no_color:
            formatter = ColorFormatter()
        else:
            formatter = plain

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root.addHandler(handler)

        if log_file:
            path = Path(log_file) / "cricket_pipeline.log"
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(JsonFormatter() if log_format == "json" else plain)
            root.addHandler(file_handler)

        root.setLevel(getattr(logging, log_level, logging.INFO))
        _ALREADY_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "configure_logging",
    "get_logger",
    "JsonFormatter",
]
