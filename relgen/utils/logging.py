"""
Logging setup shared by the CLI, the compiler pipeline and bound accessors.

Everything logs through the stdlib ``logging`` module under the ``relgen``
logger tree. Records carry structured context through ``extra=`` (entity,
relation kind, accessor name, table, row counts); the console format drops it,
the JSON format keeps it as top-level keys.

Usage:
    from relgen.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", json_logs=True)
    log = get_logger(__name__)
    log.info("[ATTACHED] User.get_posts", extra={"entity": "User", "accessor": "get_posts"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

PACKAGE_LOGGER = "relgen"

# Driver and retry loggers stay at WARNING even when relgen runs at DEBUG.
_QUIET_LOGGERS = ("asyncpg", "psycopg", "tenacity")

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


def _json_formatter(record: logging.LogRecord) -> str:
    """Serialize a record, lifting its `extra=` context to top-level keys."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(
        (key, value)
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and key != "extra" and not key.startswith("_")
    )
    # extra={"extra": {...}} nests the context one level down; flatten it too.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def _logging_config(level: str, json_logs: bool) -> Dict[str, Any]:
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                "datefmt": "%H:%M:%S",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_logs else "console",
                "level": level,
            }
        },
        "loggers": {
            PACKAGE_LOGGER: {"level": level},
            **{name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
        },
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Parameters
    ----------
    level : str
        Level name applied to the handler, the root logger and ``relgen.*``.
    json_logs : bool
        Emit one JSON object per record instead of the console format.
    force : bool
        Replace handlers configured earlier. With ``force=False`` an already
        configured root logger is left alone, so a host application keeps its
        own setup.
    """
    if not force and logging.getLogger().handlers:
        return
    logging.config.dictConfig(_logging_config(level, json_logs))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``logging.getLogger(name)``; the root logger when name is None."""
    return logging.getLogger(name)


__all__ = ["PACKAGE_LOGGER", "configure_logging", "get_logger", "JsonFormatter"]
