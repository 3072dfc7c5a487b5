# sm2_certgen/logger.py
"""
logger.py  - package logger

JSON lines on stderr; stdout is reserved for the PEM output.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_LOGGER_NAME = "sm2_certgen"
_PLAIN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "lvl": record.levelname,
            "msg": record.getMessage(),
            "module": record.module,
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is at emit time."""

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr

    @stream.setter
    def stream(self, _value) -> None:
        pass


_root = logging.getLogger(_LOGGER_NAME)
_handler: Optional[logging.Handler] = None


def configure_logging(level: str = "INFO", json_format: bool = True) -> logging.Logger:
    """Attach (or re-configure) the stderr handler. Safe to call repeatedly."""
    global _handler

    if _handler is None:
        _handler = _StderrHandler()
        _root.addHandler(_handler)
        _root.propagate = False  # no double output through the root logger
    _handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(_PLAIN_FORMAT))
    _root.setLevel(level.upper())
    return _root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Child of the package logger, e.g. ``get_logger("builder")``."""
    return _root.getChild(name) if name else _root


def log_exception(exc: BaseException, extra_msg: Optional[str] = None) -> None:
    """Record a fatal error; the traceback is attached at DEBUG level only."""
    _root.error(
        extra_msg or f"{type(exc).__name__}: {exc}",
        exc_info=exc if _root.isEnabledFor(logging.DEBUG) else None,
    )
