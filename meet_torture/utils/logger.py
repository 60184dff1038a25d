# meet_torture/utils/logger.py
from __future__ import annotations

"""Logging setup
---------------
Root logging is configured once from settings: a rich console handler, plus
an optional rotating JSON file. Records carry a `ctx` dict (run id, room,
participant, video id) that the console prefixes and the JSON file merges.
"""

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from meet_torture.utils.config import get_settings, LogLevel


__all__ = [
    "ConsoleFormatter",
    "JsonFormatter",
    "get_logger",
    "set_log_level",
    "bind",
    "unbind",
    "log_with_context",
    "attach_file_logger",
    "detach_file_logger",
]

_MAX_BYTES = 5 * 1024 * 1024

_configured = False
_global_ctx: Dict[str, Any] = {}  # attached to every record

# shown in front of console lines when present
_CONSOLE_KEYS = ("participant", "video_id")


def _ctx(record: logging.LogRecord) -> Dict[str, Any]:
    ctx = getattr(record, "ctx", None)
    return ctx if isinstance(ctx, dict) else {}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; the record's ctx is merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        payload.update(_ctx(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ctx = _ctx(record)
        tags = [str(ctx[k]) for k in _CONSOLE_KEYS if ctx.get(k)]
        prefix = f"[{' '.join(tags)}] " if tags else ""
        return prefix + super().format(record)


_LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}


def _file_handler(path: Path, level: int, backups: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(filename=str(path), maxBytes=_MAX_BYTES, backupCount=backups, encoding="utf-8", delay=True)
    fh.setLevel(level)
    fh.setFormatter(JsonFormatter())
    return fh


def _ensure_configured() -> None:
    global _configured
    if _configured:
        return

    settings = get_settings()
    level = _LEVEL_MAP.get(settings.LOG_LEVEL, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    rich_handler = RichHandler(
        console=Console(stderr=True, no_color=not settings.COLORIZED_OUTPUT),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
        omit_repeated_times=False,
    )
    rich_handler.setFormatter(ConsoleFormatter("%(message)s"))
    rich_handler.setLevel(level)
    root.addHandler(rich_handler)

    if settings.LOG_TO_FILE:
        root.addHandler(_file_handler(settings.LOG_FILE, level, backups=5))

    # playwright's driver logs every protocol call at debug
    logging.getLogger("playwright").setLevel(max(level, logging.WARNING))

    _configured = True


def get_logger(name: Optional[str] = None) -> logging.LoggerAdapter:
    """Logger whose records carry the global context bound with `bind`."""
    _ensure_configured()
    return logging.LoggerAdapter(logging.getLogger(name or "meet-torture"), extra={"ctx": _global_ctx})


def set_log_level(level: LogLevel | str) -> None:
    _ensure_configured()
    name = level if isinstance(level, str) else level.value
    py_level = getattr(logging, name.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(py_level)
    for h in root.handlers:
        h.setLevel(py_level)


def bind(**kwargs: Any) -> None:
    """Attach context (e.g. run_id, room) to every subsequent record."""
    _global_ctx.update(kwargs)


def unbind(*keys: str) -> None:
    for k in keys:
        _global_ctx.pop(k, None)


def log_with_context(logger: logging.LoggerAdapter, **kwargs: Any) -> logging.LoggerAdapter:
    """
    Adapter for one participant or stream:
        log_with_context(log, participant="participant1").info("joined")
    The global context at call time is snapshotted and `kwargs` win over it.
    """
    merged = dict(_global_ctx)
    merged.update(kwargs)
    return logging.LoggerAdapter(logger.logger, extra={"ctx": merged})


def attach_file_logger(path: Path | str, level: Optional[int] = None) -> logging.Handler:
    """Add a JSON file handler for one run; pass the result to detach_file_logger."""
    _ensure_configured()
    root = logging.getLogger()
    fh = _file_handler(Path(path), level if level is not None else root.level, backups=3)
    root.addHandler(fh)
    return fh


def detach_file_logger(handler: logging.Handler) -> None:
    logging.getLogger().removeHandler(handler)
    handler.close()
