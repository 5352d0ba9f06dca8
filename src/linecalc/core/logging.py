#!/usr/bin/env python3
"""
Structured logging for linecalc.

Results go to stdout, so every log line goes to stderr (and optionally to a
rotating file). Records carry the evaluation context, usually the document
and line number, set with LogContext and stored in a contextvar so worker
threads fetching rates do not inherit a stale line.

Environment:
    LINECALC_LOG_LEVEL / LOG_LEVEL   default level (WARNING)
    LINECALC_LOG_JSON=1              one JSON object per record
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Optional

_log_context: ContextVar[Dict[str, Any]] = ContextVar("linecalc_log_context", default={})

# Attributes every LogRecord has; anything else was passed through extra=
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "context"}

DEFAULT_LOGS_DIR = Path.cwd() / "logs"
MAX_LOG_BYTES = 1024 * 1024
LOG_BACKUPS = 3


def env_log_level() -> str:
    return os.environ.get("LINECALC_LOG_LEVEL", os.environ.get("LOG_LEVEL", "WARNING")).upper()


def env_wants_json() -> bool:
    return os.environ.get("LINECALC_LOG_JSON", "").lower() in ("1", "true", "yes")


class StructuredFormatter(logging.Formatter):
    """Readable "time level logger: message [key=value ...]" lines, or JSON"""

    def __init__(self, use_json: bool = False):
        super().__init__()
        self.use_json = use_json

    def format(self, record: logging.LogRecord) -> str:
        context = dict(_log_context.get())
        context.update(getattr(record, "context", None) or {})
        extras = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}

        if self.use_json:
            entry: Dict[str, Any] = {
                "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
                **context,
                **extras,
            }
            if record.exc_info:
                entry["exc"] = self.formatException(record.exc_info)
            return json.dumps(entry, default=str)

        line = f"{self.formatTime(record, '%H:%M:%S')} {record.levelname:<7} {record.name}: {record.getMessage()}"
        tags = {**context, **extras}
        if tags:
            line += " [" + " ".join(f"{k}={v}" for k, v in tags.items()) + "]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """Adapter merging the active LogContext, its own extra and any per-call context= into the record"""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        extra = kwargs.setdefault("extra", {})
        extra["context"] = {**_log_context.get(), **self.extra, **extra.pop("context", {})}
        return msg, kwargs


def _stderr_handler(formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    return handler


def _file_handler(name: str, formatter: logging.Formatter, logs_dir: Optional[Path]) -> logging.Handler:
    directory = logs_dir or DEFAULT_LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        directory / f"{name.rsplit('.', 1)[-1]}.log", maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS
    )
    handler.setFormatter(formatter)
    return handler


def get_logger(
    name: str,
    log_level: Optional[str] = None,
    include_console: Optional[bool] = None,
    include_file: Optional[bool] = None,
    context: Optional[Dict[str, Any]] = None,
    logs_dir: Optional[Path] = None,
) -> ContextLogger:
    """
    Create (once) and wrap the logger called name.

    Args:
        name: Logger name, usually __name__
        log_level: Level override; defaults to the environment
        include_console: Log to stderr (default True)
        include_file: Also log to logs_dir/<module>.log (default False)
        context: Fields added to every record from this logger
        logs_dir: Directory for the rotating log file

    Returns:
        ContextLogger around the configured logger
    """
    logger = logging.getLogger(name)

    # Configured already: module loggers are requested once per import
    if not logger.handlers:
        logger.setLevel(getattr(logging, (log_level or env_log_level()).upper(), logging.WARNING))
        formatter = StructuredFormatter(use_json=env_wants_json())
        if include_console is not False:
            logger.addHandler(_stderr_handler(formatter))
        if include_file:
            logger.addHandler(_file_handler(name, formatter, logs_dir))
        logger.propagate = False

    return ContextLogger(logger, context)


def get_context() -> Dict[str, Any]:
    return dict(_log_context.get())


class LogContext:
    """
    Temporarily add fields to every record logged in this context.

    Usage:
        with LogContext(document="budget.txt", line=3):
            logger.debug("Evaluating")  # ... [document=budget.txt line=3]
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)


def configure_package_logging(
    level: str,
    include_file: bool = False,
    logs_dir: Optional[Path] = None,
    prefix: str = "linecalc",
) -> None:
    """
    Apply a level (and optionally a file handler) to every logger already
    created under prefix. Module loggers are created at import time, before
    the command line or config file is read.
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if not isinstance(logger, logging.Logger) or not name.startswith(prefix):
            continue
        logger.setLevel(numeric_level)

        has_file = any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
        if include_file and not has_file:
            logger.addHandler(_file_handler(name, StructuredFormatter(use_json=env_wants_json()), logs_dir))
