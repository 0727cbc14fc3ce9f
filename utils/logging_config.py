"""
Logging setup for closeables.

Library modules only ever call :func:`get_logger`; nothing is printed or
written until an application calls :meth:`LoggerFactory.configure` (usually
through ``config.configure_logging``).
"""
import logging
import logging.handlers
import json
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'

LOG_FILE = 'closeables.log'
ERROR_LOG_FILE = 'errors.log'


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    Fields passed as ``extra={'extra_fields': {...}}`` (the release loop sends
    ``resource``, ``error_type`` and ``failure_index``) are merged into the
    top level of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            payload['exception'] = {
                'type': exc_type.__name__,
                'message': str(exc_value),
                'traceback': traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        payload.update(getattr(record, 'extra_fields', None) or {})
        return json.dumps(payload, default=str)


def _make_formatter(structured: bool, detailed: bool) -> logging.Formatter:
    if structured:
        return StructuredFormatter()
    return logging.Formatter(DETAILED_FORMAT if detailed else PLAIN_FORMAT)


def _rotating(path: Path, level: int, formatter: logging.Formatter,
              max_bytes: int, backup_count: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


class LoggerFactory:
    """Hands out loggers and owns the handlers installed on the root logger."""

    _loggers: Dict[str, logging.Logger] = {}
    _handlers: List[logging.Handler] = []
    _configured = False

    @classmethod
    def configure(
        cls,
        log_dir: str = "logs",
        log_level: str = "INFO",
        enable_console: bool = True,
        enable_file: bool = False,
        enable_structured: bool = False,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5
    ):
        """Install console and/or rotating file handlers on the root logger.

        A second call is ignored until :meth:`reset` has run.
        """
        if cls._configured:
            return

        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {log_level}")

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        handlers: List[logging.Handler] = []

        if enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(level)
            console.setFormatter(_make_formatter(enable_structured, detailed=False))
            handlers.append(console)

        if enable_file:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            handlers.append(_rotating(
                log_path / LOG_FILE, logging.DEBUG,
                _make_formatter(enable_structured, detailed=True),
                max_bytes, backup_count,
            ))
            # errors.log is always plain text
            handlers.append(_rotating(
                log_path / ERROR_LOG_FILE, logging.ERROR,
                _make_formatter(False, detailed=True),
                max_bytes, backup_count,
            ))

        for handler in handlers:
            root_logger.addHandler(handler)
        cls._handlers.extend(handlers)
        cls._configured = True

    @classmethod
    def reset(cls):
        """Remove installed handlers so ``configure`` can run again."""
        root_logger = logging.getLogger()
        for handler in cls._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        cls._handlers = []
        cls._configured = False

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Return the cached logger for ``name``; installs no handlers."""
        if name not in cls._loggers:
            cls._loggers[name] = logging.getLogger(name)
        return cls._loggers[name]


def get_logger(name: str) -> logging.Logger:
    """Get a logger managed by LoggerFactory."""
    return LoggerFactory.get_logger(name)
