"""
Comprehensive Logging System with File and Console Output

Features:
- Console output plus an optional size-rotating file per logger
- Context dicts appended to messages as JSON
- Timing lines for structured model calls
"""

import json
import logging
import logging.handlers
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


@dataclass(frozen=True)
class LogSettings:
    """Where and how loggers write."""
    folder: str = "./logs"
    level: str = "INFO"
    console: bool = True
    file: bool = False
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5


class ComprehensiveLogger:
    """
    Registry of TaskLoggers sharing one LogSettings.

    Usage:
        ComprehensiveLogger.initialize(LogSettings(level="DEBUG"))
        logger = ComprehensiveLogger.get_logger("task_orchestrator.core.pipeline")
        logger.info("Dispatching", extra={"task_id": "job-1-a-service"})
    """

    _loggers: Dict[str, "TaskLogger"] = {}
    _settings: LogSettings = LogSettings()

    @classmethod
    def initialize(cls, settings: LogSettings) -> None:
        """Apply settings to every logger created from now on."""
        cls._settings = settings
        if settings.file:
            Path(settings.folder).mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_logger(cls, name: str) -> "TaskLogger":
        if name not in cls._loggers:
            cls._loggers[name] = TaskLogger(name, cls._settings)
        return cls._loggers[name]

    @classmethod
    def set_level(cls, level: str) -> None:
        """Change the level of every logger, existing and future."""
        cls._settings = replace(cls._settings, level=level.upper())
        for task_logger in cls._loggers.values():
            task_logger.set_level(level)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(name: str, settings: LogSettings) -> logging.Handler:
    Path(settings.folder).mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        Path(settings.folder) / f"{name}.log",
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count,
        encoding='utf-8'
    )
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


class TaskLogger:
    """Wraps a stdlib logger; `extra` context is rendered into the message."""

    def __init__(self, name: str, settings: LogSettings):
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(settings.level.upper())
        self.logger.handlers.clear()

        handlers = []
        if settings.console:
            handlers.append(_console_handler())
        if settings.file:
            try:
                handlers.append(_file_handler(name, settings))
            except OSError as e:
                self.logger.error(f"Failed to add file handler: {e}")

        for handler in handlers:
            handler.setLevel(settings.level.upper())
            self.logger.addHandler(handler)

    def set_level(self, level: str) -> None:
        self.logger.setLevel(level.upper())
        for handler in self.logger.handlers:
            handler.setLevel(level.upper())

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.ERROR, message, extra)

    def _log(self, level: int, message: str, extra: Optional[Dict[str, Any]]) -> None:
        if extra:
            message = f"{message} | {json.dumps(extra, default=str)}"
        self.logger.log(level, message, stacklevel=3)

    def log_performance(
        self,
        operation: str,
        duration_seconds: float,
        success: bool = True,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log how long an operation took.

        Successes go to INFO, failures to WARNING. The duration and outcome
        are added to `metadata` in the rendered context.
        """
        status = "✓" if success else "✗"
        context = dict(metadata or {})
        context.update({
            "operation": operation,
            "duration_seconds": round(duration_seconds, 3),
            "success": success,
        })
        level = logging.INFO if success else logging.WARNING
        self._log(level, f"{status} {operation} completed in {duration_seconds:.2f}s", context)
