"""
Logger module - Logging configuration and utilities

Every module calls get_logger(__name__). The first call reads the logging
settings from the environment (and a .env file, if one is found):

    AGENT_LOG_LEVEL                 INFO
    AGENT_LOG_FOLDER                ./logs
    AGENT_ENABLE_CONSOLE_LOGGING    true
    AGENT_ENABLE_FILE_LOGGING       false
    AGENT_LOG_MAX_BYTES             10485760
    AGENT_LOG_BACKUP_COUNT          5
"""

import logging
import sys
from typing import Optional

from ..config.env_config import EnvConfig
from .comprehensive_logger import ComprehensiveLogger, LogSettings, TaskLogger

_initialized = False


def load_log_settings() -> LogSettings:
    """LogSettings from AGENT_* environment variables."""
    EnvConfig.load_env_file()
    defaults = LogSettings()
    return LogSettings(
        folder=EnvConfig.get("AGENT_LOG_FOLDER", defaults.folder),
        level=EnvConfig.get("AGENT_LOG_LEVEL", defaults.level).upper(),
        console=EnvConfig.get_bool("AGENT_ENABLE_CONSOLE_LOGGING", defaults.console),
        file=EnvConfig.get_bool("AGENT_ENABLE_FILE_LOGGING", defaults.file),
        max_bytes=EnvConfig.get_int("AGENT_LOG_MAX_BYTES", defaults.max_bytes),
        backup_count=EnvConfig.get_int("AGENT_LOG_BACKUP_COUNT", defaults.backup_count),
    )


def _ensure_initialized() -> None:
    global _initialized
    if _initialized:
        return
    _initialized = True

    try:
        ComprehensiveLogger.initialize(load_log_settings())
    except OSError as e:
        # Log folder not writable: keep console output only
        ComprehensiveLogger.initialize(LogSettings(file=False))
        logging.basicConfig(stream=sys.stdout, level=logging.INFO)
        logging.getLogger(__name__).warning(f"File logging disabled: {e}")


def get_logger(name: str, level: Optional[str] = None) -> TaskLogger:
    """
    Get or create a logger.

    Args:
        name: Logger name (typically __name__)
        level: Optional level override (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    _ensure_initialized()

    logger = ComprehensiveLogger.get_logger(name)
    if level:
        logger.set_level(level)
    return logger


def set_log_level(level: str) -> None:
    """Override AGENT_LOG_LEVEL for every logger, including ones created later."""
    _ensure_initialized()
    ComprehensiveLogger.set_level(level)
