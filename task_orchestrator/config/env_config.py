"""
Environment configuration - Load settings from .env files

Values already present in the process environment always win over values
from a .env file.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from dotenv import load_dotenv

T = TypeVar("T")

_TRUE_VALUES = ('true', '1', 'yes', 'on')


def find_env_file(start: Optional[Path] = None, max_levels: int = 3) -> Optional[Path]:
    """Nearest .env in `start` (default: cwd) or up to `max_levels` parents."""
    current = (start or Path.cwd()).resolve()
    for directory in [current, *current.parents][:max_levels + 1]:
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


class EnvConfig:
    """Typed access to environment variables, with optional .env loading."""

    _loaded_path: Optional[Path] = None

    @staticmethod
    def load_env_file(path: Optional[str] = None) -> bool:
        """
        Load environment variables from a .env file.

        Args:
            path: Path to the file (default: search the current dir and 3 parents)

        Returns:
            True if a file was found and loaded (now or earlier), False otherwise
        """
        env_path = Path(path) if path else find_env_file()
        if env_path is None or not env_path.is_file():
            return False

        if EnvConfig._loaded_path != env_path:
            load_dotenv(env_path, override=False)
            EnvConfig._loaded_path = env_path
        return True

    @staticmethod
    def _parse(key: str, default: T, convert: Callable[[str], T]) -> T:
        raw = os.getenv(key)
        if raw is None or raw.strip() == "":
            return default
        try:
            return convert(raw.strip())
        except ValueError:
            return default

    @staticmethod
    def get(key: str, default: Optional[str] = None) -> Optional[str]:
        return os.getenv(key, default)

    @staticmethod
    def get_bool(key: str, default: bool = False) -> bool:
        return EnvConfig._parse(key, default, lambda raw: raw.lower() in _TRUE_VALUES)

    @staticmethod
    def get_int(key: str, default: int = 0) -> int:
        return EnvConfig._parse(key, default, int)

    @staticmethod
    def get_float(key: str, default: float = 0.0) -> float:
        return EnvConfig._parse(key, default, float)

    @staticmethod
    def get_json(key: str, default: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """JSON object from an environment variable; `default` if unset or malformed."""
        return EnvConfig._parse(key, default, json.loads)

    @staticmethod
    def missing(*keys: str) -> List[str]:
        """Names of the given environment variables that are unset or empty."""
        return [key for key in keys if not os.getenv(key)]
