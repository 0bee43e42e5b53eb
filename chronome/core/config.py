"""Configuration management for allocation settings.

Loads configuration from environment variables or .env file.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .types import OUTPUT_FORMATS

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_OUTPUT_FORMAT = "table"
DEFAULT_MAX_TASKS = 500


@dataclass
class AppConfig:
    """Runtime settings for the allocator and its CLI."""

    # Logging level name (DEBUG, INFO, WARNING, ...)
    log_level: str = DEFAULT_LOG_LEVEL

    # Default CLI output format: table, json or csv
    output_format: str = DEFAULT_OUTPUT_FORMAT

    # Largest task list the normalizer accepts
    max_tasks: int = DEFAULT_MAX_TASKS

    def __post_init__(self) -> None:
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError("CHRONOME_LOG_LEVEL", f"unknown level '{self.log_level}'")

        self.output_format = self.output_format.lower()
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(
                "CHRONOME_OUTPUT_FORMAT",
                f"'{self.output_format}' is not one of {', '.join(OUTPUT_FORMATS)}",
            )

        if self.max_tasks <= 0:
            raise ConfigurationError("CHRONOME_MAX_TASKS", "must be positive")

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables."""
        raw_max_tasks = os.getenv("CHRONOME_MAX_TASKS")
        max_tasks = DEFAULT_MAX_TASKS
        if raw_max_tasks:
            try:
                max_tasks = int(raw_max_tasks)
            except ValueError:
                raise ConfigurationError(
                    "CHRONOME_MAX_TASKS", f"expected an integer, got '{raw_max_tasks}'"
                ) from None

        return cls(
            log_level=os.getenv("CHRONOME_LOG_LEVEL", DEFAULT_LOG_LEVEL),
            output_format=os.getenv("CHRONOME_OUTPUT_FORMAT", DEFAULT_OUTPUT_FORMAT),
            max_tasks=max_tasks,
        )

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "AppConfig":
        """
        Load configuration from .env file and environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the project root.

        Returns:
            AppConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        return cls.from_env()


# Global config instance (lazy loaded)
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config


def reload_config(env_file: Optional[Path] = None) -> AppConfig:
    """Reload configuration from environment."""
    global _config
    _config = AppConfig.load(env_file)
    return _config
