"""Configuration management with YAML file support.

Priority (highest to lowest):
1. Environment variables (DIAGNOSTICS_ prefix)
2. .env file
3. diagnostics.yaml file
4. Default values
"""

import datetime
import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml  # type: ignore[import-untyped]
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from thread_diagnostics.core.paths import DEFAULT_APP_NAME, get_user_data_folder_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "DIAGNOSTICS_"

# Default config file locations (checked in order)
CONFIG_FILE_LOCATIONS = [
    Path("diagnostics.yaml"),
    Path("diagnostics.yml"),
    Path("./config/diagnostics.yaml"),
]


def find_config_file() -> Path | None:
    """Find the first existing config file.

    Returns:
        Path to config file if found, None otherwise.
    """
    for path in CONFIG_FILE_LOCATIONS:
        if path.exists():
            return path
    return None


def load_yaml_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Optional explicit path to config file.

    Returns:
        Dictionary of configuration values.
    """
    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return {}


class Settings(BaseSettings):
    """Diagnostics settings with YAML and environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Diagnostics folder
    app_name: str = Field(
        default=DEFAULT_APP_NAME,
        description="Application name used for the user data directory",
    )
    data_dir: Path | None = Field(
        default=None,
        description="Directory holding diagnostics folders. None uses the user data directory",
    )
    folder_prefix: str = Field(
        default="Diagnostics",
        min_length=1,
        description="Name prefix of per-run diagnostics folders",
    )
    retention_hours: float = Field(
        default=24.0,
        gt=0.0,
        description="Diagnostics folders older than this are deleted at startup",
    )

    # Output
    console_echo: bool = Field(
        default=True,
        description="Mirror main-thread diagnostics to the console",
    )
    error_presenter: Literal["console", "dialog"] = Field(
        default="console",
        description="How errors are shown: console prompt or modal dialog",
    )
    sink_fsync: bool = Field(
        default=False,
        description="Sync per-thread log files to disk after every line",
    )
    sink_encoding: str = Field(
        default="utf-8",
        description="Encoding of per-thread log files",
    )

    # Internal logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Level of the facility's own operational logging",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Format of the facility's own operational logging",
    )

    @field_validator("data_dir", mode="before")
    @classmethod
    def parse_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None or v == "":
            return None
        return Path(v).expanduser() if isinstance(v, str) else v

    @property
    def retention(self) -> datetime.timedelta:
        return datetime.timedelta(hours=self.retention_hours)

    def get_data_dir(self) -> Path:
        """Get the directory holding diagnostics folders."""
        if self.data_dir is not None:
            return self.data_dir
        return get_user_data_folder_path(self.app_name)


def _create_settings_with_yaml(config_path: Path | None = None) -> Settings:
    """Create Settings instance with YAML config as base.

    Priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. diagnostics.yaml file
    4. Default values
    """
    yaml_config = load_yaml_config(config_path) or {}

    # Environment variables override YAML values
    env_overrides = {}
    for field_name in Settings.model_fields:
        env_name = f"{ENV_PREFIX}{field_name.upper()}"
        if env_name in os.environ:
            env_overrides[field_name] = os.environ[env_name]

    merged_config = {**yaml_config, **env_overrides}

    # Filter out empty strings from env (treat as "not set")
    merged_config = {k: v for k, v in merged_config.items() if v != ""}

    if merged_config:
        return Settings(**merged_config)

    return Settings()


# Cache for settings - can be cleared to reload
_settings_cache: Settings | None = None


def get_settings() -> Settings:
    """Get diagnostics settings (cached).

    Returns:
        Settings: Settings instance.
    """
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = _create_settings_with_yaml()
    return _settings_cache


def reload_settings(config_path: Path | None = None) -> Settings:
    """Force reload settings from config files and environment.

    Args:
        config_path: Optional explicit YAML file.

    Returns:
        Settings: Fresh settings instance.
    """
    global _settings_cache
    _settings_cache = _create_settings_with_yaml(config_path)
    return _settings_cache
