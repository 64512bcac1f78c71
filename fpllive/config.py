"""Server configuration management."""

import os
from functools import lru_cache
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    DEFAULT_NOTIFICATION_ICON,
    FPL_API_BASE_URL,
    IDLE_POLL_INTERVAL,
    LIVE_POLL_INTERVAL,
    LIVE_WINDOW_HOURS,
    REQUEST_TIMEOUT_SECONDS,
)
from .utils import load_json


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""


class Settings(BaseModel):
    """Validated server settings."""

    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_email: Optional[str] = None

    api_base_url: str = FPL_API_BASE_URL
    request_timeout: float = Field(REQUEST_TIMEOUT_SECONDS, gt=0)
    live_poll_interval: float = Field(LIVE_POLL_INTERVAL, gt=0)
    idle_poll_interval: float = Field(IDLE_POLL_INTERVAL, gt=0)
    live_window_hours: float = Field(LIVE_WINDOW_HOURS, gt=0)

    host: str = '0.0.0.0'
    port: int = Field(3001, ge=1, le=65535)
    notification_icon: str = DEFAULT_NOTIFICATION_ICON
    cors_origins: list[str] = Field(default_factory=lambda: ['*'])

    log_level: str = 'INFO'
    log_dir: Optional[str] = None

    class Config:
        extra = 'forbid'


# Settings field -> environment variable
ENV_VARS = {
    'vapid_public_key': 'VAPID_PUBLIC_KEY',
    'vapid_private_key': 'VAPID_PRIVATE_KEY',
    'vapid_email': 'VAPID_EMAIL',
    'api_base_url': 'FPL_API_BASE_URL',
    'request_timeout': 'FPLLIVE_REQUEST_TIMEOUT',
    'live_poll_interval': 'FPLLIVE_LIVE_POLL_INTERVAL',
    'idle_poll_interval': 'FPLLIVE_IDLE_POLL_INTERVAL',
    'live_window_hours': 'FPLLIVE_LIVE_WINDOW_HOURS',
    'host': 'HOST',
    'port': 'PORT',
    'notification_icon': 'FPLLIVE_NOTIFICATION_ICON',
    'log_level': 'FPLLIVE_LOG_LEVEL',
    'log_dir': 'FPLLIVE_LOG_DIR',
}

CONFIG_FILE_ENV_VAR = 'FPLLIVE_CONFIG'


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from an optional JSON file overlaid with environment variables.

    The JSON file is named by FPLLIVE_CONFIG; environment variables win over
    values from the file.

    Args:
        environ: Environment mapping (default: os.environ)

    Raises:
        ConfigurationError: If the settings fail validation
    """
    environ = os.environ if environ is None else environ

    values: dict = {}
    config_path = environ.get(CONFIG_FILE_ENV_VAR)
    if config_path:
        try:
            file_values = load_json(config_path)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f'Cannot read config file {config_path}: {e}') from e
        if not isinstance(file_values, dict):
            raise ConfigurationError(f'Config file {config_path} must hold a JSON object')
        values.update(file_values)

    for field_name, env_var in ENV_VARS.items():
        value = environ.get(env_var)
        if value not in (None, ''):
            values[field_name] = value

    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(f'Invalid configuration:\n{e}') from e


@lru_cache(maxsize=1)
def get_config() -> Settings:
    """
    Load server configuration.

    Reads a .env file from the working directory first (if present), then
    the process environment. Cached after first load.

    Returns:
        Settings object with validated values

    Example:
        from fpllive.config import get_config
        config = get_config()
        print(f"Polling every {config.live_poll_interval}s while live")
    """
    load_dotenv()
    return load_settings()


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the environment changes during runtime and you need to
    reload it.
    """
    get_config.cache_clear()
