"""
Base configuration for session-import.

Shared settings and helper functions for the import wizard and its backends.
"""

from __future__ import annotations

import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings

T = TypeVar('T', bound='BaseImportSettings')


class BaseImportSettings(pydantic_settings.BaseSettings):
    """Shared configuration for the import wizard."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix='SESSION_IMPORT_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='ignore',  # .env may be shared with other tools
    )

    # Application metadata
    APP_NAME: str = 'session-import'
    VERSION: str = '0.1.0'

    # Number of completed files kept for the "recent files" list
    RECENT_FILES_LIMIT: int = 5

    # Select every not-yet-imported session after a successful scan
    AUTO_SELECT_NEW_ON_SCAN: bool = True

    @pydantic.field_validator('RECENT_FILES_LIMIT')
    @classmethod
    def validate_recent_files_limit(cls, v: int) -> int:
        """Validate recent files limit is within display bounds."""
        if not 1 <= v <= 50:
            raise ValueError('RECENT_FILES_LIMIT must be between 1-50')
        return v


def get_settings(settings_class: type[T], env_file: str | None = None) -> T:
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset, loads from environment variables only.

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class()  # No custom .env file, load from environment only

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)


def lazy_settings(settings_class: type[T]) -> T:
    """
    Lazy settings - defers instantiation until first access.

    Args:
        settings_class: Settings class to instantiate

    Returns:
        Proxy that instantiates settings on first access
    """
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))
