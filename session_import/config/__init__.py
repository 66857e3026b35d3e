"""Configuration for session-import."""

from session_import.config.base import BaseImportSettings, get_settings, lazy_settings
from session_import.config.local import LocalBackendSettings

__all__ = ['BaseImportSettings', 'LocalBackendSettings', 'get_settings', 'lazy_settings']
