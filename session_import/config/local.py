"""
Local backend configuration.

Extends base configuration with the filesystem locations used by the local
import backend.
"""

from __future__ import annotations

from pathlib import Path

from session_import.config.base import BaseImportSettings, lazy_settings
from session_import.types import ImportSource


class LocalBackendSettings(BaseImportSettings):
    """Settings for the filesystem-backed importer."""

    # Where imported session logs and the import index are kept
    STORE_DIR: Path = Path.home() / '.session-import' / 'store'

    # Default log directories per source
    CLAUDE_DIR: Path = Path.home() / '.claude' / 'projects'
    GEMINI_DIR: Path = Path.home() / '.gemini' / 'project_temp' / 'chats'
    CURSOR_DIR: Path = Path.home() / '.cursor' / 'projects'

    def source_dir(self, source: ImportSource) -> Path:
        """Default log directory for a source."""
        match source:
            case 'claude':
                return self.CLAUDE_DIR
            case 'gemini':
                return self.GEMINI_DIR
            case 'cursor':
                return self.CURSOR_DIR


# Module-level singleton (lazy-loaded)
settings = lazy_settings(LocalBackendSettings)
