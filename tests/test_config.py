"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from session_import.config.base import BaseImportSettings, get_settings, lazy_settings
from session_import.config.local import LocalBackendSettings


def test_defaults() -> None:
    settings = BaseImportSettings()

    assert settings.RECENT_FILES_LIMIT == 5
    assert settings.AUTO_SELECT_NEW_ON_SCAN is True


def test_environment_overrides_use_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv('SESSION_IMPORT_RECENT_FILES_LIMIT', '12')
    monkeypatch.setenv('SESSION_IMPORT_AUTO_SELECT_NEW_ON_SCAN', 'false')

    settings = get_settings(BaseImportSettings)

    assert settings.RECENT_FILES_LIMIT == 12
    assert settings.AUTO_SELECT_NEW_ON_SCAN is False


@pytest.mark.parametrize('limit', [0, 51])
def test_recent_files_limit_is_bounded(limit: int) -> None:
    with pytest.raises(pydantic.ValidationError):
        BaseImportSettings(RECENT_FILES_LIMIT=limit)


def test_env_file_is_loaded(tmp_path: Path) -> None:
    env_file = tmp_path / 'import.env'
    env_file.write_text('SESSION_IMPORT_RECENT_FILES_LIMIT=3\n')

    assert get_settings(BaseImportSettings, env_file=str(env_file)).RECENT_FILES_LIMIT == 3


def test_missing_env_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        get_settings(BaseImportSettings, env_file=str(tmp_path / 'missing.env'))


def test_lazy_settings_defer_loading(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = lazy_settings(BaseImportSettings)
    monkeypatch.setenv('SESSION_IMPORT_RECENT_FILES_LIMIT', '7')

    assert settings.RECENT_FILES_LIMIT == 7


def test_source_dirs(tmp_path: Path) -> None:
    settings = LocalBackendSettings(
        CLAUDE_DIR=tmp_path / 'c',
        GEMINI_DIR=tmp_path / 'g',
        CURSOR_DIR=tmp_path / 'u',
    )

    assert settings.source_dir('claude') == tmp_path / 'c'
    assert settings.source_dir('gemini') == tmp_path / 'g'
    assert settings.source_dir('cursor') == tmp_path / 'u'
