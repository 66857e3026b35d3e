"""
Shared fixtures for session-import tests.

FakeBackend is a scripted in-memory ImportBackend: tests decide per path
whether an import succeeds or fails, and can hook into the batch loop to
cancel at a precise point.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from pathlib import PurePath

import pytest

from session_import.config.base import BaseImportSettings
from session_import.protocols import ImportCallbacks
from session_import.schemas import DiscoveredFile, ImportResult
from session_import.types import ImportSource

Hook = Callable[[], Awaitable[None]]


def make_file(path: str, project_path: str | None = None, session_id: str | None = None) -> DiscoveredFile:
    """Build a DiscoveredFile; project defaults to the parent directory."""
    return DiscoveredFile(
        path=path,
        name=PurePath(path).name,
        size=1024,
        modified_at=datetime(2025, 1, 1, tzinfo=UTC),
        project_path=project_path if project_path is not None else str(PurePath(path).parent),
        session_id=session_id,
    )


def ok(path: str, project_id: str = 'proj-1', session_id: str | None = None) -> ImportResult:
    return ImportResult.succeeded(path, project_id, session_id or f'sess-{PurePath(path).stem}')


def failed(path: str, error: str = 'parse_error') -> ImportResult:
    return ImportResult.failed(path, error)


class FakeBackend:
    """Scripted ImportBackend."""

    def __init__(
        self,
        files: Sequence[DiscoveredFile] = (),
        identifiers: Sequence[str] = (),
    ) -> None:
        self.files = list(files)
        self.manual_files: list[DiscoveredFile] = []
        self.identifiers = list(identifiers)
        self.outcomes: dict[str, ImportResult] = {}

        self.scan_error: Exception | None = None
        self.identifiers_error: Exception | None = None
        self.import_error: Exception | None = None

        # Awaited before file i is attempted / while file i is in flight
        self.before_file: dict[int, Hook] = {}
        self.during_file: dict[int, Hook] = {}
        # When False the backend stops on cancel without calling on_cancelled
        self.report_cancelled = True
        # When False results are only returned, never reported via on_file_done
        self.report_file_done = True

        self.scanned: list[ImportSource] = []
        self.import_calls: list[list[str]] = []
        self.cancel_requests = 0
        self._cancelled = False

    def result_for(self, path: str) -> ImportResult:
        return self.outcomes.get(path) or ok(path, project_id=f'proj-{PurePath(path).parent.name or "root"}')

    async def scan_directory(self, source: ImportSource) -> list[DiscoveredFile]:
        self.scanned.append(source)
        if self.scan_error is not None:
            raise self.scan_error
        return list(self.files)

    async def select_files_manually(self) -> list[DiscoveredFile]:
        if self.scan_error is not None:
            raise self.scan_error
        return list(self.manual_files)

    async def run_import(self, paths: Sequence[str], callbacks: ImportCallbacks) -> list[ImportResult]:
        self.import_calls.append(list(paths))
        if self.import_error is not None:
            raise self.import_error

        self._cancelled = False
        results: list[ImportResult] = []
        for index, path in enumerate(paths):
            if index in self.before_file:
                await self.before_file[index]()
            if self._cancelled:
                if self.report_cancelled and callbacks.on_cancelled:
                    callbacks.on_cancelled()
                break
            if index in self.during_file:
                await self.during_file[index]()

            result = self.result_for(path)
            results.append(result)
            if self.report_file_done and callbacks.on_file_done:
                callbacks.on_file_done(result)
        return results

    async def request_cancel(self) -> None:
        self.cancel_requests += 1
        self._cancelled = True

    async def get_imported_identifiers(self) -> list[str]:
        if self.identifiers_error is not None:
            raise self.identifiers_error
        return list(self.identifiers)


@pytest.fixture
def scenario_files() -> list[DiscoveredFile]:
    """Two sessions in project 'a', one in project 'b'."""
    return [
        make_file('a/1.json', 'a'),
        make_file('a/2.json', 'a'),
        make_file('b/1.json', 'b'),
    ]


@pytest.fixture
def settings() -> BaseImportSettings:
    return BaseImportSettings(RECENT_FILES_LIMIT=5, AUTO_SELECT_NEW_ON_SCAN=True)


@pytest.fixture
def backend(scenario_files: list[DiscoveredFile]) -> FakeBackend:
    return FakeBackend(files=scenario_files)
