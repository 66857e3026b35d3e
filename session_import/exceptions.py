"""
Shared exceptions for session-import.

Domain-specific exceptions used across services.

Per-file import failures are never raised - they are recorded as
ImportResult(success=False). Cancellation is an ImportOutcome status, not an
exception. Only whole-operation failures surface here.

Exception Hierarchy:
    SessionImportError (base)
    ├── ScanError (scan / manual directory selection failed)
    ├── ImportExecutionError (backend failed to run the batch at all)
    ├── ImportInProgressError (a run or retry is already in flight)
    ├── NothingSelectedError (import started with an empty selection)
    └── NoSourceSelectedError (scan requested before choosing a source)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from session_import.schemas import ImportResult


class SessionImportError(Exception):
    """Base exception for all session-import errors."""


class ScanError(SessionImportError):
    """Raised when the backend scan or manual file selection fails.

    The catalog is left unchanged; the caller may retry the scan.
    """

    def __init__(self, action: str, cause: BaseException) -> None:
        self.action = action
        self.cause = cause
        super().__init__(f'{action} failed: {cause}')


class ImportExecutionError(SessionImportError):
    """Raised when the backend cannot run an import batch (startup or transport failure).

    `results` holds the files that completed before the failure, in input
    order; they are already in the store and must still be recorded.
    """

    def __init__(self, path_count: int, cause: BaseException, results: Sequence[ImportResult] = ()) -> None:
        self.path_count = path_count
        self.cause = cause
        self.results = tuple(results)
        super().__init__(f'Import of {path_count} file(s) failed to run: {cause}')


class ImportInProgressError(SessionImportError):
    """Raised when a run or retry is requested while another is still in flight."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f'Cannot start {operation}: an import is already in progress')


class NothingSelectedError(SessionImportError):
    """Raised when an import is started with no sessions selected."""

    def __init__(self) -> None:
        super().__init__('No sessions selected. Select at least one session to import.')


class NoSourceSelectedError(SessionImportError):
    """Raised when a scan is requested before an import source was chosen."""

    def __init__(self) -> None:
        super().__init__('No import source selected. Choose one of: claude, gemini, cursor.')
