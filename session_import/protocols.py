"""
Shared protocols for session-import services.

The wizard talks to two collaborators through these: a user-facing logger
and the import backend that owns all file access.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

import attrs

from session_import.schemas import DiscoveredFile, ImportProgress, ImportResult
from session_import.types import ImportSource


class LoggerProtocol(Protocol):
    """
    Protocol for async logger - enables services to work with any logging implementation.

    Implementations:
    - CLILogger (cli/logger.py): Terminal output, info only when verbose
    - NullLogger (below): No-op implementation for when logging is optional
    """

    async def info(self, message: str) -> None: ...
    async def warning(self, message: str) -> None: ...
    async def error(self, message: str) -> None: ...


class NullLogger:
    """
    No-op logger implementation for when logging is optional.

    Use this when a function requires a LoggerProtocol but the caller
    doesn't need logging output.
    """

    async def info(self, message: str) -> None:
        pass

    async def warning(self, message: str) -> None:
        pass

    async def error(self, message: str) -> None:
        pass


# ==============================================================================
# Backend Boundary
# ==============================================================================


@attrs.define(frozen=True)
class ImportCallbacks:
    """
    Callbacks a backend invokes while running an import batch.

    on_cancelled fires at most once, and only if cancellation was requested
    before the batch completed naturally.
    """

    on_progress: Callable[[ImportProgress], None] | None = None
    on_file_done: Callable[[ImportResult], None] | None = None
    on_cancelled: Callable[[], None] | None = None


@runtime_checkable
class ImportBackend(Protocol):
    """
    Protocol for the native side of the importer (file scanning, log parsing, storage).

    All calls are opaque to the orchestration services.
    """

    async def scan_directory(self, source: ImportSource) -> list[DiscoveredFile]:
        """
        Enumerate candidate log files for a tool source.

        Raises:
            Exception: Any failure is reported to the caller as ScanError
        """
        ...

    async def select_files_manually(self) -> list[DiscoveredFile]:
        """
        Let the user pick a file/directory and return what was found there.

        Returns:
            Discovered files, empty if the user cancelled the picker
        """
        ...

    async def run_import(self, paths: Sequence[str], callbacks: ImportCallbacks) -> list[ImportResult]:
        """
        Import files, reporting each completed file through callbacks.

        Args:
            paths: Files to import, in order
            callbacks: Progress/file-done/cancelled callbacks

        Returns:
            Results for the files that were attempted
        """
        ...

    async def request_cancel(self) -> None:
        """Ask the in-flight run_import to stop after the current file."""
        ...

    async def get_imported_identifiers(self) -> list[str]:
        """Paths/identifiers already present in the backing store."""
        ...
