"""
Local filesystem import backend.

Implements the ImportBackend boundary on top of the local filesystem:

- Discovery walks a source's log directory recursively for *.jsonl session
  files (agent-*.jsonl sidechain logs are skipped). The parent directory of
  each file is its project.
- Import reads a log's records to find its working directory and session id,
  copies the log into the store under <project_id>/<session_id>.jsonl and
  records it in index.json (filelock-protected, atomic rename).
- Cancellation is checked between files; the file in progress completes.

Blocking filesystem work runs in worker threads so the event loop stays free.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

import pydantic
from filelock import FileLock

from session_import.base_model import MutableStrictModel, StrictModel
from session_import.config.base import get_settings
from session_import.config.local import LocalBackendSettings
from session_import.protocols import ImportCallbacks
from session_import.schemas import DiscoveredFile, ImportProgress, ImportResult
from session_import.storage.local import LocalFileSystemStorage
from session_import.storage.protocol import StorageBackend
from session_import.types import ImportSource, JsonDatetime

__all__ = [
    'ImportIndex',
    'ImportIndexEntry',
    'LocalImportBackend',
    'SessionLogError',
    'find_session_files',
    'generate_project_id',
]

logger = logging.getLogger(__name__)

SESSION_FILE_SUFFIX = '.jsonl'
AGENT_FILE_PREFIX = 'agent-'


class SessionLogError(Exception):
    """A session log could not be imported (reported as a failed result, never raised to callers)."""


# ==============================================================================
# Models
# ==============================================================================


class _RecordHeader(pydantic.BaseModel):
    """The fields of a log record used for import; everything else is ignored."""

    model_config = pydantic.ConfigDict(extra='allow', frozen=True)

    cwd: str | None = None
    session_id: str | None = pydantic.Field(default=None, alias='sessionId')


class ImportIndexEntry(StrictModel):
    """One imported session in the store index."""

    source_path: str  # Original log file
    project_id: str
    session_id: str
    cwd: str | None  # Working directory recorded in the log (None if absent)
    stored_path: str  # Copy inside the store
    imported_at: JsonDatetime


class ImportIndex(MutableStrictModel):
    """The index.json document; sessions is edited in place under the index lock."""

    schema_version: str = '1.0'
    sessions: dict[str, ImportIndexEntry] = pydantic.Field(default_factory=dict)  # Keyed by source_path


# ==============================================================================
# Discovery helpers
# ==============================================================================


def find_session_files(directory: Path) -> list[Path]:
    """
    Recursively find session log files under a directory.

    Args:
        directory: Directory to walk

    Returns:
        Sorted session file paths (empty if the directory doesn't exist)
    """
    if not directory.is_dir():
        return []

    return sorted(
        path
        for path in directory.rglob(f'*{SESSION_FILE_SUFFIX}')
        if path.is_file() and not path.name.startswith(AGENT_FILE_PREFIX)
    )


def _to_discovered_file(path: Path) -> DiscoveredFile:
    stat = path.stat()
    return DiscoveredFile(
        path=str(path),
        name=path.name,
        size=stat.st_size,
        modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
        project_path=str(path.parent),
        session_id=path.stem,
    )


def generate_project_id(cwd: str) -> str:
    """Stable project id derived from a working directory."""
    return 'proj_' + hashlib.sha256(cwd.encode('utf-8')).hexdigest()[:16]


def _read_session_log(path: Path) -> tuple[bytes, _RecordHeader]:
    """
    Read a session log and extract its header fields.

    The first record carrying a value wins for each of cwd and sessionId.

    Raises:
        FileNotFoundError: If the file is gone
        SessionLogError: If the file is empty or a line is not a JSON object
    """
    data = path.read_bytes()
    cwd: str | None = None
    session_id: str | None = None
    record_count = 0

    for line_number, line in enumerate(data.decode('utf-8', errors='replace').splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            raise SessionLogError(f'parse_error: line {line_number}: {e.msg}') from e
        if not isinstance(record, dict):
            raise SessionLogError(f'parse_error: line {line_number}: expected a JSON object')
        record_count += 1

        if cwd is not None and session_id is not None:
            continue
        try:
            header = _RecordHeader.model_validate(record)
        except pydantic.ValidationError as e:
            raise SessionLogError(f'parse_error: line {line_number}: {e.errors()[0]["msg"]}') from e
        cwd = cwd or header.cwd
        session_id = session_id or header.session_id

    if record_count == 0:
        raise SessionLogError('empty_file')

    return data, _RecordHeader(cwd=cwd, sessionId=session_id)


# ==============================================================================
# Backend
# ==============================================================================


class LocalImportBackend:
    """Filesystem implementation of the ImportBackend protocol."""

    def __init__(
        self,
        settings: LocalBackendSettings | None = None,
        manual_directory: Path | None = None,
    ) -> None:
        """
        Initialize the backend.

        Args:
            settings: Directory settings (loaded from the environment if omitted)
            manual_directory: Directory returned by the "pick manually" action
                (None means the picker is dismissed)
        """
        self.settings = settings if settings is not None else get_settings(LocalBackendSettings)
        self.manual_directory = manual_directory
        self.storage: StorageBackend = LocalFileSystemStorage(self.settings.STORE_DIR / 'sessions')
        self.index_file = self.settings.STORE_DIR / 'index.json'
        self.lock_file = self.index_file.with_suffix('.lock')
        self._cancel_event = asyncio.Event()

    # --------------------------------------------------------------------------
    # Discovery
    # --------------------------------------------------------------------------

    async def scan_directory(self, source: ImportSource) -> list[DiscoveredFile]:
        """Scan the default log directory of a source."""
        return await self.scan_custom_directory(self.settings.source_dir(source))

    async def scan_custom_directory(self, directory: Path) -> list[DiscoveredFile]:
        """Scan any directory for session files."""
        logger.debug(f'Scanning {directory}')
        return await asyncio.to_thread(self._scan_sync, directory)

    @staticmethod
    def _scan_sync(directory: Path) -> list[DiscoveredFile]:
        files = []
        for path in find_session_files(directory):
            try:
                files.append(_to_discovered_file(path))
            except FileNotFoundError:
                logger.debug(f'File vanished during scan: {path}')
        return files

    async def select_files_manually(self) -> list[DiscoveredFile]:
        if self.manual_directory is None:
            return []
        return await self.scan_custom_directory(self.manual_directory)

    # --------------------------------------------------------------------------
    # Import
    # --------------------------------------------------------------------------

    async def run_import(self, paths: Sequence[str], callbacks: ImportCallbacks) -> list[ImportResult]:
        """
        Import files one at a time, stopping between files if cancelled.

        Args:
            paths: Files to import
            callbacks: Progress callbacks

        Returns:
            Results for the files attempted
        """
        self._cancel_event.clear()
        results: list[ImportResult] = []
        success_count = 0
        failure_count = 0

        for index, path in enumerate(paths):
            if self._cancel_event.is_set():
                logger.info(f'Import cancelled before {path}')
                if callbacks.on_cancelled:
                    callbacks.on_cancelled()
                break

            if callbacks.on_progress:
                callbacks.on_progress(
                    ImportProgress(
                        current=index,
                        total=len(paths),
                        current_file=path,
                        success_count=success_count,
                        failure_count=failure_count,
                    )
                )

            result = await self._import_file(Path(path))
            if result.success:
                success_count += 1
            else:
                failure_count += 1
            results.append(result)
            if callbacks.on_file_done:
                callbacks.on_file_done(result)

        return results

    async def request_cancel(self) -> None:
        self._cancel_event.set()

    async def _import_file(self, path: Path) -> ImportResult:
        file_path = str(path)
        try:
            data, header = await asyncio.to_thread(_read_session_log, path)
        except FileNotFoundError:
            return ImportResult.failed(file_path, 'file_not_found')
        except SessionLogError as e:
            return ImportResult.failed(file_path, str(e))
        except OSError as e:
            return ImportResult.failed(file_path, f'io_error: {e.strerror or e}')

        project_id = generate_project_id(header.cwd or str(path.parent))
        session_id = header.session_id or path.stem

        try:
            stored_path = await self.storage.save(f'{project_id}/{session_id}{SESSION_FILE_SUFFIX}', data)
            entry = ImportIndexEntry(
                source_path=file_path,
                project_id=project_id,
                session_id=session_id,
                cwd=header.cwd,
                stored_path=stored_path,
                imported_at=datetime.now(UTC),
            )
            await asyncio.to_thread(self._record_entry, entry)
        except (OSError, ValueError) as e:
            logger.error(f'Failed to store {file_path}: {e}')
            return ImportResult.failed(file_path, f'store_error: {e}')

        return ImportResult.succeeded(file_path, project_id, session_id)

    # --------------------------------------------------------------------------
    # Index
    # --------------------------------------------------------------------------

    async def get_imported_identifiers(self) -> list[str]:
        """Source paths and session ids of everything in the store."""
        index = await asyncio.to_thread(self.read_index)
        identifiers: list[str] = []
        for entry in index.sessions.values():
            identifiers.append(entry.source_path)
            identifiers.append(entry.session_id)
        return identifiers

    def read_index(self) -> ImportIndex:
        """Read and parse index.json (empty if missing)."""
        if not self.index_file.exists():
            return ImportIndex()

        with self.index_file.open() as f:
            data = json.load(f)
        return ImportIndex.model_validate(data)

    def _record_entry(self, entry: ImportIndexEntry) -> None:
        self.index_file.parent.mkdir(parents=True, exist_ok=True)

        # Acquire lock, read, modify, write atomically
        with FileLock(self.lock_file):
            index = self.read_index()
            index.sessions[entry.source_path] = entry
            self._write_index(index)

    def _write_index(self, index: ImportIndex) -> None:
        """Write index.json atomically using temp file + rename."""
        tmp_file = self.index_file.with_suffix('.tmp.json')

        with tmp_file.open('w') as f:
            json.dump(index.model_dump(mode='json'), f, indent=2)

        tmp_file.rename(self.index_file)
