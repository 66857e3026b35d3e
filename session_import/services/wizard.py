"""
Import wizard coordinator.

Owns the state of one import wizard session - catalog, selection, dedup
tracker, accumulated results - and the executor that runs imports. The UI
layer reads state through the query methods here and calls the operations;
it never mutates the underlying containers directly.

Lifecycle:
    open() -> set_source() -> scan() / select_files_manually()
    -> selection operations -> start_import() -> [retry_failed()]
    -> continue_importing() (new session, same store) or reset()

Failed operations (scan errors, backend failures) raise and leave the prior
state intact so the triggering action can be retried.
"""

from __future__ import annotations

import collections
import logging
from collections.abc import Awaitable, Callable, Sequence

from session_import.config.base import BaseImportSettings, get_settings
from session_import.exceptions import (
    ImportExecutionError,
    ImportInProgressError,
    NoSourceSelectedError,
    NothingSelectedError,
    ScanError,
)
from session_import.protocols import ImportBackend, LoggerProtocol, NullLogger
from session_import.schemas import (
    DiscoveredFile,
    EventListener,
    FailedFile,
    FileDoneEvent,
    ImportedProject,
    ImportEvent,
    ImportOutcome,
    ImportProgress,
    ImportResult,
    ImportStats,
    ProgressEvent,
    ProjectGroup,
    ProjectSelectionState,
    RecentFile,
    SelectionSummary,
)
from session_import.services.aggregator import ResultAggregator
from session_import.services.catalog import Catalog
from session_import.services.dedup import DedupTracker
from session_import.services.executor import ImportExecutor
from session_import.services.selection import SelectionModel
from session_import.types import ImportSource, ImportStatus

__all__ = ['ImportWizard']

logger = logging.getLogger(__name__)


class ImportWizard:
    """
    Coordinator for one import wizard session.

    Applies the dedup policy on top of the selection model: sessions that are
    already imported cannot be toggled, and fully imported projects are locked.
    """

    def __init__(
        self,
        backend: ImportBackend,
        settings: BaseImportSettings | None = None,
        logger: LoggerProtocol | None = None,
    ) -> None:
        """
        Initialize the wizard.

        Args:
            backend: Native import boundary (scan, import, cancel, dedup seed)
            settings: Wizard settings (loaded from the environment if omitted)
            logger: User-facing logger (silent if omitted)
        """
        self.backend = backend
        self.settings = settings if settings is not None else get_settings(BaseImportSettings)
        self.logger = logger or NullLogger()

        self.catalog = Catalog()
        self.selection = SelectionModel(self.catalog)
        self.dedup = DedupTracker()
        self.aggregator = ResultAggregator()
        self.executor = ImportExecutor(backend)
        self.executor.subscribe(self._on_event)

        self.source: ImportSource | None = None
        self.search_query = ''
        self.expanded_projects: set[str] = set()
        self.progress: ImportProgress | None = None
        self.last_outcome: ImportOutcome | None = None
        self._recent_files: collections.deque[RecentFile] = collections.deque(maxlen=self.settings.RECENT_FILES_LIMIT)
        self._is_scanning = False
        self._is_retrying = False

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def open(self) -> None:
        """
        Start a wizard session by loading the identifiers already in the store.

        A failure here is not fatal: the wizard continues with an empty dedup
        set and every session is treated as new.
        """
        try:
            identifiers = await self.backend.get_imported_identifiers()
        except Exception as e:
            logger.error(f'Failed to load imported identifiers: {e}')
            await self.logger.warning(f'Could not load previously imported sessions: {e}')
            return

        self.dedup.load(identifiers)
        await self.logger.info(f'Loaded {len(identifiers)} previously imported identifier(s)')

    def reset(self) -> None:
        """Discard all wizard state (closing the wizard)."""
        self._clear_session_state()
        self.dedup.clear()

    def continue_importing(self) -> None:
        """
        Start a new wizard session after an import.

        Results are cleared; the dedup tracker is kept since it already
        reflects what this session added to the store.
        """
        self._clear_session_state()

    def _clear_session_state(self) -> None:
        if self.is_importing:
            raise ImportInProgressError('reset')
        self.source = None
        self.catalog.clear()
        self.selection.clear_all()
        self.aggregator.clear()
        self.search_query = ''
        self.expanded_projects = set()
        self.progress = None
        self.last_outcome = None
        self._recent_files.clear()

    # ==========================================================================
    # Source & discovery
    # ==========================================================================

    def set_source(self, source: ImportSource) -> None:
        self.source = source

    async def scan(self) -> list[DiscoveredFile]:
        """
        Scan the selected source's default log location.

        Returns:
            The discovered files (now the catalog contents)

        Raises:
            NoSourceSelectedError: If no source was chosen
            ScanError: If the backend scan fails (catalog unchanged)
        """
        source = self.source
        if source is None:
            raise NoSourceSelectedError()

        await self.logger.info(f'Scanning {source} sessions')
        files = await self._discover(f'Scan of {source}', lambda: self.backend.scan_directory(source))
        self._apply_discovered(files)
        return files

    async def select_files_manually(self) -> list[DiscoveredFile]:
        """
        Let the user pick a location and catalog what is found there.

        An empty pick (picker dismissed or nothing found) leaves the catalog unchanged.

        Raises:
            ScanError: If the backend selection fails (catalog unchanged)
        """
        files = await self._discover('Manual selection', self.backend.select_files_manually)
        if not files:
            await self.logger.info('No session files selected')
            return []
        self._apply_discovered(files)
        return files

    async def _discover(
        self,
        action: str,
        call: Callable[[], Awaitable[list[DiscoveredFile]]],
    ) -> list[DiscoveredFile]:
        if self.is_importing or self._is_scanning:
            raise ImportInProgressError(action.lower())

        self._is_scanning = True
        try:
            files = await call()
        except Exception as e:
            logger.error(f'{action} failed: {e}')
            raise ScanError(action, e) from e
        finally:
            self._is_scanning = False

        await self.logger.info(f'{action} found {len(files)} session file(s)')
        return files

    def _apply_discovered(self, files: list[DiscoveredFile]) -> None:
        self.catalog.set_files(files)  # Selection prunes itself via the change hook
        self.search_query = ''
        self.expanded_projects = set()
        if self.settings.AUTO_SELECT_NEW_ON_SCAN:
            self.selection.select_all_new(self.dedup.imported_paths(self.catalog.files))

    # ==========================================================================
    # Selection (dedup policy applied)
    # ==========================================================================

    def can_toggle_session(self, path: str) -> bool:
        file = self.catalog.get(path)
        return file is not None and not self.dedup.is_session_imported(file)

    def can_toggle_project(self, project_path: str) -> bool:
        return self.catalog.has_project(project_path) and self.import_status(project_path) == 'new'

    def toggle_session(self, path: str) -> bool:
        """
        Toggle one session unless it is locked.

        Returns:
            True if the selection changed
        """
        if not self.can_toggle_session(path):
            logger.debug(f'Session not toggleable: {path}')
            return False
        self.selection.toggle_session(path)
        return True

    def toggle_project(self, project_path: str) -> bool:
        """
        Toggle a project unless it is fully imported.

        In a partially imported project only the new sessions take part: the
        toggle selects them all, or clears them when they already are.

        Returns:
            True if the selection changed
        """
        if not self.can_toggle_project(project_path):
            logger.debug(f'Project not toggleable: {project_path}')
            return False

        sessions = self.catalog.sessions_for(project_path)
        imported = self.dedup.imported_paths(sessions)
        if not imported:
            self.selection.toggle_project(project_path)
            return True

        new_paths = {s.path for s in sessions if s.path not in imported}
        if all(self.selection.is_selected(path) for path in new_paths):
            self.selection.deselect(new_paths)
        else:
            self.selection.select(new_paths)
        return True

    def select_all(self) -> None:
        self.selection.select_all()

    def clear_all(self) -> None:
        self.selection.clear_all()

    def invert_selection(self) -> None:
        self.selection.invert_selection()

    def select_all_new(self) -> None:
        self.selection.select_all_new(self.dedup.imported_paths(self.catalog.files))

    def project_selection_state(self, project_path: str) -> ProjectSelectionState:
        return self.selection.project_selection_state(project_path)

    def import_status(self, project_path: str) -> ImportStatus:
        return self.dedup.import_status(project_path, self.catalog)

    def is_session_imported(self, path: str) -> bool:
        file = self.catalog.get(path)
        return file is not None and self.dedup.is_session_imported(file)

    # ==========================================================================
    # View state
    # ==========================================================================

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def visible_groups(self) -> list[ProjectGroup]:
        """Project groups matching the current search query."""
        return self.catalog.filter(self.search_query)

    def toggle_project_expand(self, project_path: str) -> None:
        if project_path in self.expanded_projects:
            self.expanded_projects.discard(project_path)
        else:
            self.expanded_projects.add(project_path)

    def selection_summary(self) -> SelectionSummary:
        return SelectionSummary(
            total_projects=len(self.catalog.project_paths),
            total_sessions=len(self.catalog),
            selected_count=self.selection.selected_count,
            selected_project_count=self.selection.selected_project_count,
            imported_session_count=self.dedup.imported_session_count(self.catalog),
            new_project_count=self.dedup.new_project_count(self.catalog),
        )

    @property
    def recent_files(self) -> list[RecentFile]:
        """Most recently completed files, newest first."""
        return list(self._recent_files)

    @property
    def is_importing(self) -> bool:
        return self.executor.is_running

    @property
    def is_retrying(self) -> bool:
        return self._is_retrying

    # ==========================================================================
    # Import
    # ==========================================================================

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Subscribe to the executor's event stream (progress, file_done, cancelled)."""
        return self.executor.subscribe(listener)

    async def start_import(self) -> ImportOutcome:
        """
        Import the selected sessions that are not imported yet.

        Successfully imported sessions leave the selection, so a later
        start_import() only sends what is still outstanding.

        Returns:
            Outcome of the run (status 'cancelled' if cancel() took effect)

        Raises:
            NothingSelectedError: If no new sessions are selected
            ImportInProgressError: If an import or retry is already running
            ImportExecutionError: If the backend could not run the batch
                (files completed before the failure are still recorded)
        """
        if self.is_importing:
            raise ImportInProgressError('import')

        paths: list[str] = []
        for path in self.selection.selected_paths:
            file = self.catalog.get(path)
            if file is not None and not self.dedup.is_session_imported(file):
                paths.append(path)
        skipped = self.selection.selected_count - len(paths)
        if skipped:
            logger.info(f'Skipping {skipped} selected session(s) that are already imported')
        if not paths:
            raise NothingSelectedError()

        self._recent_files.clear()
        await self.logger.info(f'Importing {len(paths)} session(s)')

        try:
            outcome = await self.executor.run(paths)
        except ImportExecutionError as e:
            self.aggregator.add_results(e.results)
            self._record_successes(e.results)
            raise

        self.aggregator.add_results(outcome.results)
        self._record_successes(outcome.results)
        self.last_outcome = outcome
        await self._report(outcome, 'Import')
        return outcome

    async def retry_failed(self) -> ImportOutcome | None:
        """
        Re-run every failed file and merge the outcome into the accumulated results.

        Results are merged once, when the retry finishes (or fails); progress
        events still stream while it runs.

        Returns:
            Outcome of the retry run, or None if nothing had failed

        Raises:
            ImportInProgressError: If an import or retry is already running
            ImportExecutionError: If the backend could not run the batch
                (files completed before the failure are still merged)
        """
        failed = self.aggregator.failed_paths()
        if not failed:
            logger.debug('Retry requested with no failed files')
            return None
        if self.is_importing:
            raise ImportInProgressError('retry')

        self._is_retrying = True
        try:
            await self.logger.info(f'Retrying {len(failed)} failed file(s)')
            outcome = await self.executor.run(failed)
        except ImportExecutionError as e:
            self.aggregator.merge_retry_results(e.results)
            self._record_successes(e.results)
            raise
        finally:
            self._is_retrying = False

        self.aggregator.merge_retry_results(outcome.results)
        self._record_successes(outcome.results)
        self.last_outcome = outcome
        await self._report(outcome, 'Retry')
        return outcome

    async def cancel(self) -> None:
        """Request cancellation of the running import or retry (no-op if idle)."""
        await self.executor.cancel()

    def _record_successes(self, results: Sequence[ImportResult]) -> None:
        """Register newly imported sessions and drop them from the selection."""
        imported: set[str] = set()
        for result in results:
            if not result.success or result.file_path in self.dedup:
                continue
            if result.project_id is not None and result.session_id is not None:
                self.aggregator.add_imported_project(result.project_id, result.session_id, result.file_path)
            imported.add(result.file_path)
        self.dedup.mark_imported(results)
        self.selection.deselect(imported)

    async def _report(self, outcome: ImportOutcome, label: str) -> None:
        if outcome.cancelled:
            await self.logger.warning(
                f'{label} stopped: {len(outcome.results)}/{outcome.total} processed, '
                f'{outcome.skipped_count} not attempted'
            )
        else:
            await self.logger.info(
                f'{label} finished: {outcome.success_count} succeeded, {outcome.failure_count} failed'
            )

    def _on_event(self, event: ImportEvent) -> None:
        if isinstance(event, ProgressEvent):
            self.progress = event.progress
        elif isinstance(event, FileDoneEvent):
            result = event.result
            self._recent_files.appendleft(RecentFile(path=result.file_path, success=result.success, error=result.error))

    # ==========================================================================
    # Results
    # ==========================================================================

    def stats(self) -> ImportStats:
        return self.aggregator.stats()

    def failed_paths(self) -> list[str]:
        return self.aggregator.failed_paths()

    def failed_files(self) -> list[FailedFile]:
        return self.aggregator.failed_files()

    @property
    def results(self) -> list[ImportResult]:
        return self.aggregator.results

    @property
    def imported_projects(self) -> list[ImportedProject]:
        return self.aggregator.imported_projects
