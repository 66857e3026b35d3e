"""
Import executor - drives a batch of files through the backend import call.

Publishes a single typed event stream per run:

    progress(current=0)            before the first file
    file_done, progress(current=n) after each completed file, n strictly +1
    cancelled                      at most once, if a cancel took effect

Progress is computed here from the backend's per-file reports rather than
relayed from the backend, so the ordering guarantees hold whatever cadence
the backend reports at.

Cancellation is cooperative: cancel() asks the backend to stop, a file the
backend already started may still finish, and the run returns only the
results of completed files with status 'cancelled'.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Sequence

import attrs

from session_import.exceptions import ImportExecutionError, ImportInProgressError
from session_import.protocols import ImportBackend, ImportCallbacks
from session_import.schemas import (
    CancelledEvent,
    EventListener,
    FileDoneEvent,
    ImportEvent,
    ImportOutcome,
    ImportProgress,
    ImportResult,
    ProgressEvent,
)

__all__ = ['ImportExecutor', 'NO_RESULT_ERROR']

logger = logging.getLogger(__name__)

NO_RESULT_ERROR = 'no result reported by backend'


@attrs.define
class _RunState:
    """Mutable bookkeeping for one in-flight run."""

    paths: tuple[str, ...]
    results: dict[str, ImportResult] = attrs.field(factory=dict)
    success_count: int = 0
    failure_count: int = 0
    cancel_requested: bool = False
    cancel_signalled: bool = False

    @property
    def total(self) -> int:
        return len(self.paths)

    def progress(self, current_file: str) -> ImportProgress:
        return ImportProgress(
            current=len(self.results),
            total=self.total,
            current_file=current_file,
            success_count=self.success_count,
            failure_count=self.failure_count,
        )


class ImportExecutor:
    """
    Single-flight batch importer over an ImportBackend.

    One run at a time; run() while another is in flight raises
    ImportInProgressError.
    """

    def __init__(self, backend: ImportBackend) -> None:
        self.backend = backend
        self._listeners: list[EventListener] = []
        self._state: _RunState | None = None

    # --------------------------------------------------------------------------
    # Event stream
    # --------------------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """
        Subscribe to run events.

        Args:
            listener: Called synchronously with each event

        Returns:
            Function that removes the subscription
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: ImportEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f'Import event listener failed on {event.kind} event')

    # --------------------------------------------------------------------------
    # Run / cancel
    # --------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._state is not None

    async def run(self, paths: Sequence[str]) -> ImportOutcome:
        """
        Import files through the backend.

        Args:
            paths: Files to import, in order (must be non-empty)

        Returns:
            ImportOutcome with one result per path on completion, or the
            completed prefix when cancelled

        Raises:
            ValueError: If paths is empty (callers gate on a non-empty selection)
            ImportInProgressError: If another run is in flight
            ImportExecutionError: If the backend fails to run the batch; its
                results hold the files completed before the failure
        """
        if not paths:
            raise ValueError('ImportExecutor.run() requires at least one path')
        if self._state is not None:
            raise ImportInProgressError('import')

        unique_paths = tuple(dict.fromkeys(paths))
        if len(unique_paths) != len(paths):
            logger.warning(f'Dropped {len(paths) - len(unique_paths)} duplicate path(s) from import batch')

        state = _RunState(paths=unique_paths)
        self._state = state
        try:
            logger.info(f'Starting import of {state.total} file(s)')
            self._emit(ProgressEvent(progress=ImportProgress.initial(state.total)))

            # Callbacks are bound to this run's state so late reports from a
            # previous backend call cannot leak into a later run.
            callbacks = ImportCallbacks(
                on_progress=self._on_backend_progress,
                on_file_done=functools.partial(self._on_file_done, state),
                on_cancelled=functools.partial(self._on_cancelled, state),
            )
            try:
                returned = await self.backend.run_import(state.paths, callbacks)
            except Exception as e:
                logger.error(f'Backend import failed after {len(state.results)}/{state.total} file(s): {e}')
                completed = [state.results[p] for p in state.paths if p in state.results]
                raise ImportExecutionError(state.total, e, completed) from e

            return self._finish(state, returned)
        finally:
            self._state = None

    async def cancel(self) -> None:
        """
        Request cancellation of the in-flight run.

        No-op when nothing is running or a cancel was already requested.
        """
        state = self._state
        if state is None:
            logger.debug('Cancel requested with no import in flight')
            return
        if state.cancel_requested:
            return

        state.cancel_requested = True
        logger.info(f'Cancelling import after {len(state.results)}/{state.total} file(s)')
        await self.backend.request_cancel()

    # --------------------------------------------------------------------------
    # Backend callbacks
    # --------------------------------------------------------------------------

    def _on_backend_progress(self, progress: ImportProgress) -> None:
        logger.debug(f'Backend progress {progress.current}/{progress.total}: {progress.current_file}')

    def _on_file_done(self, state: _RunState, result: ImportResult) -> None:
        path = result.file_path
        if path not in state.paths:
            logger.warning(f'Ignoring result for file outside the batch: {path}')
            return
        if path in state.results:
            logger.warning(f'Ignoring duplicate result for {path}')
            return

        state.results[path] = result
        if result.success:
            state.success_count += 1
        else:
            state.failure_count += 1
            logger.debug(f'Import failed for {path}: {result.error}')

        self._emit(FileDoneEvent(result=result))
        self._emit(ProgressEvent(progress=state.progress(current_file=path)))

    def _on_cancelled(self, state: _RunState) -> None:
        if state.cancel_signalled:
            return
        state.cancel_signalled = True
        self._emit(
            CancelledEvent(
                processed_count=len(state.results),
                success_count=state.success_count,
                failure_count=state.failure_count,
            )
        )

    # --------------------------------------------------------------------------
    # Completion
    # --------------------------------------------------------------------------

    def _finish(self, state: _RunState, returned: Sequence[ImportResult]) -> ImportOutcome:
        # Files the backend completed but never reported through on_file_done
        for result in returned:
            if result.file_path not in state.results:
                self._on_file_done(state, result)

        cancelled = state.cancel_signalled or (state.cancel_requested and len(state.results) < state.total)

        if cancelled:
            self._on_cancelled(state)
            completed = [state.results[p] for p in state.paths if p in state.results]
            logger.info(
                f'Import cancelled: {len(completed)}/{state.total} file(s) processed, '
                f'{state.success_count} succeeded, {state.failure_count} failed'
            )
            return ImportOutcome(status='cancelled', total=state.total, results=tuple(completed))

        for path in state.paths:
            if path not in state.results:
                logger.warning(f'Backend finished without reporting {path}')
                self._on_file_done(state, ImportResult.failed(path, NO_RESULT_ERROR))

        logger.info(f'Import finished: {state.success_count} succeeded, {state.failure_count} failed')
        return ImportOutcome(
            status='completed',
            total=state.total,
            results=tuple(state.results[p] for p in state.paths),
        )
