"""Tests for the single-flight import executor and its event stream."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest
from conftest import FakeBackend, failed

from session_import.exceptions import ImportExecutionError, ImportInProgressError
from session_import.protocols import ImportCallbacks
from session_import.schemas import CancelledEvent, FileDoneEvent, ImportEvent, ImportResult, ProgressEvent
from session_import.services.executor import NO_RESULT_ERROR, ImportExecutor

PATHS = ['a/1.json', 'a/2.json', 'b/1.json']


@pytest.fixture
def executor(backend: FakeBackend) -> ImportExecutor:
    return ImportExecutor(backend)


@pytest.fixture
def events(executor: ImportExecutor) -> list[ImportEvent]:
    received: list[ImportEvent] = []
    executor.subscribe(received.append)
    return received


def _progress_currents(events: list[ImportEvent]) -> list[int]:
    return [e.progress.current for e in events if isinstance(e, ProgressEvent)]


def _cancelled(events: list[ImportEvent]) -> list[CancelledEvent]:
    return [e for e in events if isinstance(e, CancelledEvent)]


# ==============================================================================
# Normal completion
# ==============================================================================


def test_completed_run_returns_one_result_per_path_in_order(
    executor: ImportExecutor, backend: FakeBackend, events: list[ImportEvent]
) -> None:
    backend.outcomes['a/2.json'] = failed('a/2.json', 'parse_error: line 3: bad json')

    outcome = asyncio.run(executor.run(PATHS))

    assert outcome.status == 'completed'
    assert [r.file_path for r in outcome.results] == PATHS
    assert [r.success for r in outcome.results] == [True, False, True]
    assert outcome.success_count == 2
    assert outcome.failure_count == 1
    assert outcome.skipped_count == 0
    assert not executor.is_running


def test_event_order_is_initial_progress_then_file_done_before_progress(
    executor: ImportExecutor, events: list[ImportEvent]
) -> None:
    asyncio.run(executor.run(PATHS))

    assert [e.kind for e in events] == [
        'progress',
        'file_done',
        'progress',
        'file_done',
        'progress',
        'file_done',
        'progress',
    ]
    assert _progress_currents(events) == [0, 1, 2, 3]
    assert all(e.progress.total == 3 for e in events if isinstance(e, ProgressEvent))
    assert _cancelled(events) == []


def test_progress_counts_track_results(
    executor: ImportExecutor, backend: FakeBackend, events: list[ImportEvent]
) -> None:
    backend.outcomes['a/1.json'] = failed('a/1.json')

    asyncio.run(executor.run(PATHS))

    last = [e for e in events if isinstance(e, ProgressEvent)][-1].progress
    assert (last.success_count, last.failure_count) == (2, 1)
    assert last.current_file == 'b/1.json'


def test_duplicate_paths_are_imported_once(executor: ImportExecutor, backend: FakeBackend) -> None:
    outcome = asyncio.run(executor.run(['a/1.json', 'a/1.json', 'b/1.json']))

    assert backend.import_calls == [['a/1.json', 'b/1.json']]
    assert outcome.total == 2


def test_results_returned_without_callbacks_are_still_published(
    executor: ImportExecutor, backend: FakeBackend, events: list[ImportEvent]
) -> None:
    backend.report_file_done = False

    outcome = asyncio.run(executor.run(PATHS))

    assert outcome.status == 'completed'
    assert [e.result.file_path for e in events if isinstance(e, FileDoneEvent)] == PATHS
    assert _progress_currents(events) == [0, 1, 2, 3]


def test_paths_the_backend_never_reports_become_failures(scenario_files) -> None:
    class ForgetfulBackend(FakeBackend):
        async def run_import(self, paths: Sequence[str], callbacks: ImportCallbacks) -> list[ImportResult]:
            results = await super().run_import(paths, callbacks)
            return results[:-1]

    backend = ForgetfulBackend(files=scenario_files)
    backend.report_file_done = False
    executor = ImportExecutor(backend)

    outcome = asyncio.run(executor.run(PATHS))

    assert outcome.status == 'completed'
    assert len(outcome.results) == 3
    assert outcome.results[-1] == ImportResult.failed('b/1.json', NO_RESULT_ERROR)


def test_results_for_paths_outside_the_batch_are_ignored(scenario_files) -> None:
    class NoisyBackend(FakeBackend):
        async def run_import(self, paths: Sequence[str], callbacks: ImportCallbacks) -> list[ImportResult]:
            callbacks.on_file_done(ImportResult.failed('elsewhere.json', 'io_error'))
            return await super().run_import(paths, callbacks)

    executor = ImportExecutor(NoisyBackend(files=scenario_files))

    outcome = asyncio.run(executor.run(PATHS))

    assert [r.file_path for r in outcome.results] == PATHS


# ==============================================================================
# Cancellation
# ==============================================================================


def test_cancel_before_third_file_returns_completed_prefix(
    executor: ImportExecutor, backend: FakeBackend, events: list[ImportEvent]
) -> None:
    backend.before_file[2] = executor.cancel

    outcome = asyncio.run(executor.run(PATHS))

    assert outcome.status == 'cancelled'
    assert [r.file_path for r in outcome.results] == ['a/1.json', 'a/2.json']
    assert outcome.skipped_count == 1
    assert backend.cancel_requests == 1

    cancelled = _cancelled(events)
    assert len(cancelled) == 1
    assert cancelled[0].processed_count == 2
    assert events[-1].kind == 'cancelled'


def test_file_in_flight_when_cancelled_still_completes(executor: ImportExecutor, backend: FakeBackend) -> None:
    backend.during_file[1] = executor.cancel

    outcome = asyncio.run(executor.run(PATHS))

    assert outcome.cancelled
    assert [r.file_path for r in outcome.results] == ['a/1.json', 'a/2.json']


def test_cancel_is_inferred_when_backend_stops_silently(
    executor: ImportExecutor, backend: FakeBackend, events: list[ImportEvent]
) -> None:
    backend.report_cancelled = False
    backend.before_file[1] = executor.cancel

    outcome = asyncio.run(executor.run(PATHS))

    assert outcome.status == 'cancelled'
    assert len(outcome.results) == 1
    assert len(_cancelled(events)) == 1


def test_cancel_after_last_file_still_completes(
    executor: ImportExecutor, backend: FakeBackend, events: list[ImportEvent]
) -> None:
    backend.report_cancelled = False
    backend.during_file[2] = executor.cancel

    outcome = asyncio.run(executor.run(PATHS))

    assert outcome.status == 'completed'
    assert len(outcome.results) == 3
    assert _cancelled(events) == []


def test_repeated_cancel_is_forwarded_once(executor: ImportExecutor, backend: FakeBackend) -> None:
    async def cancel_twice() -> None:
        await executor.cancel()
        await executor.cancel()

    backend.before_file[1] = cancel_twice

    asyncio.run(executor.run(PATHS))

    assert backend.cancel_requests == 1


def test_cancel_without_running_import_is_noop(executor: ImportExecutor, backend: FakeBackend) -> None:
    asyncio.run(executor.cancel())

    assert backend.cancel_requests == 0


# ==============================================================================
# Guards and failures
# ==============================================================================


def test_run_requires_paths(executor: ImportExecutor) -> None:
    with pytest.raises(ValueError):
        asyncio.run(executor.run([]))


def test_second_run_while_running_is_rejected(executor: ImportExecutor, backend: FakeBackend) -> None:
    rejected: list[ImportInProgressError] = []

    async def start_again() -> None:
        try:
            await executor.run(['b/1.json'])
        except ImportInProgressError as e:
            rejected.append(e)

    backend.during_file[0] = start_again

    outcome = asyncio.run(executor.run(PATHS))

    assert len(rejected) == 1
    assert outcome.status == 'completed'
    assert backend.import_calls == [PATHS]


def test_backend_failure_raises_and_releases_the_run(executor: ImportExecutor, backend: FakeBackend) -> None:
    backend.import_error = RuntimeError('backend unavailable')

    with pytest.raises(ImportExecutionError) as exc_info:
        asyncio.run(executor.run(PATHS))

    assert exc_info.value.path_count == 3
    assert exc_info.value.results == ()
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert not executor.is_running

    backend.import_error = None
    assert asyncio.run(executor.run(PATHS)).status == 'completed'


def test_backend_failure_midway_carries_completed_results(executor: ImportExecutor, backend: FakeBackend) -> None:
    async def crash() -> None:
        raise RuntimeError('native crash')

    backend.during_file[2] = crash

    with pytest.raises(ImportExecutionError) as exc_info:
        asyncio.run(executor.run(PATHS))

    assert [r.file_path for r in exc_info.value.results] == ['a/1.json', 'a/2.json']
    assert not executor.is_running


def test_failing_listener_does_not_break_the_run(executor: ImportExecutor, events: list[ImportEvent]) -> None:
    def explode(event: ImportEvent) -> None:
        raise RuntimeError('listener bug')

    executor.subscribe(explode)

    outcome = asyncio.run(executor.run(PATHS))

    assert outcome.status == 'completed'
    assert len(events) == 7


def test_unsubscribe_stops_delivery(executor: ImportExecutor) -> None:
    received: list[ImportEvent] = []
    unsubscribe = executor.subscribe(received.append)

    unsubscribe()
    asyncio.run(executor.run(PATHS))

    assert received == []
