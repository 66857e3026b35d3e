"""
Result aggregator - accumulates ImportResults across a wizard session.

Results are kept in an insertion-ordered mapping keyed by file path, so a
later result for the same file (a retry) replaces the earlier one instead of
being counted twice. success_count + failure_count always equals the number
of accumulated results.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import PurePath

from session_import.schemas import FailedFile, ImportedProject, ImportResult, ImportStats

__all__ = ['ResultAggregator']

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Accumulated results and imported projects for one wizard session."""

    def __init__(self) -> None:
        self._results: dict[str, ImportResult] = {}
        self._projects: dict[str, ImportedProject] = {}

    def clear(self) -> None:
        self._results = {}
        self._projects = {}

    # --------------------------------------------------------------------------
    # Accumulation
    # --------------------------------------------------------------------------

    def add_results(self, results: Iterable[ImportResult]) -> None:
        """Append results from a run (a path already present is overwritten in place)."""
        for result in results:
            self._results[result.file_path] = result

    def merge_retry_results(self, retry_results: Iterable[ImportResult]) -> None:
        """
        Merge the results of a retry run.

        Each retry result replaces the accumulated entry for the same file path
        (last write wins, original position kept). Paths not retried are untouched.

        Args:
            retry_results: Results returned by the retry run
        """
        replaced = 0
        recovered = 0
        for result in retry_results:
            previous = self._results.get(result.file_path)
            if previous is not None:
                replaced += 1
                if not previous.success and result.success:
                    recovered += 1
            self._results[result.file_path] = result

        logger.info(f'Merged retry results: {replaced} replaced, {recovered} recovered')

    def add_imported_project(self, project_id: str, session_id: str, file_path: str) -> ImportedProject:
        """
        Record one successfully imported session under its project.

        The project's first_session_id is set on first sight and never moved.

        Args:
            project_id: Store id of the project
            session_id: Store id of the imported session
            file_path: Source log file (its parent directory names the project)

        Returns:
            The updated project entry
        """
        existing = self._projects.get(project_id)
        if existing is None:
            project = ImportedProject(
                id=project_id,
                name=PurePath(file_path).parent.name or project_id,
                session_count=1,
                first_session_id=session_id,
            )
        else:
            project = existing.model_copy(update={'session_count': existing.session_count + 1})

        self._projects[project_id] = project
        return project

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------

    @property
    def results(self) -> list[ImportResult]:
        return list(self._results.values())

    @property
    def imported_projects(self) -> list[ImportedProject]:
        return list(self._projects.values())

    def first_session_for(self, project_id: str) -> str | None:
        project = self._projects.get(project_id)
        return project.first_session_id if project else None

    def stats(self) -> ImportStats:
        success_count = 0
        failure_count = 0
        project_ids: set[str] = set()
        for result in self._results.values():
            if result.success:
                success_count += 1
                if result.project_id is not None:
                    project_ids.add(result.project_id)
            else:
                failure_count += 1

        return ImportStats(
            success_count=success_count,
            failure_count=failure_count,
            project_count=len(project_ids),
        )

    def failed_paths(self) -> list[str]:
        """File paths of every failed result - the input for a retry."""
        return [r.file_path for r in self._results.values() if not r.success]

    def failed_files(self) -> list[FailedFile]:
        return [FailedFile(file_path=r.file_path, error=r.error or '') for r in self._results.values() if not r.success]
