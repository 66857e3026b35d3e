"""
Dedup tracker - classifies catalog entries as new or already imported.

Seeded once per wizard session from the backend's imported identifiers and
extended from successful results as imports complete.

An identifier may be a session file path, a session id, or a project path
(the store reports whichever it keys on). A session counts as imported when
any of the three matches.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from session_import.schemas import DiscoveredFile, ImportResult
from session_import.services.catalog import Catalog
from session_import.types import ImportStatus

__all__ = ['DedupTracker']

logger = logging.getLogger(__name__)


class DedupTracker:
    """Set of identifiers already present in the backing store."""

    def __init__(self, identifiers: Iterable[str] = ()) -> None:
        self._imported: set[str] = set(identifiers)

    def load(self, identifiers: Iterable[str]) -> None:
        """Replace the known identifiers (start of a wizard session)."""
        self._imported = set(identifiers)
        logger.debug(f'Loaded {len(self._imported)} imported identifier(s)')

    def clear(self) -> None:
        self._imported = set()

    def mark_imported(self, results: Iterable[ImportResult]) -> int:
        """
        Record successful results as imported.

        Args:
            results: Results from an import run

        Returns:
            Number of newly recorded paths
        """
        before = len(self._imported)
        self._imported.update(r.file_path for r in results if r.success)
        return len(self._imported) - before

    @property
    def identifiers(self) -> frozenset[str]:
        return frozenset(self._imported)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._imported

    # --------------------------------------------------------------------------
    # Classification
    # --------------------------------------------------------------------------

    def is_session_imported(self, file: DiscoveredFile) -> bool:
        if file.path in self._imported or file.project_path in self._imported:
            return True
        return file.session_id is not None and file.session_id in self._imported

    def imported_paths(self, files: Iterable[DiscoveredFile]) -> set[str]:
        """Paths of the given files that are already imported."""
        return {file.path for file in files if self.is_session_imported(file)}

    def import_status(self, project_path: str, catalog: Catalog) -> ImportStatus:
        """
        Classify a project.

        'imported' only when the project has sessions and every one of them is
        imported. Partially imported projects stay 'new' so their remaining
        sessions can still be selected.
        """
        sessions = catalog.sessions_for(project_path)
        if sessions and all(self.is_session_imported(s) for s in sessions):
            return 'imported'
        return 'new'

    def imported_session_count(self, catalog: Catalog) -> int:
        return len(self.imported_paths(catalog.files))

    def new_project_count(self, catalog: Catalog) -> int:
        return sum(1 for project_path in catalog.project_paths if self.import_status(project_path, catalog) == 'new')
