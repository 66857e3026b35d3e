"""
Selection model - tri-state selection over catalog sessions.

The only stored state is the set of selected file paths. Per-project state
(selected / partially selected / count) is always derived from that set and
the catalog at query time, never cached.

Import-status policy (locking already-imported sessions) is not enforced
here; callers apply it, so this model has no dependency on dedup.
"""

from __future__ import annotations

import logging
from collections.abc import Set

from session_import.schemas import ProjectSelectionState
from session_import.services.catalog import Catalog

__all__ = ['SelectionModel']

logger = logging.getLogger(__name__)


class SelectionModel:
    """
    Set of selected session paths over a Catalog.

    Never mutates the catalog. Never contains a path the catalog doesn't know.
    """

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog
        self._selected: set[str] = set()
        catalog.on_change(self.prune)

    # --------------------------------------------------------------------------
    # Mutations
    # --------------------------------------------------------------------------

    def toggle_session(self, path: str) -> None:
        """Flip membership of one session path (no-op for paths not in the catalog)."""
        if path not in self.catalog:
            logger.debug(f'Ignoring toggle of unknown session: {path}')
            return
        if path in self._selected:
            self._selected.remove(path)
        else:
            self._selected.add(path)

    def toggle_project(self, project_path: str) -> None:
        """
        Indeterminate-checkbox toggle for a project.

        A fully selected project is cleared; otherwise (unselected or partial)
        every session in it is selected. Unknown or empty projects are a no-op.
        """
        session_paths = [s.path for s in self.catalog.sessions_for(project_path)]
        if not session_paths:
            return

        if self.project_selection_state(project_path).is_selected:
            self._selected.difference_update(session_paths)
        else:
            self._selected.update(session_paths)

    def select_all(self) -> None:
        self._selected = set(self.catalog.paths)

    def clear_all(self) -> None:
        self._selected = set()

    def invert_selection(self) -> None:
        self._selected = {path for path in self.catalog.paths if path not in self._selected}

    def select_all_new(self, imported_paths: Set[str]) -> None:
        """
        Select every catalog path not in imported_paths.

        Existing selections of new paths are kept; imported paths are never
        selected (and are dropped if they were).
        """
        self._selected = {path for path in self.catalog.paths if path not in imported_paths}

    def select(self, paths: Set[str]) -> None:
        """Add paths to the selection (paths not in the catalog are ignored)."""
        self._selected.update(path for path in paths if path in self.catalog)

    def deselect(self, paths: Set[str]) -> None:
        self._selected.difference_update(paths)

    def prune(self) -> None:
        """Drop selected paths that are no longer in the catalog."""
        dangling = {path for path in self._selected if path not in self.catalog}
        if dangling:
            logger.debug(f'Pruned {len(dangling)} selection(s) no longer in catalog')
            self._selected -= dangling

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------

    def is_selected(self, path: str) -> bool:
        return path in self._selected

    @property
    def selected_count(self) -> int:
        return len(self._selected)

    @property
    def selected_paths(self) -> list[str]:
        """Selected paths in catalog order (the order they are imported in)."""
        return [path for path in self.catalog.paths if path in self._selected]

    @property
    def selected_project_count(self) -> int:
        """Projects with at least one selected session."""
        projects: set[str] = set()
        for path in self._selected:
            file = self.catalog.get(path)
            if file is not None:
                projects.add(file.project_path)
        return len(projects)

    def project_selection_state(self, project_path: str) -> ProjectSelectionState:
        """
        Derive the tri-state checkbox state of a project.

        Args:
            project_path: Project to inspect

        Returns:
            State computed from the current selection and catalog
        """
        session_paths = [s.path for s in self.catalog.sessions_for(project_path)]
        total = len(session_paths)
        selected_count = sum(1 for path in session_paths if path in self._selected)

        return ProjectSelectionState(
            is_selected=total > 0 and selected_count == total,
            is_partially_selected=0 < selected_count < total,
            selected_count=selected_count,
        )
