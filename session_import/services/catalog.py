"""
Catalog of discovered session files.

Holds the flat list produced by a backend scan and derives the project
grouping and search-filtered views from it. Groupings are recomputed on
every call so they can never go stale relative to the file list.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from session_import.schemas import DiscoveredFile, ProjectGroup, project_name_for

__all__ = [
    'Catalog',
    'filter_groups',
    'group_by_project',
    'total_session_count',
]

logger = logging.getLogger(__name__)


def group_by_project(files: Iterable[DiscoveredFile]) -> list[ProjectGroup]:
    """
    Group files by project_path.

    Groups appear in the order each project_path was first seen; sessions
    keep their catalog order within a group.
    """
    buckets: dict[str, list[DiscoveredFile]] = {}
    for file in files:
        buckets.setdefault(file.project_path, []).append(file)

    return [
        ProjectGroup(
            project_path=project_path,
            project_name=project_name_for(project_path),
            sessions=tuple(sessions),
        )
        for project_path, sessions in buckets.items()
    ]


def filter_groups(groups: Sequence[ProjectGroup], query: str) -> list[ProjectGroup]:
    """
    Case-insensitive search over project and session names.

    A group whose name (or path) matches keeps all of its sessions. Otherwise
    only sessions whose name or path matches are kept, and the group is
    dropped when none match. A blank query returns the groups unchanged.

    Args:
        groups: Groups to filter
        query: Search text

    Returns:
        Filtered groups in their original order
    """
    needle = query.strip().lower()
    if not needle:
        return list(groups)

    filtered: list[ProjectGroup] = []
    for group in groups:
        if needle in group.project_name.lower() or needle in group.project_path.lower():
            filtered.append(group)
            continue

        matching = tuple(s for s in group.sessions if needle in s.name.lower() or needle in s.path.lower())
        if matching:
            filtered.append(group.model_copy(update={'sessions': matching}))

    return filtered


def total_session_count(groups: Iterable[ProjectGroup]) -> int:
    """Number of sessions across groups."""
    return sum(len(group.sessions) for group in groups)


class Catalog:
    """
    The set of discovered files for one wizard session.

    Replaced atomically by set_files(). Listeners registered with on_change()
    run after every replacement (the selection model uses this to drop
    dangling selections).
    """

    def __init__(self) -> None:
        self._files: dict[str, DiscoveredFile] = {}
        self._listeners: list[Callable[[], None]] = []

    def on_change(self, listener: Callable[[], None]) -> None:
        """Register a callback invoked after the file list changes."""
        self._listeners.append(listener)

    def set_files(self, files: Iterable[DiscoveredFile]) -> None:
        """
        Replace the catalog contents.

        Duplicate paths keep their first occurrence.

        Args:
            files: Newly discovered files
        """
        replacement: dict[str, DiscoveredFile] = {}
        duplicates = 0
        for file in files:
            if file.path in replacement:
                duplicates += 1
                continue
            replacement[file.path] = file

        if duplicates:
            logger.warning(f'Ignored {duplicates} duplicate file path(s) in scan result')

        self._files = replacement
        logger.debug(f'Catalog replaced: {len(replacement)} files')
        for listener in self._listeners:
            listener()

    def clear(self) -> None:
        self.set_files(())

    # --------------------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------------------

    @property
    def files(self) -> list[DiscoveredFile]:
        return list(self._files.values())

    @property
    def paths(self) -> list[str]:
        return list(self._files)

    @property
    def project_paths(self) -> list[str]:
        return list(dict.fromkeys(file.project_path for file in self._files.values()))

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def get(self, path: str) -> DiscoveredFile | None:
        return self._files.get(path)

    def has_project(self, project_path: str) -> bool:
        return any(file.project_path == project_path for file in self._files.values())

    def sessions_for(self, project_path: str) -> list[DiscoveredFile]:
        """Sessions of one project, in catalog order (empty if unknown)."""
        return [file for file in self._files.values() if file.project_path == project_path]

    def group_by_project(self) -> list[ProjectGroup]:
        return group_by_project(self._files.values())

    def filter(self, query: str) -> list[ProjectGroup]:
        return filter_groups(self.group_by_project(), query)
