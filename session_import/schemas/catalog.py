"""
Catalog and selection schemas.

Models for discovered session files, their project grouping, and the derived
selection state shown next to each project.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import Field

from session_import.base_model import StrictModel
from session_import.types import JsonDatetime

# ==============================================================================
# Discovered Files
# ==============================================================================


class DiscoveredFile(StrictModel):
    """
    A session log file found by a backend scan.

    Immutable once discovered. Identity is `path`.
    """

    path: str  # Full path, unique key
    name: str  # File name for display
    size: int = Field(ge=0)  # Bytes
    modified_at: JsonDatetime
    project_path: str  # Grouping key (directory/workspace the session belongs to)
    session_id: str | None = None  # Known up front by some backends, used for dedup


def project_name_for(project_path: str) -> str:
    """Display name for a project: the last component of its path."""
    stripped = project_path.rstrip('/\\')
    if not stripped:
        return project_path
    return stripped.replace('\\', '/').rsplit('/', 1)[-1]


class ProjectGroup(StrictModel):
    """
    Sessions sharing a project_path.

    Derived from the catalog on demand, never stored.
    """

    project_path: str
    project_name: str
    sessions: Sequence[DiscoveredFile]

    @property
    def session_paths(self) -> list[str]:
        return [session.path for session in self.sessions]


# ==============================================================================
# Selection
# ==============================================================================


class ProjectSelectionState(StrictModel):
    """Tri-state checkbox state of one project, derived from the selection set."""

    is_selected: bool
    is_partially_selected: bool
    selected_count: int


class SelectionSummary(StrictModel):
    """Figures for the selection stats bar."""

    total_projects: int
    total_sessions: int
    selected_count: int
    selected_project_count: int  # Projects with at least one selected session
    imported_session_count: int
    new_project_count: int
