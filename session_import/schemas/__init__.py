"""
Schemas for catalog, selection and import results.

This package contains the Pydantic models exchanged between the services,
the backend boundary and the caller.
"""

from __future__ import annotations

from session_import.schemas.catalog import (
    DiscoveredFile,
    ProjectGroup,
    ProjectSelectionState,
    SelectionSummary,
    project_name_for,
)
from session_import.schemas.events import (
    CancelledEvent,
    EventListener,
    FileDoneEvent,
    ImportEvent,
    ProgressEvent,
)
from session_import.schemas.importing import (
    FailedFile,
    ImportedProject,
    ImportOutcome,
    ImportProgress,
    ImportResult,
    ImportStats,
    RecentFile,
)

__all__ = [
    # Catalog
    'DiscoveredFile',
    'ProjectGroup',
    'ProjectSelectionState',
    'SelectionSummary',
    'project_name_for',
    # Events
    'CancelledEvent',
    'EventListener',
    'FileDoneEvent',
    'ImportEvent',
    'ProgressEvent',
    # Importing
    'FailedFile',
    'ImportedProject',
    'ImportOutcome',
    'ImportProgress',
    'ImportResult',
    'ImportStats',
    'RecentFile',
]
