"""Service layer for session selection and import."""

from session_import.services.aggregator import ResultAggregator
from session_import.services.catalog import Catalog, filter_groups, group_by_project, total_session_count
from session_import.services.dedup import DedupTracker
from session_import.services.executor import ImportExecutor
from session_import.services.selection import SelectionModel
from session_import.services.wizard import ImportWizard

__all__ = [
    'Catalog',
    'DedupTracker',
    'ImportExecutor',
    'ImportWizard',
    'ResultAggregator',
    'SelectionModel',
    'filter_groups',
    'group_by_project',
    'total_session_count',
]
