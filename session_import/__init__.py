"""
Session import: discover AI assistant session logs, select them by project,
and import them in cancellable, retriable batches.
"""

from session_import.services.wizard import ImportWizard

__all__ = ['ImportWizard']
