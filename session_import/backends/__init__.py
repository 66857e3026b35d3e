"""Import backends implementing the ImportBackend boundary."""

from session_import.backends.local import LocalImportBackend

__all__ = ['LocalImportBackend']
