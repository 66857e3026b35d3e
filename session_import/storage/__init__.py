"""Storage backends for imported session logs."""

from session_import.storage.local import LocalFileSystemStorage
from session_import.storage.protocol import StorageBackend

__all__ = ['LocalFileSystemStorage', 'StorageBackend']
