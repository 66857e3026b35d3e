"""
Local filesystem storage backend.

Implements StorageBackend protocol for local filesystem storage.
"""

from __future__ import annotations

import pathlib


class LocalFileSystemStorage:
    """Local filesystem storage backend."""

    def __init__(self, base_path: pathlib.Path) -> None:
        """
        Initialize local filesystem storage.

        Args:
            base_path: Base directory for stored session logs

        Raises:
            ValueError: If base_path exists but is not a directory
        """
        if base_path.exists() and not base_path.is_dir():
            raise ValueError(f'Storage path is not a directory: {base_path}')

        base_path.mkdir(parents=True, exist_ok=True)
        self.base_path = base_path.resolve()

    def _resolve(self, key: str) -> pathlib.Path:
        file_path = (self.base_path / key).resolve()
        if not file_path.is_relative_to(self.base_path):
            raise ValueError(f'Storage key escapes storage root: {key}')
        return file_path

    async def save(self, key: str, data: bytes) -> str:
        """
        Save data to local filesystem.

        Args:
            key: Relative storage key
            data: Raw bytes

        Returns:
            Absolute path to saved file
        """
        file_path = self._resolve(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(data)
        return str(file_path)
