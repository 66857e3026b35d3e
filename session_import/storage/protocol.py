"""
Storage backend protocol for imported session logs.

Defines the interface the local import backend writes copied logs through.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for imported-session storage backends."""

    async def save(self, key: str, data: bytes) -> str:
        """
        Save session log data.

        Args:
            key: Relative storage key (e.g. '<project_id>/<session_id>.jsonl')
            data: Raw log bytes

        Returns:
            Final URI/path where the data was saved

        Raises:
            ValueError: If the key escapes the storage root
        """
        ...
