"""Base interface for raw document storage."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class FileStore(ABC):
    """Key-addressed blob storage with a small metadata record per key."""

    @abstractmethod
    async def save(self, key: str, data: bytes, metadata: Optional[dict[str, Any]] = None) -> str:
        """
        Store ``data`` under ``key``.

        Parameters
        ----------
        key : str
            Tenant-namespaced storage key.
        data : bytes
            Raw content.
        metadata : dict, optional
            JSON compatible metadata stored next to the content.

        Returns
        -------
        str
            The key the content was stored under.
        """

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or ``None`` when the key is absent."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the key and its metadata. Deleting an absent key is a no-op."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return whether ``key`` holds content."""

    @abstractmethod
    async def list(self, prefix: str = "") -> list[str]:
        """Return the stored keys starting with ``prefix``, sorted."""

    @abstractmethod
    async def get_metadata(self, key: str) -> Optional[dict[str, Any]]:
        """Return the metadata stored with ``key``, or ``None``."""
