"""Base interface for tenant-partitioned vector indexes."""

from abc import ABC, abstractmethod
from typing import Optional

from knowledge_core_api.models.rag import FilterExpression, VectorHit, VectorPoint
from knowledge_core_lib.access_scope import AccessScope


class VectorIndex(ABC):
    """Similarity search store with one isolated partition per tenant."""

    @abstractmethod
    async def ensure_partition(self, tenant_id: str) -> None:
        """Create the tenant partition if it is absent. Calling it again is a no-op."""

    @abstractmethod
    async def partition_exists(self, tenant_id: str) -> bool:
        """Return whether the tenant partition exists."""

    @abstractmethod
    async def upsert(self, tenant_id: str, points: list[VectorPoint]) -> None:
        """Insert or replace ``points`` in the tenant partition."""

    @abstractmethod
    async def search(
        self,
        tenant_id: str,
        vector: list[float],
        limit: int,
        score_threshold: Optional[float] = None,
        filter_expression: Optional[FilterExpression] = None,
    ) -> list[VectorHit]:
        """
        Run one similarity search.

        Returns
        -------
        list[VectorHit]
            Hits in descending similarity. An absent partition yields an empty list.
        """

    @abstractmethod
    async def delete_partition(self, tenant_id: str) -> None:
        """Drop the tenant partition with all its points."""

    @abstractmethod
    async def delete_where(self, tenant_id: str, filter_expression: FilterExpression) -> None:
        """Delete the points matching ``filter_expression``."""

    @abstractmethod
    async def update_access_scope(
        self, tenant_id: str, filter_expression: FilterExpression, access_scope: AccessScope
    ) -> None:
        """Replace the stored access scope of the matching points."""
