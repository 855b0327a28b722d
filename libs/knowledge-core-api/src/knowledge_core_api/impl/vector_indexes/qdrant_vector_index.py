"""Module containing the QdrantVectorIndex class."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models

from knowledge_core_api.impl.settings.qdrant_settings import QdrantSettings
from knowledge_core_api.models.rag import FilterExpression, VectorHit, VectorPoint
from knowledge_core_api.ports.vector_index import VectorIndex
from knowledge_core_api.retrieval.filters import (
    DEPARTMENT_KEY,
    DOCUMENT_ID_KEY,
    DOCUMENT_VERSION_ID_KEY,
    SUBDEPARTMENT_KEY,
    TAGS_KEY,
)
from knowledge_core_lib.access_scope import AccessScope
from knowledge_core_lib.errors import DependencyUnavailableError, InvalidInputError

logger = logging.getLogger(__name__)

POINT_ID_NAMESPACE = uuid.UUID("6f1c3a52-8d0e-4b8a-9a57-2f4b3f0c9e11")

PAYLOAD_INDEX_FIELDS = (
    DEPARTMENT_KEY,
    SUBDEPARTMENT_KEY,
    TAGS_KEY,
    DOCUMENT_ID_KEY,
    DOCUMENT_VERSION_ID_KEY,
)


def point_id_for(chunk_id: str) -> str:
    """Qdrant only accepts UUIDs or integers as point ids."""
    return str(uuid.uuid5(POINT_ID_NAMESPACE, chunk_id))


def to_qdrant_filter(filter_expression: Optional[FilterExpression]) -> Optional[models.Filter]:
    """Translate each ``AnyOf`` condition into a ``MatchAny`` field condition."""
    if filter_expression is None or filter_expression.is_empty:
        return None
    return models.Filter(
        must=[
            models.FieldCondition(key=condition.key, match=models.MatchAny(any=list(condition.values)))
            for condition in filter_expression.must
        ]
    )


class QdrantVectorIndex(VectorIndex):
    """
    Vector index with one Qdrant collection per tenant.

    Collections are created on first write with cosine distance and keyword
    payload indexes on the filterable fields.
    """

    def __init__(self, client: AsyncQdrantClient, settings: QdrantSettings):
        """
        Initialize the index.

        Parameters
        ----------
        client : AsyncQdrantClient
            Connected Qdrant client.
        settings : QdrantSettings
            Collection naming and vector size.
        """
        self._client = client
        self._settings = settings
        self._known_collections: set[str] = set()
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: QdrantSettings) -> "QdrantVectorIndex":
        client = AsyncQdrantClient(url=settings.url, api_key=settings.api_key, timeout=settings.timeout_seconds)
        return cls(client, settings)

    def collection_name(self, tenant_id: str) -> str:
        return self._settings.collection_for_tenant(tenant_id)

    async def partition_exists(self, tenant_id: str) -> bool:
        try:
            return await self._client.collection_exists(self.collection_name(tenant_id))
        except Exception as exc:
            raise DependencyUnavailableError(f"Qdrant unavailable: {exc}") from exc

    async def ensure_partition(self, tenant_id: str) -> None:
        collection_name = self.collection_name(tenant_id)
        if collection_name in self._known_collections:
            return

        async with self._lock:
            if collection_name in self._known_collections:
                return
            try:
                if not await self._client.collection_exists(collection_name):
                    await self._create_collection(collection_name)
            except Exception as exc:
                logger.exception("Ensuring collection %s failed", collection_name)
                raise DependencyUnavailableError(f"Qdrant unavailable: {exc}") from exc
            self._known_collections.add(collection_name)

    async def _create_collection(self, collection_name: str) -> None:
        await self._client.create_collection(
            collection_name=collection_name,
            vectors_config=models.VectorParams(size=self._settings.vector_size, distance=models.Distance.COSINE),
        )
        for field_name in PAYLOAD_INDEX_FIELDS:
            await self._client.create_payload_index(
                collection_name=collection_name,
                field_name=field_name,
                field_schema=models.PayloadSchemaType.KEYWORD,
            )
        logger.info("Created collection %s", collection_name)

    async def upsert(self, tenant_id: str, points: list[VectorPoint]) -> None:
        if not points:
            return
        qdrant_points = [
            models.PointStruct(id=point_id_for(point.id), vector=point.vector, payload=point.payload)
            for point in points
        ]
        try:
            await self._client.upsert(collection_name=self.collection_name(tenant_id), points=qdrant_points, wait=True)
        except Exception as exc:
            logger.exception("Upserting %d points for tenant %s failed", len(points), tenant_id)
            raise DependencyUnavailableError(f"Qdrant upsert failed: {exc}") from exc

    async def search(
        self,
        tenant_id: str,
        vector: list[float],
        limit: int,
        score_threshold: Optional[float] = None,
        filter_expression: Optional[FilterExpression] = None,
    ) -> list[VectorHit]:
        collection_name = self.collection_name(tenant_id)
        try:
            if not await self._client.collection_exists(collection_name):
                logger.info("Collection %s does not exist, returning no results", collection_name)
                return []
            response = await self._client.query_points(
                collection_name=collection_name,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=to_qdrant_filter(filter_expression),
                with_payload=True,
            )
        except Exception as exc:
            logger.exception("Search in collection %s failed", collection_name)
            raise DependencyUnavailableError(f"Qdrant search failed: {exc}") from exc

        return [
            VectorHit(id=str(point.id), score=point.score, payload=point.payload or {}) for point in response.points
        ]

    async def delete_partition(self, tenant_id: str) -> None:
        collection_name = self.collection_name(tenant_id)
        try:
            await self._client.delete_collection(collection_name=collection_name)
        except Exception as exc:
            raise DependencyUnavailableError(f"Qdrant delete failed: {exc}") from exc
        self._known_collections.discard(collection_name)

    async def delete_where(self, tenant_id: str, filter_expression: FilterExpression) -> None:
        qdrant_filter = self._require_filter(filter_expression)
        try:
            await self._client.delete(
                collection_name=self.collection_name(tenant_id),
                points_selector=models.FilterSelector(filter=qdrant_filter),
                wait=True,
            )
        except Exception as exc:
            raise DependencyUnavailableError(f"Qdrant delete failed: {exc}") from exc

    async def update_access_scope(
        self, tenant_id: str, filter_expression: FilterExpression, access_scope: AccessScope
    ) -> None:
        qdrant_filter = self._require_filter(filter_expression)
        try:
            await self._client.set_payload(
                collection_name=self.collection_name(tenant_id),
                payload={"access_scope": access_scope.to_payload()},
                points=models.FilterSelector(filter=qdrant_filter),
                wait=True,
            )
        except Exception as exc:
            raise DependencyUnavailableError(f"Qdrant payload update failed: {exc}") from exc

    @staticmethod
    def _require_filter(filter_expression: FilterExpression) -> models.Filter:
        qdrant_filter = to_qdrant_filter(filter_expression)
        if qdrant_filter is None:
            raise InvalidInputError("Refusing to touch every point of a partition without a filter")
        return qdrant_filter
