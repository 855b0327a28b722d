"""In-process vector index for local runs and tests."""

from __future__ import annotations

import math
from typing import Any, Optional

from knowledge_core_api.models.rag import FilterExpression, VectorHit, VectorPoint
from knowledge_core_api.ports.vector_index import VectorIndex
from knowledge_core_lib.access_scope import AccessScope
from knowledge_core_lib.errors import InvalidInputError


def _lookup(payload: dict[str, Any], key: str) -> Any:
    value: Any = payload
    for part in key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def matches_filter(payload: dict[str, Any], filter_expression: Optional[FilterExpression]) -> bool:
    """Evaluate a filter expression against a payload; list fields match on any element."""
    if filter_expression is None:
        return True
    for condition in filter_expression.must:
        value = _lookup(payload, condition.key)
        stored = value if isinstance(value, list) else [value]
        if not any(item in condition.values for item in stored if item is not None):
            return False
    return True


def cosine_similarity(left: list[float], right: list[float]) -> float:
    dot = sum(a * b for a, b in zip(left, right))
    norm = math.sqrt(sum(a * a for a in left)) * math.sqrt(sum(b * b for b in right))
    return dot / norm if norm else 0.0


class InMemoryVectorIndex(VectorIndex):
    """Brute-force cosine search over per-tenant dictionaries."""

    def __init__(self):
        self._partitions: dict[str, dict[str, VectorPoint]] = {}

    async def ensure_partition(self, tenant_id: str) -> None:
        self._partitions.setdefault(tenant_id, {})

    async def partition_exists(self, tenant_id: str) -> bool:
        return tenant_id in self._partitions

    async def upsert(self, tenant_id: str, points: list[VectorPoint]) -> None:
        partition = self._partitions.setdefault(tenant_id, {})
        for point in points:
            partition[point.id] = point

    async def search(
        self,
        tenant_id: str,
        vector: list[float],
        limit: int,
        score_threshold: Optional[float] = None,
        filter_expression: Optional[FilterExpression] = None,
    ) -> list[VectorHit]:
        partition = self._partitions.get(tenant_id)
        if partition is None:
            return []
        hits = []
        for point in partition.values():
            if not matches_filter(point.payload, filter_expression):
                continue
            score = cosine_similarity(vector, point.vector)
            if score_threshold is not None and score < score_threshold:
                continue
            hits.append(VectorHit(id=point.id, score=score, payload=point.payload))
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:limit]

    async def delete_partition(self, tenant_id: str) -> None:
        self._partitions.pop(tenant_id, None)

    async def delete_where(self, tenant_id: str, filter_expression: FilterExpression) -> None:
        if filter_expression.is_empty:
            raise InvalidInputError("Refusing to touch every point of a partition without a filter")
        partition = self._partitions.get(tenant_id, {})
        for point_id in [pid for pid, point in partition.items() if matches_filter(point.payload, filter_expression)]:
            del partition[point_id]

    async def update_access_scope(
        self, tenant_id: str, filter_expression: FilterExpression, access_scope: AccessScope
    ) -> None:
        if filter_expression.is_empty:
            raise InvalidInputError("Refusing to touch every point of a partition without a filter")
        partition = self._partitions.get(tenant_id, {})
        for point_id, point in list(partition.items()):
            if matches_filter(point.payload, filter_expression):
                payload = {**point.payload, "access_scope": access_scope.to_payload()}
                partition[point_id] = point.model_copy(update={"payload": payload})
