from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from qdrant_client.http import models

from knowledge_core_api.impl.settings.qdrant_settings import QdrantSettings
from knowledge_core_api.impl.vector_indexes.qdrant_vector_index import (
    PAYLOAD_INDEX_FIELDS,
    QdrantVectorIndex,
    point_id_for,
    to_qdrant_filter,
)
from knowledge_core_api.models.rag import AnyOf, FilterExpression, VectorPoint
from knowledge_core_lib.access_scope import AccessScope
from knowledge_core_lib.errors import DependencyUnavailableError, InvalidInputError


def _client(exists=True):
    client = MagicMock()
    client.collection_exists = AsyncMock(return_value=exists)
    client.create_collection = AsyncMock()
    client.create_payload_index = AsyncMock()
    client.upsert = AsyncMock()
    client.query_points = AsyncMock(return_value=SimpleNamespace(points=[]))
    client.delete_collection = AsyncMock()
    client.delete = AsyncMock()
    client.set_payload = AsyncMock()
    return client


def _index(client):
    return QdrantVectorIndex(client, QdrantSettings(vector_size=4))


@pytest.mark.asyncio
async def test_ensure_partition_is_idempotent():
    client = _client()
    client.collection_exists = AsyncMock(side_effect=[False, True, True])
    index = _index(client)

    await index.ensure_partition("tenant-a")
    await index.ensure_partition("tenant-a")

    client.create_collection.assert_awaited_once()
    kwargs = client.create_collection.await_args.kwargs
    assert kwargs["collection_name"] == "tenant_tenant-a"
    assert kwargs["vectors_config"] == models.VectorParams(size=4, distance=models.Distance.COSINE)
    indexed = [call.kwargs["field_name"] for call in client.create_payload_index.await_args_list]
    assert indexed == list(PAYLOAD_INDEX_FIELDS)


@pytest.mark.asyncio
async def test_ensure_partition_keeps_existing_collection():
    client = _client(exists=True)

    await _index(client).ensure_partition("tenant-a")

    client.create_collection.assert_not_awaited()


@pytest.mark.asyncio
async def test_search_translates_filter_and_maps_hits():
    client = _client()
    client.query_points = AsyncMock(
        return_value=SimpleNamespace(
            points=[
                SimpleNamespace(id="p1", score=0.91, payload={"text": "a"}),
                SimpleNamespace(id="p2", score=0.85, payload=None),
            ]
        )
    )
    expression = FilterExpression(must=(AnyOf(key="access_scope.department", values=("eng",)),))

    hits = await _index(client).search(
        "tenant-a", [0.1, 0.2, 0.3, 0.4], limit=5, score_threshold=0.7, filter_expression=expression
    )

    kwargs = client.query_points.await_args.kwargs
    assert kwargs["collection_name"] == "tenant_tenant-a"
    assert kwargs["limit"] == 5
    assert kwargs["score_threshold"] == 0.7
    assert kwargs["query_filter"] == models.Filter(
        must=[models.FieldCondition(key="access_scope.department", match=models.MatchAny(any=["eng"]))]
    )
    assert [(hit.id, hit.score) for hit in hits] == [("p1", 0.91), ("p2", 0.85)]
    assert hits[1].payload == {}


@pytest.mark.asyncio
async def test_search_in_missing_partition_returns_nothing():
    client = _client(exists=False)

    assert await _index(client).search("tenant-a", [0.0] * 4, limit=5) == []
    client.query_points.assert_not_awaited()


@pytest.mark.asyncio
async def test_client_errors_become_dependency_errors():
    client = _client()
    client.query_points = AsyncMock(side_effect=ConnectionError("refused"))

    with pytest.raises(DependencyUnavailableError):
        await _index(client).search("tenant-a", [0.0] * 4, limit=5)


@pytest.mark.asyncio
async def test_upsert_uses_stable_uuid_point_ids():
    client = _client()
    point = VectorPoint(id="v1-chunk-0", vector=[1.0, 0.0, 0.0, 0.0], payload={"text": "x"})

    await _index(client).upsert("tenant-a", [point])

    stored = client.upsert.await_args.kwargs["points"][0]
    assert stored.id == point_id_for("v1-chunk-0")
    assert stored.payload == {"text": "x"}
    assert point_id_for("v1-chunk-0") == point_id_for("v1-chunk-0")
    assert point_id_for("v1-chunk-0") != point_id_for("v1-chunk-1")


@pytest.mark.asyncio
async def test_delete_where_requires_filter():
    client = _client()

    with pytest.raises(InvalidInputError):
        await _index(client).delete_where("tenant-a", FilterExpression())
    client.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_access_scope_sets_payload():
    client = _client()
    expression = FilterExpression(must=(AnyOf(key="metadata.document_id", values=("d1",)),))

    await _index(client).update_access_scope("tenant-a", expression, AccessScope(department="eng"))

    kwargs = client.set_payload.await_args.kwargs
    assert kwargs["payload"] == {"access_scope": {"department": "eng", "subdepartment": None, "tags": [], "roles": []}}


@pytest.mark.asyncio
async def test_delete_partition_forgets_collection():
    client = _client(exists=True)
    index = _index(client)
    await index.ensure_partition("tenant-a")

    await index.delete_partition("tenant-a")
    client.collection_exists = AsyncMock(return_value=False)
    await index.ensure_partition("tenant-a")

    client.delete_collection.assert_awaited_once_with(collection_name="tenant_tenant-a")
    client.create_collection.assert_awaited_once()


def test_empty_expression_translates_to_no_filter():
    assert to_qdrant_filter(FilterExpression()) is None
    assert to_qdrant_filter(None) is None
