import pytest

from knowledge_core_api.impl.vector_indexes.in_memory_vector_index import InMemoryVectorIndex, matches_filter
from knowledge_core_api.models.rag import AnyOf, FilterExpression, VectorPoint
from knowledge_core_lib.access_scope import AccessScope


def _point(point_id, vector, department=None, tags=()):
    return VectorPoint(
        id=point_id,
        vector=vector,
        payload={"text": point_id, "access_scope": {"department": department, "tags": list(tags)}},
    )


@pytest.mark.asyncio
async def test_search_ranks_filters_and_limits():
    index = InMemoryVectorIndex()
    await index.upsert(
        "t",
        [
            _point("close", [1.0, 0.1], department="eng"),
            _point("closest", [1.0, 0.0], department="eng"),
            _point("far", [0.0, 1.0], department="eng"),
            _point("sales", [1.0, 0.0], department="sales"),
        ],
    )
    expression = FilterExpression(must=(AnyOf(key="access_scope.department", values=("eng",)),))

    hits = await index.search("t", [1.0, 0.0], limit=2, score_threshold=0.5, filter_expression=expression)

    assert [hit.id for hit in hits] == ["closest", "close"]


@pytest.mark.asyncio
async def test_missing_partition_returns_nothing():
    assert await InMemoryVectorIndex().search("nobody", [1.0], limit=3) == []


@pytest.mark.asyncio
async def test_ensure_partition_is_idempotent():
    index = InMemoryVectorIndex()
    await index.ensure_partition("t")
    await index.upsert("t", [_point("a", [1.0])])
    await index.ensure_partition("t")

    assert await index.partition_exists("t")
    assert len(await index.search("t", [1.0], limit=5)) == 1


@pytest.mark.asyncio
async def test_delete_where_and_update_scope():
    index = InMemoryVectorIndex()
    await index.upsert("t", [_point("a", [1.0], tags=["x"]), _point("b", [1.0], tags=["y"])])
    by_tag = FilterExpression(must=(AnyOf(key="access_scope.tags", values=("x",)),))

    await index.update_access_scope("t", by_tag, AccessScope(department="legal", tags=frozenset({"x"})))
    updated = await index.search(
        "t",
        [1.0],
        limit=5,
        filter_expression=FilterExpression(must=(AnyOf(key="access_scope.department", values=("legal",)),)),
    )
    assert [hit.id for hit in updated] == ["a"]

    await index.delete_where("t", by_tag)
    assert [hit.id for hit in await index.search("t", [1.0], limit=5)] == ["b"]


def test_list_fields_match_any_element():
    payload = {"access_scope": {"tags": ["a", "b"]}, "metadata": {"document_id": "d1"}}

    assert matches_filter(payload, FilterExpression(must=(AnyOf(key="access_scope.tags", values=("b", "z")),)))
    assert not matches_filter(payload, FilterExpression(must=(AnyOf(key="access_scope.tags", values=("z",)),)))
    assert not matches_filter(payload, FilterExpression(must=(AnyOf(key="access_scope.department", values=("eng",)),)))
