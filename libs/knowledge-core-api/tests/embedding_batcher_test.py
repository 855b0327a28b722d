import asyncio

import pytest

from knowledge_core_api.ingestion.embedding_batcher import BatchEmbedder
from knowledge_core_lib.errors import DependencyUnavailableError
from mocks.keyword_embeddings import KeywordEmbeddings


@pytest.mark.asyncio
async def test_results_follow_positions_not_completion_order():
    texts = [f"text {i}" for i in range(6)]
    delays = {text: 0.01 * (len(texts) - i) for i, text in enumerate(texts)}
    embedder = KeywordEmbeddings(["text"], delays=delays)
    batcher = BatchEmbedder(embedder, batch_size=2, parallel_batches=3, timeout_seconds=5)

    results = await batcher.embed(texts)

    assert [result.position for result in results] == list(range(6))
    assert embedder.calls != texts
    assert not any(result.degraded for result in results)


@pytest.mark.asyncio
async def test_concurrency_is_bounded_by_batches_times_batch_size():
    texts = [f"t{i}" for i in range(20)]
    embedder = KeywordEmbeddings([], delays={text: 0.005 for text in texts})
    batcher = BatchEmbedder(embedder, batch_size=2, parallel_batches=2, timeout_seconds=5)

    await batcher.embed(texts)

    assert embedder.max_in_flight <= 4


@pytest.mark.asyncio
async def test_failed_embedding_uses_flagged_fallback():
    embedder = KeywordEmbeddings(["ok"], fail_on=["broken"])
    batcher = BatchEmbedder(embedder, batch_size=5, parallel_batches=1, timeout_seconds=5, fallback=lambda text: [9.0])

    results = await batcher.embed(["ok", "broken chunk", "ok ok"])

    assert [result.degraded for result in results] == [False, True, False]
    assert results[1].vector == [9.0]


@pytest.mark.asyncio
async def test_timeout_uses_fallback():
    embedder = KeywordEmbeddings([], delays={"slow": 1.0})
    batcher = BatchEmbedder(
        embedder, batch_size=1, parallel_batches=1, timeout_seconds=0.01, fallback=lambda text: [0.0]
    )

    results = await batcher.embed(["slow"])

    assert results[0].degraded is True


@pytest.mark.asyncio
async def test_failure_without_fallback_is_fatal():
    embedder = KeywordEmbeddings([], fail_on=["broken"])
    batcher = BatchEmbedder(embedder, batch_size=1, parallel_batches=1, timeout_seconds=5)

    with pytest.raises(DependencyUnavailableError):
        await batcher.embed(["fine", "broken"])


def test_invalid_batch_configuration():
    with pytest.raises(ValueError):
        BatchEmbedder(KeywordEmbeddings([]), batch_size=0, parallel_batches=1, timeout_seconds=1)


@pytest.mark.asyncio
async def test_empty_input():
    batcher = BatchEmbedder(KeywordEmbeddings([]), batch_size=3, parallel_batches=2, timeout_seconds=1)
    assert await batcher.embed([]) == []


@pytest.mark.asyncio
async def test_failure_waits_for_in_flight_siblings_and_stops_later_groups():
    embedder = KeywordEmbeddings([], fail_on=["x"], delays={"y": 0.05, "w": 0.05})
    batcher = BatchEmbedder(embedder, batch_size=2, parallel_batches=2, timeout_seconds=5)

    with pytest.raises(DependencyUnavailableError):
        await batcher.embed(["x", "y", "w", "v", "z"])

    assert embedder.in_flight == 0
    assert set(embedder.calls) == {"x", "y", "w", "v"}
    assert "z" not in embedder.calls
