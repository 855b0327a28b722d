"""Parallel, batched embedding of chunk texts."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, NamedTuple, Optional

from langchain_core.embeddings import Embeddings

from knowledge_core_lib.errors import DependencyUnavailableError

logger = logging.getLogger(__name__)


class EmbeddingResult(NamedTuple):
    position: int
    vector: list[float]
    degraded: bool


class BatchEmbedder:
    """
    Embed texts in ordered batches of ``batch_size``.

    Up to ``parallel_batches`` batches form a group and run concurrently; groups
    run strictly one after another, so at most ``parallel_batches * batch_size``
    requests are in flight. Every text is its own request, bounded by
    ``timeout_seconds``.

    When ``fallback`` is given, a failed or timed out request is replaced by
    ``fallback(text)`` and reported as degraded. Without it the failure
    propagates as ``DependencyUnavailableError``.
    """

    def __init__(
        self,
        embedder: Embeddings,
        batch_size: int,
        parallel_batches: int,
        timeout_seconds: float,
        fallback: Optional[Callable[[str], list[float]]] = None,
    ):
        if batch_size <= 0 or parallel_batches <= 0:
            raise ValueError("batch_size and parallel_batches must be positive")
        self._embedder = embedder
        self._batch_size = batch_size
        self._parallel_batches = parallel_batches
        self._timeout_seconds = timeout_seconds
        self._fallback = fallback

    async def embed(self, texts: list[str]) -> list[EmbeddingResult]:
        """Return one result per text, indexed by the text's position."""
        results: list[Optional[EmbeddingResult]] = [None] * len(texts)
        batches = [
            list(range(offset, min(offset + self._batch_size, len(texts))))
            for offset in range(0, len(texts), self._batch_size)
        ]
        groups = [
            batches[offset : offset + self._parallel_batches]
            for offset in range(0, len(batches), self._parallel_batches)
        ]

        done = 0
        for group_number, group in enumerate(groups, start=1):
            started = time.perf_counter()
            batch_errors = await asyncio.gather(*(self._embed_batch(batch, texts, results) for batch in group))
            errors = [error for error in batch_errors if error is not None]
            if errors:
                # every call of the group has settled at this point
                raise errors[0]
            done += sum(len(batch) for batch in group)
            logger.info(
                "Embedded batch group %d/%d (%d/%d chunks, %d%%) in %.2fs",
                group_number,
                len(groups),
                done,
                len(texts),
                done * 100 // len(texts),
                time.perf_counter() - started,
            )

        return [result for result in results if result is not None]

    async def _embed_batch(
        self, positions: list[int], texts: list[str], results: list[Optional[EmbeddingResult]]
    ) -> Optional[BaseException]:
        """Embed one batch, returning its first error once all of its requests are done."""
        outcomes = await asyncio.gather(
            *(self._embed_one(position, texts[position]) for position in positions), return_exceptions=True
        )
        first_error = None
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                first_error = first_error or outcome
            else:
                results[outcome.position] = outcome
        return first_error

    async def _embed_one(self, position: int, text: str) -> EmbeddingResult:
        try:
            vector = await asyncio.wait_for(self._embedder.aembed_query(text), timeout=self._timeout_seconds)
        except Exception as exc:
            if self._fallback is None:
                raise DependencyUnavailableError(f"Embedding failed for chunk {position}: {exc!r}") from exc
            logger.warning("Embedding failed for chunk %d, using fallback vector: %r", position, exc)
            return EmbeddingResult(position=position, vector=self._fallback(text), degraded=True)
        return EmbeddingResult(position=position, vector=list(vector), degraded=False)
