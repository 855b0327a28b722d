"""Module containing the scoped retrieval engine."""

from __future__ import annotations

import logging
from typing import Any, Optional

from langchain_core.embeddings import Embeddings
from langchain_core.runnables import RunnableConfig, ensure_config

from knowledge_core_api.impl.settings.retrieval_settings import RetrievalSettings
from knowledge_core_api.models.rag import FilterExpression, RagQuery, RagResult, VectorHit
from knowledge_core_api.ports.vector_index import VectorIndex
from knowledge_core_api.retrieval.filters import build_filter_expression
from knowledge_core_lib.access_scope import AccessScope, allows_resource_access
from knowledge_core_lib.context import get_tenant_id
from knowledge_core_lib.errors import DependencyUnavailableError, InvalidInputError, KnowledgeCoreError
from knowledge_core_lib.runnables.async_runnable import AsyncRunnable

logger = logging.getLogger(__name__)

_DIAGNOSTIC_LIMIT = 3


def hit_to_result(hit: VectorHit) -> RagResult:
    """Map a stored point back into a read-only result."""
    metadata = dict(hit.payload.get("metadata") or {})
    return RagResult(
        chunk_id=str(metadata.get("chunk_id") or hit.id),
        score=hit.score,
        text=str(hit.payload.get("text", "")),
        document_id=metadata.get("document_id"),
        document_version_id=metadata.get("document_version_id"),
        metadata=metadata,
        access_scope=AccessScope.model_validate(hit.payload.get("access_scope") or {}),
    )


class RetrievalEngine(AsyncRunnable[RagQuery, list[RagResult]]):
    """
    Run one scoped similarity search per query.

    Results keep the index ranking. Caller queries are narrowed by the filter
    expression alone. For queries marked ``require_scope_match`` (message
    scope) hits whose stored access scope is not reachable from the query
    scope are also dropped, the rest keep their order.
    """

    TENANT_ID_KEY = "tenant_id"
    METADATA_KEY = "metadata"

    def __init__(self, embedder: Embeddings, vector_index: VectorIndex, settings: RetrievalSettings):
        self._embedder = embedder
        self._vector_index = vector_index
        self._settings = settings

    async def ainvoke(
        self, chain_input: RagQuery, config: Optional[RunnableConfig] = None, **kwargs: Any
    ) -> list[RagResult]:
        config = ensure_config(config)
        tenant_id = config.get(self.METADATA_KEY, {}).get(self.TENANT_ID_KEY) or get_tenant_id()
        if not tenant_id:
            raise InvalidInputError("A tenant id is required to search")
        return await self.search(tenant_id, chain_input)

    async def search(self, tenant_id: str, query: RagQuery) -> list[RagResult]:
        """
        Search the tenant partition.

        Parameters
        ----------
        tenant_id : str
            Partition to search.
        query : RagQuery
            Text, limit, minimum score, filters and the gating access scope.

        Returns
        -------
        list[RagResult]
            Results in descending similarity. An empty list is a valid answer;
            the threshold is never lowered automatically.
        """
        vector = await self._embed(query.text)
        filter_expression = build_filter_expression(query.filters)
        hits = await self._vector_index.search(
            tenant_id,
            vector,
            limit=query.limit,
            score_threshold=query.min_score,
            filter_expression=None if filter_expression.is_empty else filter_expression,
        )

        results = [hit_to_result(hit) for hit in hits]
        if self._settings.enforce_access_scope and query.require_scope_match:
            allowed = [result for result in results if allows_resource_access(query.access_scope, result.access_scope)]
            if len(allowed) != len(results):
                logger.info("Access scope gate dropped %d of %d hits", len(results) - len(allowed), len(results))
            results = allowed

        logger.debug("Search in tenant %s returned %d results", tenant_id, len(results))
        if not results and self._settings.diagnose_empty_results:
            await self._diagnose_empty(tenant_id, vector, query, filter_expression)
        return results

    async def _embed(self, text: str) -> list[float]:
        try:
            return await self._embedder.aembed_query(text)
        except KnowledgeCoreError:
            raise
        except Exception as exc:
            logger.exception("Embedding the query failed")
            raise DependencyUnavailableError(f"Embedding provider unavailable: {exc}") from exc

    async def _diagnose_empty(
        self, tenant_id: str, vector: list[float], query: RagQuery, filter_expression: FilterExpression
    ) -> None:
        try:
            diagnostic = await self._vector_index.search(
                tenant_id,
                vector,
                limit=_DIAGNOSTIC_LIMIT,
                score_threshold=None,
                filter_expression=None if filter_expression.is_empty else filter_expression,
            )
        except DependencyUnavailableError:
            logger.warning("Diagnostic search for tenant %s failed", tenant_id, exc_info=True)
            return
        if diagnostic:
            logger.info(
                "No results above min_score=%.2f for tenant %s; best candidate scored %.3f",
                query.min_score,
                tenant_id,
                diagnostic[0].score,
            )
        else:
            logger.info("No candidates at all for tenant %s with filters %s", tenant_id, filter_expression.must)
