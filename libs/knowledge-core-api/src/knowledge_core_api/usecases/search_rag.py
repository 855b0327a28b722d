"""Module containing the SearchRag use case."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from langchain_core.runnables import Runnable, RunnableConfig

from knowledge_core_api.impl.audit.safe_log import safe_log
from knowledge_core_api.impl.settings.retrieval_settings import RetrievalSettings
from knowledge_core_api.models.audit import AuditEvent
from knowledge_core_api.models.ingestion import SearchRagInput, SearchRagOutput
from knowledge_core_api.models.rag import RagFilters, RagQuery, RagResult
from knowledge_core_api.ports.audit_sink import AuditSink
from knowledge_core_api.retrieval.query_builder import from_auth_context, from_message_scope
from knowledge_core_lib.auth_context import AuthorizationContext
from knowledge_core_lib.context import request_context
from knowledge_core_lib.errors import AuthorizationDeniedError
from knowledge_core_lib.policies.engine import PolicyEngine
from knowledge_core_lib.policies.models import PolicyAction, PolicyType
from knowledge_core_lib.visibility import Message, can_view_message

logger = logging.getLogger(__name__)


class SearchRag:
    """Policy-gated scoped search, either for the caller or on behalf of a message."""

    RESOURCE_TYPE = "rag"

    def __init__(
        self,
        policy_engine: PolicyEngine,
        retriever: Runnable[RagQuery, list[RagResult]],
        audit_sink: AuditSink,
        settings: RetrievalSettings,
    ):
        self._policy_engine = policy_engine
        self._retriever = retriever
        self._audit_sink = audit_sink
        self._settings = settings

    async def execute(self, ctx: AuthorizationContext, search_input: SearchRagInput) -> SearchRagOutput:
        """
        Search with filters derived from the caller's own scope.

        Raises
        ------
        AuthorizationDeniedError
            If the caller is not an authenticated user or a policy denies ``rag.search``.
        """
        if not ctx.user_id:
            await self._audit_denied(ctx, self.RESOURCE_TYPE, None, "unauthenticated")
            raise AuthorizationDeniedError("An authenticated user is required to search")
        await self._authorize(ctx, resource_id=None)

        query = from_auth_context(
            search_input.query,
            ctx,
            filters=search_input.filters,
            limit=search_input.limit or self._settings.default_limit,
            min_score=self._min_score(search_input.min_score),
        )
        results = await self._run(ctx, query)
        await self._audit_search(ctx, query, results, resource_id=None)
        return SearchRagOutput(results=results, query=query)

    async def execute_for_message(
        self,
        ctx: AuthorizationContext,
        message: Message,
        query_text: Optional[str] = None,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
        filters: Optional[RagFilters] = None,
    ) -> SearchRagOutput:
        """
        Search on behalf of ``message``, gated by the scope it inherited from its author.

        The message text is the query unless ``query_text`` is given.
        """
        if not can_view_message(message, ctx):
            await self._audit_denied(ctx, "message", message.id, "message not visible")
            raise AuthorizationDeniedError("Message is not visible to the caller")
        await self._authorize(ctx, resource_id=message.id)

        query = from_message_scope(
            query_text or message.content,
            message.access_scope,
            filters=filters,
            limit=limit or self._settings.default_limit,
            min_score=self._min_score(min_score),
        )
        results = await self._run(ctx, query)
        await self._audit_search(ctx, query, results, resource_id=message.id)
        return SearchRagOutput(results=results, query=query)

    def _min_score(self, min_score: Optional[float]) -> float:
        return self._settings.default_min_score if min_score is None else min_score

    async def _authorize(self, ctx: AuthorizationContext, resource_id: Optional[str]) -> None:
        if self._policy_engine.is_allowed(ctx, PolicyType.RAG, PolicyAction.SEARCH):
            return
        await self._audit_denied(ctx, self.RESOURCE_TYPE, resource_id, "policy denied")
        raise AuthorizationDeniedError("RAG search is not allowed by policy")

    async def _audit_denied(
        self, ctx: AuthorizationContext, resource_type: str, resource_id: Optional[str], reason: str
    ) -> None:
        await safe_log(
            self._audit_sink,
            AuditEvent(
                tenant_id=ctx.tenant_id,
                user_id=ctx.user_id,
                action="rag.search",
                resource_type=resource_type,
                resource_id=resource_id,
                allowed=False,
                details={"reason": reason},
            ),
        )

    async def _run(self, ctx: AuthorizationContext, query: RagQuery) -> list[RagResult]:
        config = RunnableConfig(metadata={"tenant_id": ctx.tenant_id, "session_id": str(uuid.uuid4())})
        with request_context(ctx.tenant_id, ctx.user_id):
            return await self._retriever.ainvoke(query, config=config)

    async def _audit_search(
        self, ctx: AuthorizationContext, query: RagQuery, results: list[RagResult], resource_id: Optional[str]
    ) -> None:
        logger.info("RAG search for tenant %s returned %d results", ctx.tenant_id, len(results))
        await safe_log(
            self._audit_sink,
            AuditEvent(
                tenant_id=ctx.tenant_id,
                user_id=ctx.user_id,
                action="rag.search",
                resource_type=self.RESOURCE_TYPE,
                resource_id=resource_id,
                details={
                    "limit": query.limit,
                    "min_score": query.min_score,
                    "results_count": len(results),
                    "chunk_ids": [result.chunk_id for result in results],
                },
            ),
        )
