"""Module containing the IngestDocument use case."""

from __future__ import annotations

import logging

from knowledge_core_api.impl.audit.safe_log import safe_log
from knowledge_core_api.ingestion.pipeline import IngestionPipeline
from knowledge_core_api.models.audit import AuditEvent
from knowledge_core_api.models.ingestion import IngestDocumentInput, IngestDocumentOutput
from knowledge_core_api.ports.audit_sink import AuditSink
from knowledge_core_lib.auth_context import AuthorizationContext
from knowledge_core_lib.context import request_context
from knowledge_core_lib.errors import AuthorizationDeniedError, KnowledgeCoreError

logger = logging.getLogger(__name__)


class IngestDocument:
    """Ingest a document for an authenticated user and audit the outcome."""

    RESOURCE_TYPE = "document"

    def __init__(self, pipeline: IngestionPipeline, audit_sink: AuditSink):
        self._pipeline = pipeline
        self._audit_sink = audit_sink

    async def execute(self, ctx: AuthorizationContext, ingest_input: IngestDocumentInput) -> IngestDocumentOutput:
        if not ctx.user_id:
            await safe_log(
                self._audit_sink,
                AuditEvent(
                    tenant_id=ctx.tenant_id,
                    action="document.ingest",
                    resource_type=self.RESOURCE_TYPE,
                    allowed=False,
                    details={"name": ingest_input.name, "reason": "unauthenticated"},
                ),
            )
            raise AuthorizationDeniedError("An authenticated user is required to upload documents")

        try:
            with request_context(ctx.tenant_id, ctx.user_id):
                output = await self._pipeline.ingest(ctx, ingest_input)
        except KnowledgeCoreError as exc:
            await safe_log(
                self._audit_sink,
                AuditEvent(
                    tenant_id=ctx.tenant_id,
                    user_id=ctx.user_id,
                    action="document.ingest",
                    resource_type=self.RESOURCE_TYPE,
                    allowed=True,
                    details={"name": ingest_input.name, "error": str(exc), "error_type": exc.__class__.__name__},
                ),
            )
            raise

        if output.degraded_chunks:
            logger.warning(
                "Version %s completed with %d of %d chunks on fallback embeddings",
                output.version_id,
                output.degraded_chunks,
                output.chunks_count,
            )
        await safe_log(
            self._audit_sink,
            AuditEvent(
                tenant_id=ctx.tenant_id,
                user_id=ctx.user_id,
                action="document.ingest",
                resource_type=self.RESOURCE_TYPE,
                resource_id=output.document_id,
                details={
                    "name": ingest_input.name,
                    "version_id": output.version_id,
                    "chunks_count": output.chunks_count,
                    "degraded_chunks": output.degraded_chunks,
                },
            ),
        )
        return output
