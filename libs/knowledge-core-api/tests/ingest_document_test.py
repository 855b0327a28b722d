from unittest.mock import AsyncMock, MagicMock

import pytest

from knowledge_core_api.ingestion.pipeline import IngestionPipeline
from knowledge_core_api.models.ingestion import IngestDocumentInput, IngestDocumentOutput
from knowledge_core_api.usecases.ingest_document import IngestDocument
from knowledge_core_lib.auth_context import AuthorizationContext
from knowledge_core_lib.context import get_tenant_id, get_user_id
from knowledge_core_lib.errors import AuthorizationDeniedError, DependencyUnavailableError
from mocks.recording_audit_sink import RecordingAuditSink

CTX = AuthorizationContext(tenant_id="tenant-a", user_id="user-1")
INPUT = IngestDocumentInput(name="notes.txt", content=b"hello", format="txt")


def _pipeline(**kwargs):
    pipeline = MagicMock(spec=IngestionPipeline)
    pipeline.ingest = AsyncMock(**kwargs)
    return pipeline


@pytest.mark.asyncio
async def test_ingest_requires_user():
    pipeline = _pipeline()
    sink = RecordingAuditSink()

    with pytest.raises(AuthorizationDeniedError):
        await IngestDocument(pipeline, sink).execute(CTX.model_copy(update={"user_id": None}), INPUT)

    pipeline.ingest.assert_not_awaited()
    [event] = sink.events
    assert event.allowed is False
    assert event.action == "document.ingest"
    assert event.details["reason"] == "unauthenticated"


@pytest.mark.asyncio
async def test_successful_ingest_is_audited():
    output = IngestDocumentOutput(document_id="d1", version_id="v1", chunks_count=3, degraded_chunks=1)
    sink = RecordingAuditSink()

    result = await IngestDocument(_pipeline(return_value=output), sink).execute(CTX, INPUT)

    assert result == output
    event = sink.events[0]
    assert event.action == "document.ingest"
    assert event.resource_id == "d1"
    assert event.details == {"name": "notes.txt", "version_id": "v1", "chunks_count": 3, "degraded_chunks": 1}
    assert get_tenant_id() is None
    assert get_user_id() is None


@pytest.mark.asyncio
async def test_failed_ingest_is_audited_and_reraised():
    sink = RecordingAuditSink()
    pipeline = _pipeline(side_effect=DependencyUnavailableError("vector index down"))

    with pytest.raises(DependencyUnavailableError):
        await IngestDocument(pipeline, sink).execute(CTX, INPUT)

    assert sink.events[0].details["error_type"] == "DependencyUnavailableError"
    assert get_tenant_id() is None
