from unittest.mock import patch

import pytest

from knowledge_core_api.container import KnowledgeCoreContainer
from knowledge_core_api.impl.file_stores.local_file_store import LocalFileStore
from knowledge_core_api.impl.repositories.in_memory_document_repository import InMemoryDocumentRepository
from knowledge_core_api.impl.settings.file_store_settings import FileStoreSettings
from knowledge_core_api.impl.settings.ingestion_settings import IngestionSettings
from knowledge_core_api.impl.vector_indexes.in_memory_vector_index import InMemoryVectorIndex
from knowledge_core_api.models.documents import VersionStatus
from knowledge_core_api.models.ingestion import IngestDocumentInput, SearchRagInput
from knowledge_core_api.retrieval.engine import RetrievalEngine
from knowledge_core_lib.auth_context import AuthorizationContext
from knowledge_core_lib.impl.settings.mlflow_settings import MlflowSettings
from knowledge_core_lib.policies import PolicyEngine
from knowledge_core_lib.tracers.traced_runnable import TracedRunnable
from mocks.keyword_embeddings import KeywordEmbeddings
from mocks.recording_audit_sink import RecordingAuditSink

ENG = AuthorizationContext(tenant_id="acme", user_id="alice", roles=frozenset({"user"}), department="eng")
SALES = AuthorizationContext(tenant_id="acme", user_id="bob", roles=frozenset({"user"}), department="sales")
OTHER_TENANT = ENG.model_copy(update={"tenant_id": "globex"})


def _container(tmp_path, **kwargs):
    return KnowledgeCoreContainer(
        policy_engine=PolicyEngine(),
        embedder=KeywordEmbeddings(["budget", "roadmap", "holiday"]),
        vector_index=InMemoryVectorIndex(),
        file_store=LocalFileStore(FileStoreSettings(base_path=str(tmp_path))),
        repository=InMemoryDocumentRepository(),
        audit_sink=RecordingAuditSink(),
        ingestion_settings=IngestionSettings(),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_ingested_documents_are_found_only_in_their_scope(tmp_path):
    container = _container(tmp_path)
    ingest = container.ingest_document()
    search = container.search_rag()

    eng_doc = await ingest.execute(ENG, IngestDocumentInput(name="plan.txt", content=b"budget roadmap", format="txt"))
    await ingest.execute(SALES, IngestDocumentInput(name="deals.txt", content=b"budget roadmap", format="txt"))

    version = await container.repository.get_version("acme", eng_doc.version_id)
    assert version.status == VersionStatus.COMPLETED

    eng_results = (await search.execute(ENG, SearchRagInput(query="budget roadmap"))).results
    assert [result.document_id for result in eng_results] == [eng_doc.document_id]

    foreign = (await search.execute(OTHER_TENANT, SearchRagInput(query="budget roadmap"))).results
    assert foreign == []

    actions = [event.action for event in container.audit_sink.events]
    assert actions.count("document.ingest") == 2
    assert actions.count("rag.search") == 2


def test_retriever_is_plain_engine_without_tracing(tmp_path):
    container = _container(tmp_path, mlflow_settings=MlflowSettings(tracing_enabled=False))
    assert isinstance(container.retriever(), RetrievalEngine)


def test_retriever_is_traced_when_enabled(tmp_path):
    container = _container(tmp_path, mlflow_settings=MlflowSettings(tracing_enabled=True))

    with patch("knowledge_core_lib.tracers.traced_runnable.mlflow"):
        retriever = container.retriever()

    assert isinstance(retriever, TracedRunnable)
    assert retriever.inner_chain is container.retrieval_engine


@pytest.mark.asyncio
async def test_same_department_user_finds_admin_upload_with_other_roles_and_tags(tmp_path):
    container = _container(tmp_path)
    admin = AuthorizationContext(
        tenant_id="acme", user_id="carol", roles=frozenset({"admin"}), tags=frozenset({"finance"}), department="eng"
    )
    uploaded = await container.ingest_document().execute(
        admin, IngestDocumentInput(name="budget.txt", content=b"budget roadmap", format="txt")
    )

    results = (await container.search_rag().execute(ENG, SearchRagInput(query="budget roadmap"))).results

    assert [result.document_id for result in results] == [uploaded.document_id]
    assert results[0].access_scope.roles == frozenset({"admin"})
