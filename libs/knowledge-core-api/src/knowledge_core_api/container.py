"""Wiring of settings, adapters and use cases."""

from __future__ import annotations

import logging
from typing import Optional

from langchain_core.embeddings import Embeddings
from langchain_core.runnables import Runnable

from knowledge_core_api.impl.audit.logging_audit_sink import LoggingAuditSink
from knowledge_core_api.impl.embeddings.ollama_embedder import OllamaEmbedder
from knowledge_core_api.impl.embeddings.pseudo_embedding import PseudoEmbeddings
from knowledge_core_api.impl.file_stores.local_file_store import LocalFileStore
from knowledge_core_api.impl.repositories.in_memory_document_repository import InMemoryDocumentRepository
from knowledge_core_api.impl.settings.embedder_settings import EmbedderSettings
from knowledge_core_api.impl.settings.file_store_settings import FileStoreSettings
from knowledge_core_api.impl.settings.ingestion_settings import IngestionSettings
from knowledge_core_api.impl.settings.qdrant_settings import QdrantSettings
from knowledge_core_api.impl.settings.retrieval_settings import RetrievalSettings
from knowledge_core_api.impl.vector_indexes.qdrant_vector_index import QdrantVectorIndex
from knowledge_core_api.ingestion.embedding_batcher import BatchEmbedder
from knowledge_core_api.ingestion.pipeline import IngestionPipeline
from knowledge_core_api.ports.audit_sink import AuditSink
from knowledge_core_api.ports.document_repository import DocumentRepository
from knowledge_core_api.ports.file_store import FileStore
from knowledge_core_api.ports.vector_index import VectorIndex
from knowledge_core_api.retrieval.engine import RetrievalEngine
from knowledge_core_api.usecases.ingest_document import IngestDocument
from knowledge_core_api.usecases.search_rag import SearchRag
from knowledge_core_lib.impl.settings.mlflow_settings import MlflowSettings
from knowledge_core_lib.impl.settings.policy_settings import PolicySettings
from knowledge_core_lib.policies.engine import PolicyEngine
from knowledge_core_lib.tracers.traced_runnable import TracedRunnable

logger = logging.getLogger(__name__)


class KnowledgeCoreContainer:
    """
    Build the knowledge core from settings.

    Every collaborator can be passed in explicitly; anything omitted is
    created from its settings class, i.e. from the environment.
    """

    def __init__(
        self,
        policy_engine: Optional[PolicyEngine] = None,
        embedder: Optional[Embeddings] = None,
        vector_index: Optional[VectorIndex] = None,
        file_store: Optional[FileStore] = None,
        repository: Optional[DocumentRepository] = None,
        audit_sink: Optional[AuditSink] = None,
        ingestion_settings: Optional[IngestionSettings] = None,
        retrieval_settings: Optional[RetrievalSettings] = None,
        mlflow_settings: Optional[MlflowSettings] = None,
    ):
        self.ingestion_settings = ingestion_settings or IngestionSettings()
        self.retrieval_settings = retrieval_settings or RetrievalSettings()
        self.mlflow_settings = mlflow_settings or MlflowSettings()

        embedder_settings = EmbedderSettings()
        self.policy_engine = policy_engine or PolicyEngine.from_settings(PolicySettings())
        self.embedder = embedder or OllamaEmbedder(embedder_settings)
        self.vector_index = vector_index or QdrantVectorIndex.from_settings(QdrantSettings())
        self.file_store = file_store or LocalFileStore(FileStoreSettings())
        self.repository = repository or InMemoryDocumentRepository()
        self.audit_sink = audit_sink or LoggingAuditSink()

        fallback = None
        if self.ingestion_settings.embedding_fallback:
            fallback = PseudoEmbeddings(dimension=embedder_settings.dimension).embed_query
        self.batch_embedder = BatchEmbedder(
            self.embedder,
            batch_size=self.ingestion_settings.batch_size,
            parallel_batches=self.ingestion_settings.parallel_batches,
            timeout_seconds=self.ingestion_settings.embedding_timeout_seconds,
            fallback=fallback,
        )
        self.ingestion_pipeline = IngestionPipeline(
            file_store=self.file_store,
            repository=self.repository,
            vector_index=self.vector_index,
            batch_embedder=self.batch_embedder,
            settings=self.ingestion_settings,
        )
        self.retrieval_engine = RetrievalEngine(self.embedder, self.vector_index, self.retrieval_settings)

    def retriever(self) -> Runnable:
        """Return the retrieval engine, traced with MLflow when enabled."""
        if self.mlflow_settings.tracing_enabled:
            logger.info("MLflow tracing enabled for retrieval")
            return TracedRunnable(self.retrieval_engine, self.mlflow_settings)
        return self.retrieval_engine

    def search_rag(self) -> SearchRag:
        return SearchRag(self.policy_engine, self.retriever(), self.audit_sink, self.retrieval_settings)

    def ingest_document(self) -> IngestDocument:
        return IngestDocument(self.ingestion_pipeline, self.audit_sink)
