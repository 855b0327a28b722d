"""Module containing the document ingestion pipeline."""

from __future__ import annotations

import hashlib
import logging
import re
import time
import uuid

from knowledge_core_api.ingestion.chunker import TextWindow, chunk_text, decode_text, validate_chunking
from knowledge_core_api.ingestion.embedding_batcher import BatchEmbedder
from knowledge_core_api.impl.settings.ingestion_settings import IngestionSettings
from knowledge_core_api.models.documents import (
    ChunkingConfig,
    Document,
    DocumentChunk,
    DocumentVersion,
    VersionStatus,
    utc_now,
)
from knowledge_core_api.models.ingestion import FORMAT_PATTERN, IngestDocumentInput, IngestDocumentOutput
from knowledge_core_api.models.rag import VectorPoint
from knowledge_core_api.ports.document_repository import DocumentRepository
from knowledge_core_api.ports.file_store import FileStore
from knowledge_core_api.ports.vector_index import VectorIndex
from knowledge_core_lib.access_scope import compute_access_scope
from knowledge_core_lib.auth_context import AuthorizationContext
from knowledge_core_lib.errors import DependencyUnavailableError, InvalidInputError, KnowledgeCoreError

logger = logging.getLogger(__name__)

_FORMAT_RE = re.compile(FORMAT_PATTERN)
_TENANT_SEGMENT_RE = re.compile(r"^(?!\.{1,2}$)[A-Za-z0-9_.-]+$")


def storage_key_for(tenant_id: str, file_format: str) -> str:
    """
    Build a fresh storage key below ``{tenant_id}/documents/``.

    Both parts must be single path segments so the key cannot leave the
    tenant prefix.
    """
    if not _TENANT_SEGMENT_RE.fullmatch(tenant_id):
        raise InvalidInputError(f"Tenant id {tenant_id!r} cannot be used as a storage prefix")
    if not _FORMAT_RE.fullmatch(file_format):
        raise InvalidInputError(f"Invalid document format {file_format!r}")
    return f"{tenant_id}/documents/{uuid.uuid4()}.{file_format}"


def chunk_id_for(version_id: str, position: int) -> str:
    return f"{version_id}-chunk-{position}"


class IngestionPipeline:
    """
    Turn an uploaded document into completed, access-tagged, searchable chunks.

    Steps: store raw bytes, create the document and a ``processing`` version,
    chunk, embed in parallel batches, ensure the tenant partition, upsert
    vectors, persist chunks, mark the version ``completed``. A failure after the
    version exists marks it ``failed``; a failure before leaves no records.
    """

    def __init__(
        self,
        file_store: FileStore,
        repository: DocumentRepository,
        vector_index: VectorIndex,
        batch_embedder: BatchEmbedder,
        settings: IngestionSettings,
    ):
        self._file_store = file_store
        self._repository = repository
        self._vector_index = vector_index
        self._batch_embedder = batch_embedder
        self._settings = settings

    def default_chunking(self) -> ChunkingConfig:
        return ChunkingConfig(
            strategy=self._settings.chunk_strategy,
            chunk_size=self._settings.chunk_size,
            overlap=self._settings.chunk_overlap,
        )

    async def ingest(self, ctx: AuthorizationContext, ingest_input: IngestDocumentInput) -> IngestDocumentOutput:
        """
        Ingest one document for the caller's tenant.

        Parameters
        ----------
        ctx : AuthorizationContext
            The uploader. Supplies the tenant and the default access scope and roles.
        ingest_input : IngestDocumentInput
            The raw document and optional overrides.

        Returns
        -------
        IngestDocumentOutput
            Identifiers, chunk count and the number of chunks embedded with a fallback vector.

        Raises
        ------
        InvalidInputError
            For invalid chunking parameters or document format, before any side effect.
        DependencyUnavailableError
            When a port call fails. The version, if created, is left ``failed``.
        """
        chunking = ingest_input.chunking or self.default_chunking()
        validate_chunking(chunking.chunk_size, chunking.overlap)
        started = time.perf_counter()

        storage_key = storage_key_for(ctx.tenant_id, ingest_input.format)
        try:
            await self._file_store.save(
                storage_key,
                ingest_input.content,
                {
                    "name": ingest_input.name,
                    "format": ingest_input.format,
                    "uploaded_by": ctx.user_id,
                    "uploaded_at": utc_now().isoformat(),
                },
            )
        except KnowledgeCoreError:
            raise
        except Exception as exc:
            logger.exception("Storing %s failed for tenant %s", ingest_input.name, ctx.tenant_id)
            raise DependencyUnavailableError(f"File store unavailable: {exc}") from exc

        access_scope = ingest_input.access_scope or compute_access_scope(ctx)
        access_roles = frozenset(ingest_input.access_roles) if ingest_input.access_roles is not None else ctx.roles
        try:
            document = await self._repository.create_document(
                Document(
                    id=str(uuid.uuid4()),
                    tenant_id=ctx.tenant_id,
                    name=ingest_input.name,
                    tags=list(ingest_input.tags),
                    access_scope=access_scope,
                    access_roles=access_roles,
                    created_by=ctx.user_id,
                )
            )
            version = await self._repository.create_version(
                DocumentVersion(
                    id=str(uuid.uuid4()),
                    document_id=document.id,
                    tenant_id=ctx.tenant_id,
                    storage_key=storage_key,
                    checksum=hashlib.sha256(ingest_input.content).hexdigest(),
                    format=ingest_input.format,
                    size_bytes=len(ingest_input.content),
                    chunking=chunking,
                )
            )
        except Exception as exc:
            logger.exception("Creating document records failed for tenant %s", ctx.tenant_id)
            raise DependencyUnavailableError(f"Document repository unavailable: {exc}") from exc

        try:
            chunks, degraded = await self._process_version(document, version, ingest_input)
        except Exception as exc:
            await self._mark_failed(version, exc)
            if isinstance(exc, KnowledgeCoreError):
                raise
            raise DependencyUnavailableError(f"Ingestion of version {version.id} failed: {exc}") from exc

        logger.info(
            "Ingested document %s version %s: %d chunks (%d degraded) in %.2fs",
            document.id,
            version.id,
            len(chunks),
            degraded,
            time.perf_counter() - started,
        )
        return IngestDocumentOutput(
            document_id=document.id,
            version_id=version.id,
            chunks_count=len(chunks),
            degraded_chunks=degraded,
        )

    async def _process_version(
        self, document: Document, version: DocumentVersion, ingest_input: IngestDocumentInput
    ) -> tuple[list[DocumentChunk], int]:
        text = decode_text(ingest_input.content)
        windows = chunk_text(text, version.chunking.chunk_size, version.chunking.overlap)
        logger.info("Document %s split into %d chunks", document.id, len(windows))

        embeddings = await self._batch_embedder.embed([window.text for window in windows])
        chunks = [
            self._build_chunk(document, version, window, ingest_input, embedding.degraded)
            for window, embedding in zip(windows, embeddings)
        ]
        degraded = sum(1 for embedding in embeddings if embedding.degraded)

        await self._vector_index.ensure_partition(document.tenant_id)
        if chunks:
            points = [
                VectorPoint(id=chunk.id, vector=embedding.vector, payload=self._payload(chunk))
                for chunk, embedding in zip(chunks, embeddings)
            ]
            await self._vector_index.upsert(document.tenant_id, points)
            await self._repository.create_chunks(chunks)

        await self._repository.update_version_status(
            document.tenant_id, version.id, VersionStatus.COMPLETED, degraded_chunks=degraded
        )
        return chunks, degraded

    @staticmethod
    def _build_chunk(
        document: Document,
        version: DocumentVersion,
        window: TextWindow,
        ingest_input: IngestDocumentInput,
        degraded: bool,
    ) -> DocumentChunk:
        chunk_id = chunk_id_for(version.id, window.position)
        return DocumentChunk(
            id=chunk_id,
            tenant_id=document.tenant_id,
            document_id=document.id,
            document_version_id=version.id,
            position=window.position,
            text=window.text,
            start_offset=window.start,
            end_offset=window.end,
            access_scope=document.access_scope,
            metadata={
                **ingest_input.metadata,
                "document_id": document.id,
                "document_version_id": version.id,
                "document_name": document.name,
                "position": window.position,
                "format": version.format,
                "chunk_id": chunk_id,
                "embedding_degraded": degraded,
            },
        )

    @staticmethod
    def _payload(chunk: DocumentChunk) -> dict:
        return {
            "text": chunk.text,
            "metadata": dict(chunk.metadata),
            "access_scope": chunk.access_scope.to_payload(),
        }

    async def _mark_failed(self, version: DocumentVersion, exc: BaseException) -> None:
        logger.error("Ingestion of version %s failed: %r", version.id, exc)
        try:
            await self._repository.update_version_status(
                version.tenant_id, version.id, VersionStatus.FAILED, error=str(exc) or exc.__class__.__name__
            )
        except Exception:
            logger.exception("Could not mark version %s as failed", version.id)
