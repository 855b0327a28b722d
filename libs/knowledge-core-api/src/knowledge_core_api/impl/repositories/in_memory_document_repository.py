"""In-process document repository."""

from __future__ import annotations

import asyncio
from typing import Optional

from knowledge_core_api.models.documents import Document, DocumentChunk, DocumentVersion, VersionStatus, utc_now
from knowledge_core_api.ports.document_repository import DocumentRepository
from knowledge_core_lib.errors import InvalidInputError, NotFoundError


class InMemoryDocumentRepository(DocumentRepository):
    """Dictionary backed repository. Records are keyed by tenant so lookups never cross tenants."""

    def __init__(self):
        self._documents: dict[tuple[str, str], Document] = {}
        self._versions: dict[tuple[str, str], DocumentVersion] = {}
        self._chunks: dict[tuple[str, str], list[DocumentChunk]] = {}
        self._lock = asyncio.Lock()

    async def create_document(self, document: Document) -> Document:
        async with self._lock:
            key = (document.tenant_id, document.id)
            if key in self._documents:
                raise InvalidInputError(f"Document {document.id} already exists")
            self._documents[key] = document
        return document

    async def get_document(self, tenant_id: str, document_id: str) -> Optional[Document]:
        return self._documents.get((tenant_id, document_id))

    async def list_documents(self, tenant_id: str) -> list[Document]:
        return [document for (owner, _), document in self._documents.items() if owner == tenant_id]

    async def create_version(self, version: DocumentVersion) -> DocumentVersion:
        async with self._lock:
            if (version.tenant_id, version.document_id) not in self._documents:
                raise NotFoundError(f"Document {version.document_id} not found")
            key = (version.tenant_id, version.id)
            if key in self._versions:
                raise InvalidInputError(f"Version {version.id} already exists")
            siblings = [
                existing
                for (owner, _), existing in self._versions.items()
                if owner == version.tenant_id and existing.document_id == version.document_id
            ]
            stored = version.model_copy(update={"version_number": len(siblings) + 1})
            self._versions[key] = stored
        return stored

    async def get_version(self, tenant_id: str, version_id: str) -> Optional[DocumentVersion]:
        return self._versions.get((tenant_id, version_id))

    async def list_versions(self, tenant_id: str, document_id: str) -> list[DocumentVersion]:
        versions = [
            version
            for (owner, _), version in self._versions.items()
            if owner == tenant_id and version.document_id == document_id
        ]
        return sorted(versions, key=lambda version: version.version_number)

    async def update_version_status(
        self,
        tenant_id: str,
        version_id: str,
        status: VersionStatus,
        error: Optional[str] = None,
        degraded_chunks: Optional[int] = None,
    ) -> DocumentVersion:
        async with self._lock:
            key = (tenant_id, version_id)
            version = self._versions.get(key)
            if version is None:
                raise NotFoundError(f"Version {version_id} not found")
            update: dict = {"status": status, "error": error}
            if degraded_chunks is not None:
                update["degraded_chunks"] = degraded_chunks
            if status == VersionStatus.COMPLETED:
                update["completed_at"] = utc_now()
            updated = version.model_copy(update=update)
            self._versions[key] = updated
        return updated

    async def create_chunks(self, chunks: list[DocumentChunk]) -> None:
        async with self._lock:
            for chunk in chunks:
                self._chunks.setdefault((chunk.tenant_id, chunk.document_version_id), []).append(chunk)

    async def get_chunks(self, tenant_id: str, version_id: str) -> list[DocumentChunk]:
        return sorted(self._chunks.get((tenant_id, version_id), []), key=lambda chunk: chunk.position)
