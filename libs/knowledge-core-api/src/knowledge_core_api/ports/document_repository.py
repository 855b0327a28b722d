"""Base interface for document, version and chunk persistence."""

from abc import ABC, abstractmethod
from typing import Optional

from knowledge_core_api.models.documents import Document, DocumentChunk, DocumentVersion, VersionStatus


class DocumentRepository(ABC):
    """Relational store for ingested documents."""

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Persist a new document."""

    @abstractmethod
    async def get_document(self, tenant_id: str, document_id: str) -> Optional[Document]:
        """Return the document, or ``None``."""

    @abstractmethod
    async def list_documents(self, tenant_id: str) -> list[Document]:
        """Return the tenant's documents in creation order."""

    @abstractmethod
    async def create_version(self, version: DocumentVersion) -> DocumentVersion:
        """Persist a new version."""

    @abstractmethod
    async def get_version(self, tenant_id: str, version_id: str) -> Optional[DocumentVersion]:
        """Return the version, or ``None``."""

    @abstractmethod
    async def list_versions(self, tenant_id: str, document_id: str) -> list[DocumentVersion]:
        """Return the versions of a document ordered by version number."""

    @abstractmethod
    async def update_version_status(
        self,
        tenant_id: str,
        version_id: str,
        status: VersionStatus,
        error: Optional[str] = None,
        degraded_chunks: Optional[int] = None,
    ) -> DocumentVersion:
        """
        Transition a version to ``status``.

        Raises
        ------
        NotFoundError
            If the version does not exist.
        """

    @abstractmethod
    async def create_chunks(self, chunks: list[DocumentChunk]) -> None:
        """Batch insert chunks, keeping their order."""

    @abstractmethod
    async def get_chunks(self, tenant_id: str, version_id: str) -> list[DocumentChunk]:
        """Return the chunks of a version ordered by position."""
