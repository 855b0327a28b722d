"""Document, version and chunk records."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from knowledge_core_lib.access_scope import AccessScope


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VersionStatus(StrEnum):
    """Processing status of a document version. Only completed versions are retrievable."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ChunkingConfig(BaseModel):
    """Chunking parameters fixed for one document version."""

    strategy: str = "hybrid"
    chunk_size: int = 4096
    overlap: int = 200


class Document(BaseModel):
    """A named, tagged artifact scoped to one tenant."""

    id: str
    tenant_id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    access_scope: AccessScope = Field(default_factory=AccessScope)
    access_roles: frozenset[str] = Field(default_factory=frozenset)
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class DocumentVersion(BaseModel):
    """One ingested revision of a document."""

    id: str
    document_id: str
    tenant_id: str
    version_number: int = 1
    storage_key: str
    checksum: str
    format: str
    size_bytes: int = 0
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    status: VersionStatus = VersionStatus.PROCESSING
    degraded_chunks: int = 0
    error: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    completed_at: datetime | None = None


class DocumentChunk(BaseModel):
    """One positioned, access-tagged slice of a version's text."""

    id: str
    tenant_id: str
    document_id: str
    document_version_id: str
    position: int
    text: str
    start_offset: int
    end_offset: int
    access_scope: AccessScope = Field(default_factory=AccessScope)
    metadata: dict[str, Any] = Field(default_factory=dict)
