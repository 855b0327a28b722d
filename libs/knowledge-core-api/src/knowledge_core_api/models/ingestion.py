"""Inputs and outputs of the use cases."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from knowledge_core_api.models.documents import ChunkingConfig
from knowledge_core_api.models.rag import RagFilters, RagQuery, RagResult
from knowledge_core_lib.access_scope import AccessScope

FORMAT_PATTERN = r"^[A-Za-z0-9]{1,16}$"


class IngestDocumentInput(BaseModel):
    """Raw document upload. ``access_scope`` and ``access_roles`` default to the uploader's."""

    name: str = Field(min_length=1)
    content: bytes
    format: str = Field(pattern=FORMAT_PATTERN, description="File extension, e.g. ``txt`` or ``md``.")
    tags: list[str] = Field(default_factory=list)
    access_scope: AccessScope | None = None
    access_roles: list[str] | None = None
    chunking: ChunkingConfig | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class IngestDocumentOutput(BaseModel):
    document_id: str
    version_id: str
    chunks_count: int
    degraded_chunks: int = 0


class SearchRagInput(BaseModel):
    query: str = Field(min_length=1)
    limit: int | None = Field(default=None, gt=0)
    min_score: float | None = None
    filters: RagFilters | None = None


class SearchRagOutput(BaseModel):
    results: list[RagResult]
    query: RagQuery
