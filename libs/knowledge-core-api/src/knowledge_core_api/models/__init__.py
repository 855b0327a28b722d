"""Domain models of the knowledge core API."""

from .audit import AuditEvent
from .documents import ChunkingConfig, Document, DocumentChunk, DocumentVersion, VersionStatus
from .ingestion import IngestDocumentInput, IngestDocumentOutput, SearchRagInput, SearchRagOutput
from .rag import AnyOf, FilterExpression, RagFilters, RagQuery, RagResult, VectorHit, VectorPoint

__all__ = [
    "AnyOf",
    "AuditEvent",
    "ChunkingConfig",
    "Document",
    "DocumentChunk",
    "DocumentVersion",
    "FilterExpression",
    "IngestDocumentInput",
    "IngestDocumentOutput",
    "RagFilters",
    "RagQuery",
    "RagResult",
    "SearchRagInput",
    "SearchRagOutput",
    "VectorHit",
    "VectorPoint",
    "VersionStatus",
]
