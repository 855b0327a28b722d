"""Ports consumed by the knowledge core."""

from .audit_sink import AuditSink
from .document_repository import DocumentRepository
from .file_store import FileStore
from .vector_index import VectorIndex

__all__ = ["AuditSink", "DocumentRepository", "FileStore", "VectorIndex"]
