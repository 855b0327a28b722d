"""Use cases exposed to the message-send orchestrator."""

from .ingest_document import IngestDocument
from .search_rag import SearchRag

__all__ = ["IngestDocument", "SearchRag"]
