"""Settings package exports for knowledge_core_api."""

from .embedder_settings import EmbedderSettings
from .file_store_settings import FileStoreSettings
from .ingestion_settings import IngestionSettings
from .qdrant_settings import QdrantSettings
from .retrieval_settings import RetrievalSettings

__all__ = [
    "EmbedderSettings",
    "FileStoreSettings",
    "IngestionSettings",
    "QdrantSettings",
    "RetrievalSettings",
]
