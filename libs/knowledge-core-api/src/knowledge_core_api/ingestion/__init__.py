"""Document ingestion."""

from .chunker import TextWindow, chunk_text, decode_text, validate_chunking
from .embedding_batcher import BatchEmbedder, EmbeddingResult
from .pipeline import IngestionPipeline

__all__ = [
    "BatchEmbedder",
    "EmbeddingResult",
    "IngestionPipeline",
    "TextWindow",
    "chunk_text",
    "decode_text",
    "validate_chunking",
]
