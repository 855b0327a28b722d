"""Settings module for the document ingestion pipeline."""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class IngestionSettings(BaseSettings):
    """Chunking defaults and batch embedding concurrency."""

    class Config:
        """Configure environment variable prefix and behaviour."""

        env_prefix = "RAG_"
        case_sensitive = False

    batch_size: int = Field(default=15, gt=0, description="Chunks per embedding batch.")
    parallel_batches: int = Field(default=3, gt=0, description="Batches embedded concurrently per group.")
    chunk_strategy: str = Field(default="hybrid")
    chunk_size: int = Field(default=4096, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    embedding_timeout_seconds: float = Field(default=60.0, gt=0)
    embedding_fallback: bool = Field(
        default=True,
        description="Substitute a flagged pseudo-vector when an embedding call fails instead of failing the ingestion.",
    )
    storage_type: Literal["local"] = Field(default="local")

    @model_validator(mode="after")
    def _validate_overlap(self) -> "IngestionSettings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("RAG_CHUNK_OVERLAP must be smaller than RAG_CHUNK_SIZE.")
        return self
