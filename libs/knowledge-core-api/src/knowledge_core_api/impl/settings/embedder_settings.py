"""Contains settings for the embedding provider."""

from pydantic import Field
from pydantic_settings import BaseSettings


class EmbedderSettings(BaseSettings):
    """
    Embedding provider settings.

    Attributes
    ----------
    base_url : str
        Base URL of the Ollama server.
    model : str
        Embedding model name.
    timeout_seconds : float
        HTTP timeout of a single embedding request.
    dimension : int
        Vector dimensionality, shared with the vector index.
    """

    class Config:
        """Config class for reading fields from env."""

        env_prefix = "EMBEDDING_"
        case_sensitive = False

    base_url: str = Field(default="http://localhost:11434")
    model: str = Field(default="nomic-embed-text")
    timeout_seconds: float = Field(default=30.0, gt=0)
    dimension: int = Field(default=768, gt=0)
