"""Settings module for scoped retrieval."""

from pydantic import Field
from pydantic_settings import BaseSettings


class RetrievalSettings(BaseSettings):
    """Query defaults and result gating."""

    class Config:
        """Configure environment variable prefix and behaviour."""

        env_prefix = "RAG_SEARCH_"
        case_sensitive = False

    default_limit: int = Field(default=10, gt=0)
    default_min_score: float = Field(default=0.7, ge=-1.0, le=1.0)
    enforce_access_scope: bool = Field(
        default=True,
        description="Drop hits of message-scope queries whose access scope is not reachable from the message scope.",
    )
    diagnose_empty_results: bool = Field(
        default=True,
        description="Log a threshold-free diagnostic search when a query returns nothing.",
    )
