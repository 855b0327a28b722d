"""Scoped retrieval."""

from .engine import RetrievalEngine, hit_to_result
from .filters import build_filter_expression
from .query_builder import RagQueryBuilder, from_auth_context, from_message_scope, merge_filters

__all__ = [
    "RagQueryBuilder",
    "RetrievalEngine",
    "build_filter_expression",
    "from_auth_context",
    "from_message_scope",
    "hit_to_result",
    "merge_filters",
]
