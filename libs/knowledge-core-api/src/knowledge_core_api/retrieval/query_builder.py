"""Construction of scoped retrieval queries."""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from knowledge_core_api.models.rag import RagFilters, RagQuery
from knowledge_core_lib.access_scope import AccessScope, compute_access_scope
from knowledge_core_lib.auth_context import AuthorizationContext
from knowledge_core_lib.errors import InvalidInputError

DEFAULT_LIMIT = 10
DEFAULT_MIN_SCORE = 0.7


def merge_filters(derived: RagFilters, explicit: Optional[RagFilters]) -> RagFilters:
    """Let every field set on ``explicit`` replace the derived one."""
    if explicit is None:
        return derived
    overrides = {
        name: getattr(explicit, name) for name in RagFilters.model_fields if getattr(explicit, name) is not None
    }
    return derived.model_copy(update=overrides)


def _filters_from_scope(scope: AccessScope) -> RagFilters:
    return RagFilters(
        departments=[scope.department] if scope.department else None,
        subdepartments=[scope.subdepartment] if scope.subdepartment else None,
        tags=sorted(scope.tags) if scope.tags else None,
    )


def _build_query(
    text: str,
    scope: AccessScope,
    filters: RagFilters,
    limit: Optional[int],
    min_score: Optional[float],
    require_scope_match: bool = False,
) -> RagQuery:
    try:
        return RagQuery(
            text=text,
            limit=DEFAULT_LIMIT if limit is None else limit,
            min_score=DEFAULT_MIN_SCORE if min_score is None else min_score,
            filters=filters,
            access_scope=scope,
            require_scope_match=require_scope_match,
        )
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid retrieval query: {exc}") from exc


def from_auth_context(
    text: str,
    ctx: AuthorizationContext,
    filters: Optional[RagFilters] = None,
    limit: Optional[int] = None,
    min_score: Optional[float] = None,
) -> RagQuery:
    """Build a query whose only narrowing is the filters derived from the caller's department and tags."""
    scope = compute_access_scope(ctx)
    return _build_query(text, scope, merge_filters(_filters_from_scope(scope), filters), limit, min_score)


def from_message_scope(
    text: str,
    message_scope: AccessScope,
    filters: Optional[RagFilters] = None,
    limit: Optional[int] = None,
    min_score: Optional[float] = None,
) -> RagQuery:
    """
    Build a query on behalf of a message.

    Besides the derived filters, every hit must be reachable from the scope the
    message inherited from its author.
    """
    return _build_query(
        text,
        message_scope,
        merge_filters(_filters_from_scope(message_scope), filters),
        limit,
        min_score,
        require_scope_match=True,
    )


class RagQueryBuilder:
    """Fluent builder for queries that do not start from a context or message."""

    def __init__(self, text: str):
        self._text = text
        self._limit: Optional[int] = None
        self._min_score: Optional[float] = None
        self._filters: dict[str, list[str]] = {}
        self._access_scope: Optional[AccessScope] = None

    def with_limit(self, limit: int) -> "RagQueryBuilder":
        self._limit = limit
        return self

    def with_min_score(self, min_score: float) -> "RagQueryBuilder":
        self._min_score = min_score
        return self

    def with_departments(self, *departments: str) -> "RagQueryBuilder":
        self._filters["departments"] = list(departments)
        return self

    def with_subdepartments(self, *subdepartments: str) -> "RagQueryBuilder":
        self._filters["subdepartments"] = list(subdepartments)
        return self

    def with_tags(self, *tags: str) -> "RagQueryBuilder":
        self._filters["tags"] = list(tags)
        return self

    def with_document_ids(self, *document_ids: str) -> "RagQueryBuilder":
        self._filters["document_ids"] = list(document_ids)
        return self

    def with_document_version_ids(self, *version_ids: str) -> "RagQueryBuilder":
        self._filters["document_version_ids"] = list(version_ids)
        return self

    def with_access_scope(self, access_scope: AccessScope) -> "RagQueryBuilder":
        """Require every hit to be reachable from ``access_scope``."""
        self._access_scope = access_scope
        return self

    def build(self) -> RagQuery:
        return _build_query(
            self._text,
            self._access_scope or AccessScope(),
            RagFilters(**self._filters),
            self._limit,
            self._min_score,
            require_scope_match=self._access_scope is not None,
        )
