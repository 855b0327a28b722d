"""Retrieval query and result models, plus the index-neutral filter expression."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from knowledge_core_lib.access_scope import AccessScope


class RagFilters(BaseModel):
    """Optional narrowing of a search. ``None`` means "not set", an empty list clears a derived filter."""

    model_config = ConfigDict(frozen=True)

    departments: list[str] | None = None
    subdepartments: list[str] | None = None
    tags: list[str] | None = None
    document_ids: list[str] | None = None
    document_version_ids: list[str] | None = None


class RagQuery(BaseModel):
    """Ephemeral scoped search request."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    limit: int = Field(default=10, gt=0)
    min_score: float = Field(default=0.7, ge=-1.0, le=1.0)
    filters: RagFilters = Field(default_factory=RagFilters)
    access_scope: AccessScope = Field(default_factory=AccessScope)
    require_scope_match: bool = Field(
        default=False,
        description="Drop hits not reachable from ``access_scope``; set for message-scope queries.",
    )


class RagResult(BaseModel):
    """Read-only projection of one retrieved chunk."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    score: float
    text: str
    document_id: str | None = None
    document_version_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    access_scope: AccessScope = Field(default_factory=AccessScope)


class AnyOf(BaseModel):
    """Match when the payload field at ``key`` equals, or contains, any of ``values``."""

    model_config = ConfigDict(frozen=True)

    key: str
    values: tuple[str, ...]


class FilterExpression(BaseModel):
    """Conjunction of ``AnyOf`` conditions."""

    model_config = ConfigDict(frozen=True)

    must: tuple[AnyOf, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.must


class VectorPoint(BaseModel):
    """A vector with its payload, ready for upsert."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)


class VectorHit(BaseModel):
    """A ranked search hit as returned by a vector index."""

    id: str
    score: float
    payload: dict[str, Any] = Field(default_factory=dict)
