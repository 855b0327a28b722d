"""Access scope carried by messages and document chunks."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from knowledge_core_lib.auth_context import AuthorizationContext


class AccessScope(BaseModel):
    """Provenance of an artifact: the author's department, sub-department, tags and roles.

    Computed once when the artifact is created and immutable afterwards.
    """

    model_config = ConfigDict(frozen=True)

    department: str | None = None
    subdepartment: str | None = None
    tags: frozenset[str] = Field(default_factory=frozenset)
    roles: frozenset[str] = Field(default_factory=frozenset)

    @field_serializer("tags", "roles")
    def _serialize_sorted(self, value: frozenset[str]) -> list[str]:
        return sorted(value)

    def to_payload(self) -> dict:
        """Return a JSON compatible representation used in vector payloads and records."""
        return self.model_dump(mode="json")


def compute_access_scope(ctx: AuthorizationContext) -> AccessScope:
    """Project the caller's department, sub-department, tags and roles into an access scope."""
    return AccessScope(
        department=ctx.department,
        subdepartment=ctx.subdepartment,
        tags=ctx.tags,
        roles=ctx.roles,
    )


def allows_resource_access(message_scope: AccessScope, resource_scope: AccessScope) -> bool:
    """Return whether an artifact tagged with ``resource_scope`` is reachable from ``message_scope``.

    Every non-empty field of the resource scope constrains the message scope:
    department and sub-department by equality, tags and roles by non-empty
    intersection. Absent resource fields impose nothing.
    """
    if resource_scope.department and message_scope.department != resource_scope.department:
        return False

    if resource_scope.subdepartment and message_scope.subdepartment != resource_scope.subdepartment:
        return False

    if resource_scope.tags and not resource_scope.tags & message_scope.tags:
        return False

    if resource_scope.roles and not resource_scope.roles & message_scope.roles:
        return False

    return True
