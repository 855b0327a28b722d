"""Authorization context shared across services."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AuthScope(BaseModel):
    """Scope derived from a caller's identity; every field is a set."""

    model_config = ConfigDict(frozen=True)

    departments: frozenset[str] = Field(default_factory=frozenset)
    subdepartments: frozenset[str] = Field(default_factory=frozenset)
    tags: frozenset[str] = Field(default_factory=frozenset)
    roles: frozenset[str] = Field(default_factory=frozenset)


class AuthorizationContext(BaseModel):
    """Resolved identity of the caller for one request.

    Built once per request by the identity resolver and never mutated or
    persisted afterwards.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    tenant_slug: str | None = None
    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None
    roles: frozenset[str] = Field(default_factory=frozenset)
    tags: frozenset[str] = Field(default_factory=frozenset)
    department_id: str | None = None
    department: str | None = None
    subdepartment: str | None = None

    @property
    def scope(self) -> AuthScope:
        """Return the scope derived from department, sub-department, tags and roles."""
        return AuthScope(
            departments=frozenset({self.department}) if self.department else frozenset(),
            subdepartments=frozenset({self.subdepartment}) if self.subdepartment else frozenset(),
            tags=self.tags,
            roles=self.roles,
        )

    def has_role(self, role: str) -> bool:
        """Return whether the caller holds ``role``."""
        return role in self.roles

    def has_any_role(self, roles: list[str] | set[str] | frozenset[str]) -> bool:
        """Return whether the caller holds at least one of ``roles``."""
        return any(role in self.roles for role in roles)

    def has_tag(self, tag: str) -> bool:
        """Return whether the caller carries ``tag``."""
        return tag in self.tags

    def has_department(self, department: str) -> bool:
        """Return whether the caller belongs to ``department``."""
        return self.department == department
