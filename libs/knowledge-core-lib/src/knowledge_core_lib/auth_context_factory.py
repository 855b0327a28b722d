"""Helpers for building authorization contexts from decoded token claims."""

from __future__ import annotations

from typing import Any

from knowledge_core_lib.auth_context import AuthorizationContext
from knowledge_core_lib.errors import InvalidInputError


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return []
        if "," in trimmed:
            return [item.strip() for item in trimmed.split(",") if item.strip()]
        return [trimmed]
    return [str(value)]


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def authorization_context_from_claims(claims: dict[str, Any]) -> AuthorizationContext:
    """Build an authorization context from decoded JWT claims.

    The token itself is verified upstream; this only normalizes claim shapes
    (lists or comma separated strings) into the immutable context.
    """
    tenant_id = _as_optional_str(claims.get("tenant_id"))
    if not tenant_id:
        raise InvalidInputError("Missing tenant_id claim")

    return AuthorizationContext(
        tenant_id=tenant_id,
        tenant_slug=_as_optional_str(claims.get("tenant_slug")),
        user_id=_as_optional_str(claims.get("user_id") or claims.get("sub")),
        user_email=_as_optional_str(claims.get("email")),
        user_name=_as_optional_str(claims.get("name") or claims.get("preferred_username")),
        roles=frozenset(_as_list(claims.get("roles"))),
        tags=frozenset(_as_list(claims.get("tags"))),
        department_id=_as_optional_str(claims.get("department_id")),
        department=_as_optional_str(claims.get("department")),
        subdepartment=_as_optional_str(claims.get("subdepartment")),
    )
