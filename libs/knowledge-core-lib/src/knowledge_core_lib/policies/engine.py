"""Module containing the PolicyEngine class."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from knowledge_core_lib.auth_context import AuthorizationContext, AuthScope
from knowledge_core_lib.errors import AuthorizationDeniedError
from knowledge_core_lib.impl.settings.policy_settings import PolicySettings
from knowledge_core_lib.policies.loader import load_policy_file
from knowledge_core_lib.policies.models import Policy, PolicyScope, PolicyType, Resource, ToolPolicy

logger = logging.getLogger(__name__)

DEFAULT_APPROVER_ROLES = ("chat_owner", "dept_admin", "tenant_admin")

_SCOPE_FIELDS = ("roles", "tags", "departments", "subdepartments")


def matches_scope(ctx_scope: AuthScope, policy_scope: PolicyScope, user_id: Optional[str] = None) -> bool:
    """
    Check whether a caller scope satisfies a policy scope.

    Every non-empty field of the policy scope must intersect the corresponding
    field of the caller scope. ``user_ids`` additionally pins a policy to
    individual users.
    """
    if policy_scope.user_ids and (user_id is None or user_id not in policy_scope.user_ids):
        return False
    for field_name in _SCOPE_FIELDS:
        required = getattr(policy_scope, field_name)
        if required and not required & getattr(ctx_scope, field_name):
            return False
    return True


class PolicyEngine:
    """
    Resolve permission decisions from a prioritized snapshot of policies.

    The snapshot is immutable; ``reload`` replaces it as a whole so concurrent
    evaluations always see either the old or the new set.
    """

    def __init__(
        self,
        policies: Iterable[Policy] = (),
        default_allow: bool = True,
        fallback_approver_roles: Iterable[str] = DEFAULT_APPROVER_ROLES,
    ):
        self._default_allow = default_allow
        self._fallback_approver_roles = tuple(fallback_approver_roles)
        self._policies = self._snapshot(policies)

    @classmethod
    def from_settings(cls, settings: PolicySettings) -> "PolicyEngine":
        """Build an engine from settings, loading the policy file when one is configured."""
        policies = load_policy_file(settings.policy_file) if settings.policy_file else []
        return cls(
            policies,
            default_allow=settings.default_allow,
            fallback_approver_roles=settings.fallback_approver_roles,
        )

    @staticmethod
    def _snapshot(policies: Iterable[Policy]) -> tuple[Policy, ...]:
        enabled = [policy for policy in policies if policy.enabled]
        # sorted() is stable with reverse=True, equal priorities keep load order
        return tuple(sorted(enabled, key=lambda policy: policy.priority, reverse=True))

    @property
    def policies(self) -> tuple[Policy, ...]:
        """Return the current snapshot in evaluation order."""
        return self._policies

    @property
    def default_allow(self) -> bool:
        return self._default_allow

    def reload(self, policies: Iterable[Policy]) -> None:
        """Swap in a new policy snapshot."""
        snapshot = self._snapshot(policies)
        self._policies = snapshot
        logger.info("Policy snapshot reloaded with %d enabled policies", len(snapshot))

    def policies_for_context(self, ctx: AuthorizationContext, policy_type: PolicyType | str) -> list[Policy]:
        """Return the policies of ``policy_type`` that apply to ``ctx``, highest priority first."""
        snapshot = self._policies
        ctx_scope = ctx.scope
        return [
            policy
            for policy in snapshot
            if policy.tenant_id == ctx.tenant_id
            and policy.type == policy_type
            and matches_scope(ctx_scope, policy.scope, ctx.user_id)
        ]

    def is_allowed(
        self,
        ctx: AuthorizationContext,
        policy_type: PolicyType | str,
        action: str,
        resource: Resource | None = None,
    ) -> bool:
        """
        Decide whether ``ctx`` may perform ``action``.

        Parameters
        ----------
        ctx : AuthorizationContext
            The caller.
        policy_type : PolicyType | str
            Policy type governing the action.
        action : str
            Action name, see ``PolicyAction``.
        resource : Mapping, optional
            Action target, e.g. ``{"model_id": "m1"}`` or ``{"member_count": 3}``.

        Returns
        -------
        bool
            The first definite rule decision in priority order. Without any
            matching policy the configured default applies; when policies
            match but none decides the action is denied.
        """
        matched = self.policies_for_context(ctx, policy_type)
        if not matched:
            logger.debug(
                "No %s policy matched tenant %s, default_allow=%s", policy_type, ctx.tenant_id, self._default_allow
            )
            return self._default_allow

        resource = resource or {}
        for policy in matched:
            decision = policy.rules.evaluate(action, resource)
            if decision is not None:
                logger.debug("Policy %s decided %s.%s -> %s", policy.id, policy_type, action, decision)
                return decision
        return False

    def ensure_allowed(
        self,
        ctx: AuthorizationContext,
        policy_type: PolicyType | str,
        action: str,
        resource: Resource | None = None,
    ) -> None:
        """Raise ``AuthorizationDeniedError`` when ``is_allowed`` is false."""
        if not self.is_allowed(ctx, policy_type, action, resource):
            raise AuthorizationDeniedError(f"Not allowed: {policy_type}.{action}")

    def _matched_tool_policies(self, ctx: AuthorizationContext) -> list[ToolPolicy]:
        return [policy for policy in self.policies_for_context(ctx, PolicyType.TOOL) if isinstance(policy, ToolPolicy)]

    def requires_approval(self, ctx: AuthorizationContext, tool_name: str, risk_level: str | None = None) -> bool:
        """Return whether executing ``tool_name`` needs a human approval."""
        if any(policy.rules.require_approval for policy in self._matched_tool_policies(ctx)):
            return True
        return risk_level == "high"

    def get_approver_roles(self, ctx: AuthorizationContext, tool_name: str) -> list[str]:
        """Return the roles allowed to approve ``tool_name`` for ``ctx``."""
        roles: dict[str, None] = {}
        for policy in self._matched_tool_policies(ctx):
            roles.update(dict.fromkeys(policy.rules.approver_roles))
        if not roles:
            return list(self._fallback_approver_roles)
        return list(roles)
