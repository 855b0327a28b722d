"""Policy models, loading and evaluation."""

from .engine import DEFAULT_APPROVER_ROLES, PolicyEngine, matches_scope
from .loader import load_policies, load_policy_file
from .models import (
    ChatPolicy,
    ChatRules,
    ModelPolicy,
    ModelRules,
    PluginPolicy,
    PluginRules,
    Policy,
    PolicyAction,
    PolicyScope,
    PolicyType,
    RagPolicy,
    RagRules,
    ToolPolicy,
    ToolRules,
)

__all__ = [
    "DEFAULT_APPROVER_ROLES",
    "ChatPolicy",
    "ChatRules",
    "ModelPolicy",
    "ModelRules",
    "PluginPolicy",
    "PluginRules",
    "Policy",
    "PolicyAction",
    "PolicyEngine",
    "PolicyScope",
    "PolicyType",
    "RagPolicy",
    "RagRules",
    "ToolPolicy",
    "ToolRules",
    "load_policies",
    "load_policy_file",
    "matches_scope",
]
