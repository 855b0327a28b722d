"""Policy domain models.

Policies form a tagged union keyed by ``type``. Each variant carries only the
rules relevant to its type, and each rules class decides an action through
``evaluate``, returning ``None`` when it has no opinion.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PolicyType(StrEnum):
    """Kinds of action a policy can govern."""

    CHAT = "chat"
    MODEL = "model"
    TOOL = "tool"
    RAG = "rag"
    PLUGIN = "plugin"


class PolicyAction(StrEnum):
    """Actions understood by the built-in rule evaluators."""

    CREATE = "create"
    LIST = "list"
    GET = "get"
    ADD_MEMBER = "add_member"
    SEND_PRIVATE_MESSAGE = "send_private_message"
    USE = "use"
    EXECUTE = "execute"
    SEARCH = "search"


Resource = Mapping[str, Any]


def _resource_value(resource: Resource, key: str) -> Any:
    """Read ``key`` from a resource given in snake_case or camelCase, e.g. ``model_id`` or ``modelId``."""
    value = resource.get(key)
    return resource.get(to_camel(key)) if value is None else value


class _PolicyModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class PolicyScope(_PolicyModel):
    """Who a policy applies to. Empty fields impose no restriction."""

    roles: frozenset[str] = Field(default_factory=frozenset)
    tags: frozenset[str] = Field(default_factory=frozenset)
    departments: frozenset[str] = Field(default_factory=frozenset)
    subdepartments: frozenset[str] = Field(default_factory=frozenset)
    user_ids: frozenset[str] = Field(default_factory=frozenset)


def _decide_by_lists(name: Any, blocked: list[str], allowed: list[str]) -> bool | None:
    if not name:
        return None
    if name in blocked:
        return False
    if allowed:
        return name in allowed
    return None


class ChatRules(_PolicyModel):
    max_members: int | None = None
    allow_private_messages: bool | None = None

    def evaluate(self, action: str, resource: Resource) -> bool | None:
        if action in (PolicyAction.CREATE, PolicyAction.LIST, PolicyAction.GET):
            return True
        if action == PolicyAction.ADD_MEMBER:
            member_count = _resource_value(resource, "member_count")
            if member_count is not None and self.max_members and member_count >= self.max_members:
                return False
            return None
        if action == PolicyAction.SEND_PRIVATE_MESSAGE:
            return True if self.allow_private_messages is None else self.allow_private_messages
        return None


class ModelRules(_PolicyModel):
    allowed_models: list[str] = Field(default_factory=list)
    blocked_models: list[str] = Field(default_factory=list)
    max_tokens: int | None = None

    def evaluate(self, action: str, resource: Resource) -> bool | None:
        if action != PolicyAction.USE:
            return None
        return _decide_by_lists(_resource_value(resource, "model_id"), self.blocked_models, self.allowed_models)


class ToolRules(_PolicyModel):
    allowed_tools: list[str] = Field(default_factory=list)
    blocked_tools: list[str] = Field(default_factory=list)
    require_approval: bool = False
    approver_roles: list[str] = Field(default_factory=list)

    def evaluate(self, action: str, resource: Resource) -> bool | None:
        if action != PolicyAction.EXECUTE:
            return None
        return _decide_by_lists(_resource_value(resource, "tool_name"), self.blocked_tools, self.allowed_tools)


class RagRules(_PolicyModel):
    """RAG restrictions are enforced through scope filters, so search itself is always allowed."""

    allowed_departments: list[str] = Field(default_factory=list)
    allowed_tags: list[str] = Field(default_factory=list)
    max_results: int | None = None

    def evaluate(self, action: str, resource: Resource) -> bool | None:
        if action == PolicyAction.SEARCH:
            return True
        return None


class PluginRules(_PolicyModel):
    allowed_plugins: list[str] = Field(default_factory=list)
    blocked_plugins: list[str] = Field(default_factory=list)

    def evaluate(self, action: str, resource: Resource) -> bool | None:
        if action != PolicyAction.USE:
            return None
        return _decide_by_lists(_resource_value(resource, "plugin_id"), self.blocked_plugins, self.allowed_plugins)


class _PolicyBase(_PolicyModel):
    id: str
    tenant_id: str
    name: str
    description: str | None = None
    scope: PolicyScope
    priority: int = 0
    enabled: bool = True


class ChatPolicy(_PolicyBase):
    type: Literal["chat"]
    rules: ChatRules = Field(default_factory=ChatRules)


class ModelPolicy(_PolicyBase):
    type: Literal["model"]
    rules: ModelRules = Field(default_factory=ModelRules)


class ToolPolicy(_PolicyBase):
    type: Literal["tool"]
    rules: ToolRules = Field(default_factory=ToolRules)


class RagPolicy(_PolicyBase):
    type: Literal["rag"]
    rules: RagRules = Field(default_factory=RagRules)


class PluginPolicy(_PolicyBase):
    type: Literal["plugin"]
    rules: PluginRules = Field(default_factory=PluginRules)


Policy = Annotated[
    Union[ChatPolicy, ModelPolicy, ToolPolicy, RagPolicy, PluginPolicy],
    Field(discriminator="type"),
]
