"""Chat membership permissions."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from knowledge_core_lib.auth_context import AuthorizationContext


class ChatMemberRole(StrEnum):
    """Role of a user inside one chat."""

    OWNER = "owner"
    MEMBER = "member"
    VIEWER = "viewer"


class ChatSettings(BaseModel):
    """Per-chat settings relevant to authorization."""

    allow_multi_user: bool = False
    max_members: int | None = None
    allow_private_messages: bool = False
    default_visibility: str = "public"


class Chat(BaseModel):
    """Chat metadata needed for permission checks."""

    id: str
    tenant_id: str
    owner_id: str
    title: str = ""
    settings: ChatSettings = Field(default_factory=ChatSettings)


class ChatMemberPermissions(BaseModel):
    """Explicit permission flags of a member; ``None`` means "use the default"."""

    can_send_messages: bool | None = None
    can_send_private_messages: bool | None = None
    can_invite_members: bool | None = None
    can_remove_members: bool | None = None
    can_change_settings: bool | None = None
    can_approve_tools: bool | None = None
    can_delete_messages: bool | None = None


class ChatMember(BaseModel):
    """Membership of a user in a chat."""

    chat_id: str
    user_id: str
    role: ChatMemberRole = ChatMemberRole.MEMBER
    permissions: ChatMemberPermissions = Field(default_factory=ChatMemberPermissions)


def tenant_owner_id(tenant_id: str) -> str:
    """Return the synthetic user id used when the tenant itself acts."""
    return f"tenant_{tenant_id}"


def is_tenant_owner(user_id: str | None, tenant_id: str) -> bool:
    """Return whether ``user_id`` is the synthetic tenant owner id."""
    return bool(user_id) and user_id == tenant_owner_id(tenant_id)


def is_member(members: list[ChatMember], user_id: str) -> bool:
    """Return whether ``user_id`` belongs to the chat."""
    return any(member.user_id == user_id for member in members)


def is_owner(chat: Chat, user_id: str) -> bool:
    """Return whether ``user_id`` owns the chat."""
    return chat.owner_id == user_id


def _find_member(members: list[ChatMember], user_id: str) -> ChatMember | None:
    for member in members:
        if member.user_id == user_id:
            return member
    return None


def _tenant_owns_chat(chat: Chat, ctx: AuthorizationContext) -> bool:
    effective_user_id = ctx.user_id or tenant_owner_id(ctx.tenant_id)
    return is_tenant_owner(ctx.user_id, ctx.tenant_id) and is_owner(chat, effective_user_id)


def can_send_messages(chat: Chat, members: list[ChatMember], ctx: AuthorizationContext) -> bool:
    """Members may send messages unless their permissions say otherwise."""
    if _tenant_owns_chat(chat, ctx):
        return True
    if not ctx.user_id:
        return False
    member = _find_member(members, ctx.user_id)
    if member is None:
        return False
    return _flag(member.permissions.can_send_messages, True)


def can_send_private_messages(chat: Chat, members: list[ChatMember], ctx: AuthorizationContext) -> bool:
    """Private messages additionally need to be enabled on the chat."""
    if _tenant_owns_chat(chat, ctx):
        return True
    if not ctx.user_id or not chat.settings.allow_private_messages:
        return False
    member = _find_member(members, ctx.user_id)
    if member is None:
        return False
    return _flag(member.permissions.can_send_private_messages, True)


def can_invite_members(chat: Chat, members: list[ChatMember], ctx: AuthorizationContext) -> bool:
    if _tenant_owns_chat(chat, ctx):
        return True
    if not ctx.user_id:
        return False
    member = _find_member(members, ctx.user_id)
    if member is None:
        return False
    if member.role == ChatMemberRole.OWNER:
        return True
    return _flag(member.permissions.can_invite_members, False)


def can_approve_tools(chat: Chat, members: list[ChatMember], ctx: AuthorizationContext) -> bool:
    if _tenant_owns_chat(chat, ctx):
        return True
    if not ctx.user_id:
        return False
    member = _find_member(members, ctx.user_id)
    if member is None:
        return False
    if member.role == ChatMemberRole.OWNER:
        return True
    return _flag(member.permissions.can_approve_tools, False)


def can_view_chat(chat: Chat, members: list[ChatMember], ctx: AuthorizationContext) -> bool:
    if _tenant_owns_chat(chat, ctx):
        return True
    if not ctx.user_id:
        return False
    return is_member(members, ctx.user_id)


def can_delete_chat(chat: Chat, members: list[ChatMember], ctx: AuthorizationContext) -> bool:
    if _tenant_owns_chat(chat, ctx):
        return True
    if not ctx.user_id:
        return False
    member = _find_member(members, ctx.user_id)
    if member is None:
        return False
    if member.role == ChatMemberRole.OWNER:
        return True
    return _flag(member.permissions.can_remove_members, False)


def default_permissions(role: ChatMemberRole) -> ChatMemberPermissions:
    """Return the permission flags granted to a new member with ``role``."""
    if role == ChatMemberRole.OWNER:
        return ChatMemberPermissions(**{name: True for name in _PERMISSION_FIELDS})
    if role == ChatMemberRole.MEMBER:
        granted = {"can_send_messages", "can_send_private_messages"}
        return ChatMemberPermissions(**{name: name in granted for name in _PERMISSION_FIELDS})
    return ChatMemberPermissions(**{name: False for name in _PERMISSION_FIELDS})


def _flag(value: Any, default: bool) -> bool:
    return default if value is None else bool(value)


_PERMISSION_FIELDS = tuple(ChatMemberPermissions.model_fields)
