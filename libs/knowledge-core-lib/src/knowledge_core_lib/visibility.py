"""Message visibility rules and message factories."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field

from knowledge_core_lib.access_scope import AccessScope, compute_access_scope
from knowledge_core_lib.auth_context import AuthorizationContext


class MessageVisibility(StrEnum):
    """Who may see a message inside a chat."""

    PUBLIC = "public"
    PRIVATE = "private"


class MessageRole(StrEnum):
    """Author role of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """A chat message together with its visibility settings and access scope."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    chat_id: str
    author_id: str
    parent_id: str | None = None
    role: MessageRole = MessageRole.USER
    content: str
    visibility: MessageVisibility = MessageVisibility.PUBLIC
    visibility_users: frozenset[str] = Field(default_factory=frozenset)
    visibility_roles: frozenset[str] = Field(default_factory=frozenset)
    access_scope: AccessScope = Field(default_factory=AccessScope)
    model_used: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None


def can_view_message(message: Message, ctx: AuthorizationContext) -> bool:
    """Return whether the caller may see ``message``.

    Public messages are visible to every chat member. Private messages are
    visible to the author, to explicitly listed users and to holders of a
    listed role.
    """
    if message.visibility == MessageVisibility.PUBLIC:
        return True

    if ctx.user_id is not None and ctx.user_id == message.author_id:
        return True

    if ctx.user_id is not None and ctx.user_id in message.visibility_users:
        return True

    return bool(message.visibility_roles & ctx.roles)


def filter_visible_messages(messages: Iterable[Message], ctx: AuthorizationContext) -> list[Message]:
    """Keep the messages the caller may see, preserving their order."""
    return [message for message in messages if can_view_message(message, ctx)]


def create_public_message(
    chat_id: str,
    author_id: str,
    content: str,
    author_context: AuthorizationContext,
    role: MessageRole = MessageRole.USER,
) -> Message:
    """Build a public message whose access scope is taken from the author."""
    return Message(
        chat_id=chat_id,
        author_id=author_id,
        role=role,
        content=content,
        visibility=MessageVisibility.PUBLIC,
        access_scope=compute_access_scope(author_context),
    )


def create_private_message(
    chat_id: str,
    author_id: str,
    content: str,
    author_context: AuthorizationContext,
    visible_to_users: Iterable[str] = (),
    visible_to_roles: Iterable[str] = (),
    role: MessageRole = MessageRole.USER,
) -> Message:
    """Build a private message visible to the author plus the given users and roles."""
    return Message(
        chat_id=chat_id,
        author_id=author_id,
        role=role,
        content=content,
        visibility=MessageVisibility.PRIVATE,
        visibility_users=frozenset(visible_to_users),
        visibility_roles=frozenset(visible_to_roles),
        access_scope=compute_access_scope(author_context),
    )
