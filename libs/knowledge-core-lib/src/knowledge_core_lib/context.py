"""Request-scoped tenant and user identifiers."""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_tenant_id_ctx_var: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)
_user_id_ctx_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


def get_tenant_id() -> Optional[str]:
    """Get the tenant of the current request."""
    return _tenant_id_ctx_var.get()


def set_tenant_id(tenant_id: str) -> None:
    _tenant_id_ctx_var.set(tenant_id)


def clear_tenant_id() -> None:
    _tenant_id_ctx_var.set(None)


def get_user_id() -> Optional[str]:
    """Get the user of the current request."""
    return _user_id_ctx_var.get()


def set_user_id(user_id: Optional[str]) -> None:
    _user_id_ctx_var.set(user_id)


def clear_user_id() -> None:
    _user_id_ctx_var.set(None)


@contextmanager
def request_context(tenant_id: str, user_id: Optional[str] = None) -> Iterator[None]:
    """
    Bind tenant and user for the duration of a block.

    The previous values are restored on exit, so nested blocks and
    concurrent tasks each see their own identifiers.
    """
    tenant_token = _tenant_id_ctx_var.set(tenant_id)
    user_token = _user_id_ctx_var.set(user_id)
    try:
        yield
    finally:
        _user_id_ctx_var.reset(user_token)
        _tenant_id_ctx_var.reset(tenant_token)
