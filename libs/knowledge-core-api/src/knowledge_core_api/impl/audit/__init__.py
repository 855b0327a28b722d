"""Audit sink implementations and helpers."""

from .logging_audit_sink import LoggingAuditSink
from .safe_log import safe_log

__all__ = ["LoggingAuditSink", "safe_log"]
