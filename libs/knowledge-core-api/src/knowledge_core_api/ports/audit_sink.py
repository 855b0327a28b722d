"""Base interface for audit logging."""

from abc import ABC, abstractmethod

from knowledge_core_api.models.audit import AuditEvent


class AuditSink(ABC):
    """Fire-and-forget recorder of audit events."""

    @abstractmethod
    async def log(self, event: AuditEvent) -> None:
        """Record ``event``."""
