"""Audit sink writing events to a dedicated logger."""

import logging

from knowledge_core_api.models.audit import AuditEvent
from knowledge_core_api.ports.audit_sink import AuditSink

audit_logger = logging.getLogger("knowledge_core_api.audit")


class LoggingAuditSink(AuditSink):
    """Emit one JSON line per event on the ``knowledge_core_api.audit`` logger."""

    def __init__(self, level: int = logging.INFO):
        self._level = level

    async def log(self, event: AuditEvent) -> None:
        audit_logger.log(self._level, event.model_dump_json())
