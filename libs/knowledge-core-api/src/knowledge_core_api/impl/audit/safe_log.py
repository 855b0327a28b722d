"""Best-effort audit logging."""

import logging

from knowledge_core_api.models.audit import AuditEvent
from knowledge_core_api.ports.audit_sink import AuditSink

logger = logging.getLogger(__name__)


async def safe_log(sink: AuditSink, event: AuditEvent) -> None:
    """Record ``event``; a failing sink is logged locally and never fails the caller."""
    try:
        await sink.log(event)
    except Exception:
        logger.warning("Audit logging failed for %s on %s", event.action, event.resource_type, exc_info=True)
