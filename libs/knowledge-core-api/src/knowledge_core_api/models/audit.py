"""Audit event model."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from knowledge_core_api.models.documents import utc_now


class AuditEvent(BaseModel):
    """One policy-gated decision or ingestion/retrieval action."""

    tenant_id: str
    user_id: str | None = None
    action: str
    resource_type: str
    resource_id: str | None = None
    allowed: bool = True
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)
