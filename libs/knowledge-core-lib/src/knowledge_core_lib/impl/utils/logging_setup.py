"""Root logging configuration."""

import logging

from knowledge_core_lib.context import get_tenant_id
from knowledge_core_lib.impl.settings.logging_settings import LoggingSettings


class TenantContextFilter(logging.Filter):
    """Stamp every record with the tenant id of the current request context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.tenant_id = get_tenant_id() or "-"
        return True


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install a single root handler carrying the tenant id filter."""
    settings = settings or LoggingSettings()
    handler = logging.StreamHandler()
    handler.addFilter(TenantContextFilter())
    handler.setFormatter(logging.Formatter(settings.format))
    logging.basicConfig(level=settings.level, handlers=[handler], force=True)
