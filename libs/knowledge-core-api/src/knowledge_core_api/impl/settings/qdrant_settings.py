"""Settings for the Qdrant vector index."""

from __future__ import annotations

from string import Formatter
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _template_fields(template: str) -> set[str]:
    fields: set[str] = set()
    for _, field_name, _, _ in Formatter().parse(template):
        if field_name:
            fields.add(field_name)
    return fields


class QdrantSettings(BaseSettings):
    """Connection and collection layout of the Qdrant index."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_", case_sensitive=False)

    url: str = Field(default="http://localhost:6333")
    api_key: Optional[str] = Field(default=None)
    collection_template: str = Field(default="tenant_{tenant_id}")
    vector_size: int = Field(default=768, gt=0)
    timeout_seconds: int = Field(default=30, gt=0)

    @field_validator("collection_template")
    @classmethod
    def _validate_collection_template(cls, template: str) -> str:
        if _template_fields(template) != {"tenant_id"}:
            raise ValueError("QDRANT_COLLECTION_TEMPLATE must contain only {tenant_id}.")
        return template

    def collection_for_tenant(self, tenant_id: str) -> str:
        """Build the collection name holding ``tenant_id``'s partition."""
        return self.collection_template.format(tenant_id=tenant_id)
