"""Translate retrieval filters into an index-neutral filter expression."""

from knowledge_core_api.models.rag import AnyOf, FilterExpression, RagFilters

DEPARTMENT_KEY = "access_scope.department"
SUBDEPARTMENT_KEY = "access_scope.subdepartment"
TAGS_KEY = "access_scope.tags"
DOCUMENT_ID_KEY = "metadata.document_id"
DOCUMENT_VERSION_ID_KEY = "metadata.document_version_id"

_FILTER_KEYS = (
    ("departments", DEPARTMENT_KEY),
    ("subdepartments", SUBDEPARTMENT_KEY),
    ("tags", TAGS_KEY),
    ("document_ids", DOCUMENT_ID_KEY),
    ("document_version_ids", DOCUMENT_VERSION_ID_KEY),
)


def build_filter_expression(filters: RagFilters) -> FilterExpression:
    """Turn every non-empty filter field into an "any of" condition on the stored payload."""
    conditions = []
    for field_name, key in _FILTER_KEYS:
        values = getattr(filters, field_name)
        if values:
            conditions.append(AnyOf(key=key, values=tuple(dict.fromkeys(values))))
    return FilterExpression(must=tuple(conditions))
