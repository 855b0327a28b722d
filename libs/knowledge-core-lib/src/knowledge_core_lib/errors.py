"""Error taxonomy shared by the policy, ingestion and retrieval layers."""


class KnowledgeCoreError(Exception):
    """Base class for all errors raised by the knowledge core."""


class AuthorizationDeniedError(KnowledgeCoreError, PermissionError):
    """Raised when a policy or visibility check rejects the caller. Never retried."""


class InvalidInputError(KnowledgeCoreError, ValueError):
    """Raised for malformed input before any side effect happens."""


class DependencyUnavailableError(KnowledgeCoreError, RuntimeError):
    """Raised when a file-store, embedding, vector-index or repository call fails."""


class NotFoundError(KnowledgeCoreError, LookupError):
    """Raised when a referenced chat, document or version does not exist."""
