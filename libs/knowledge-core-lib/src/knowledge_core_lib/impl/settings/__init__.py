"""Settings package exports for knowledge_core_lib."""

from .logging_settings import LoggingSettings
from .mlflow_settings import MlflowSettings
from .policy_settings import PolicySettings

__all__ = [
    "LoggingSettings",
    "MlflowSettings",
    "PolicySettings",
]
