"""Settings for tracing retrieval calls with MLflow."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class MlflowSettings(BaseSettings):
    """Tracking server, experiment and the switch that turns tracing on."""

    class Config:
        """Config class for reading fields from env."""

        env_prefix = "MLFLOW_"
        case_sensitive = False

    tracing_enabled: bool = Field(default=False, description="Wrap the retrieval engine in a TracedRunnable.")
    tracking_uri: str = Field(default="http://mlflow:5000")
    experiment_name: str = Field(default="knowledge-core")
    api_token: Optional[str] = Field(default=None, description="Bearer token for an authenticated tracking server.")

    @field_validator("tracking_uri")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("MLFLOW_TRACKING_URI must not be empty.")
        return value
