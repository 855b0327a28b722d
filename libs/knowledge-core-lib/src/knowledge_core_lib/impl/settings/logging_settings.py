"""Contains settings for logging."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingSettings(BaseSettings):
    """
    Logging settings.

    Attributes
    ----------
    level : str
        Root log level.
    format : str
        Format string passed to the root handler. ``tenant_id`` is always available.
    """

    class Config:
        """Config class for reading fields from env."""

        env_prefix = "LOG_"
        case_sensitive = False

    level: str = Field(default="INFO")
    format: str = Field(default="%(asctime)s %(levelname)s [%(tenant_id)s] %(name)s: %(message)s")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LEVELS)}.")
        return level
