"""Settings module for the local file store."""

from pydantic import Field
from pydantic_settings import BaseSettings


class FileStoreSettings(BaseSettings):
    """Location of raw uploaded documents."""

    class Config:
        """Configure environment variable prefix and behaviour."""

        env_prefix = "FILE_STORE_"
        case_sensitive = False

    base_path: str = Field(default="./storage")
