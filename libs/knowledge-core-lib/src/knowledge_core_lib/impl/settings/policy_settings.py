"""Settings module for policy evaluation."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class PolicySettings(BaseSettings):
    """Settings controlling how the policy engine is built and how it decides without matches."""

    class Config:
        """Configure environment variable prefix and behaviour."""

        env_prefix = "POLICY_"
        case_sensitive = False

    default_allow: bool = Field(
        default=True,
        description="Decision returned when no policy matches the caller. Set to false for a default-deny posture.",
    )
    policy_file: Optional[str] = Field(
        default=None,
        description="Optional JSON file holding the policy snapshot.",
    )
    fallback_approver_roles: list[str] = Field(
        default_factory=lambda: ["chat_owner", "dept_admin", "tenant_admin"],
        description="Approver roles used when no matching tool policy names any.",
    )
