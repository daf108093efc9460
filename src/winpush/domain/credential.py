"""
Credential domain model.

This module defines the Credential domain entity used for admin-share
mounts and WinRM sessions against remote targets.
"""

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class Credential(BaseModel):
    """
    Domain model for Windows credentials.

    Securely handles DOMAIN\\user (or user@domain) and password combinations.
    """

    model_config = ConfigDict(frozen=True)

    username: str = Field(..., description="Windows account name")
    password: SecretStr = Field(..., description="Account password")

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate username is not empty."""
        if not v or not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip()

    def get_password(self) -> str:
        """Get the plain text password."""
        return self.password.get_secret_value()  # pylint: disable=no-member
