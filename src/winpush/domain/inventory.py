"""
Installed application domain model.

Records produced by the inventory query. Field aliases match the
PascalCase property names emitted by the registry query script.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InstalledApplication(BaseModel):
    """An entry from a target's Uninstall registry hive."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    computer: str = Field(..., description="Host the application was found on", alias="Computer")
    name: str = Field(..., description="Display name", alias="Name")
    version: Optional[str] = Field(None, description="Display version", alias="Version")
    guid: Optional[str] = Field(None, description="Product code or registry key name", alias="GUID")
    install_location: Optional[str] = Field(None, description="Install directory", alias="InstallLocation")
    uninstall_string: Optional[str] = Field(None, description="Interactive uninstall command", alias="UninstallString")
    quiet_uninstall_string: Optional[str] = Field(
        None,
        description="Silent uninstall command, when the vendor provides one",
        alias="QuietUninstallString"
    )

    @field_validator('version', 'guid', 'install_location', 'uninstall_string', 'quiet_uninstall_string', mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Registry values are often empty strings rather than absent."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def uninstall_command(self) -> Optional[str]:
        """Preferred uninstall command; the quiet variant implies silent support."""
        return self.quiet_uninstall_string or self.uninstall_string
