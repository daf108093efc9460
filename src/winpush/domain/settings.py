"""
Deployment settings domain model.

This module defines the settings that control staging locations, exit-code
policy, timeouts and fan-out for the entire application.
"""

import logging
from pathlib import PureWindowsPath
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from winpush.domain.models import DEFAULT_ACCEPTED_EXIT_CODES

logger = logging.getLogger(__name__)


class WinRMSettings(BaseModel):
    """
    WinRM transport settings for remote execution.

    Allows tuning based on environment, network, and hardware performance.
    """

    port_http: int = Field(default=5985, description="WinRM HTTP listener port", ge=1, le=65535)
    port_https: int = Field(default=5986, description="WinRM HTTPS listener port", ge=1, le=65535)

    connect_timeout: int = Field(
        default=30,
        description="Timeout in seconds for establishing a WinRM session",
        ge=5,
        le=300
    )

    operation_timeout: int = Field(
        default=120,
        description="WinRM operation timeout in seconds (per request, not per install)",
        ge=10,
        le=3600
    )


class ConnectivitySettings(BaseModel):
    """Settings for the reachability precheck."""

    probe_ports: List[int] = Field(
        default_factory=lambda: [5985, 5986, 445, 135],
        description="TCP ports tried in order to decide whether a host is reachable"
    )

    probe_timeout: float = Field(
        default=3.0,
        description="Timeout in seconds for each TCP probe",
        gt=0,
        le=60
    )

    @field_validator('probe_ports')
    @classmethod
    def validate_ports(cls, v: List[int]) -> List[int]:
        """At least one valid port is needed to probe anything."""
        if not v:
            raise ValueError("At least one probe port is required")
        for port in v:
            if port < 1 or port > 65535:
                raise ValueError("Probe ports must be between 1 and 65535")
        return v


class DeploySettings(BaseModel):
    """
    Comprehensive deployment settings for the application.

    Values here are defaults; a DeploymentRequest may override the
    accepted exit codes and parallelism per invocation.
    """

    model_config = ConfigDict(extra="ignore")

    staging_directory: str = Field(
        default=r"C:\Windows\Temp\WinPushStaging",
        description="Fixed staging directory used on every target"
    )

    msi_log_directory: str = Field(
        default=r"C:\Windows\Temp",
        description="Directory on the target receiving verbose msiexec logs"
    )

    download_directory: Optional[str] = Field(
        None,
        description="Local directory for downloaded installers (system temp when unset)"
    )

    accepted_exit_codes: FrozenSet[int] = Field(
        default=DEFAULT_ACCEPTED_EXIT_CODES,
        description="Installer exit codes treated as success"
    )

    reboot_timeout: int = Field(
        default=30,
        description="Seconds allowed for a target to accept the restart command",
        ge=1,
        le=600
    )

    max_parallel_targets: int = Field(
        default=1,
        description="Targets processed concurrently (1 = strictly sequential)",
        ge=1,
        le=20
    )

    winrm: WinRMSettings = Field(default_factory=WinRMSettings)
    connectivity: ConnectivitySettings = Field(default_factory=ConnectivitySettings)

    @field_validator('staging_directory')
    @classmethod
    def validate_staging_directory(cls, v: str) -> str:
        """Staging directory must be an absolute path with a drive."""
        path = PureWindowsPath(v)
        if not path.drive and not v.startswith("/"):
            raise ValueError("Staging directory must be an absolute path")
        if len(path.parts) < 2:
            raise ValueError("Staging directory cannot be a drive root")
        return v

    @field_validator('accepted_exit_codes')
    @classmethod
    def validate_accepted_exit_codes(cls, v: FrozenSet[int]) -> FrozenSet[int]:
        """An empty accepted set would fail every target."""
        if not v:
            raise ValueError("At least one accepted exit code is required")
        if 0 not in v:
            logger.warning("Exit code 0 is not accepted - successful installs will be reported as failures")
        return v

    @property
    def staging_share(self) -> str:
        """Administrative share name for the staging drive (e.g. 'C$')."""
        drive = PureWindowsPath(self.staging_directory).drive or "C:"
        return f"{drive.rstrip(':')}$"

    @property
    def staging_relative(self) -> PureWindowsPath:
        """Staging directory relative to its drive root."""
        path = PureWindowsPath(self.staging_directory)
        return PureWindowsPath(*path.parts[1:])
