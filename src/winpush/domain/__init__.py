"""
Domain layer package.

Contains pure data models with no I/O dependencies.
"""

from winpush.domain.credential import Credential
from winpush.domain.errors import (
    ConfigurationError,
    DownloadError,
    ExecutionFailure,
    InstallerNotFound,
    InventoryError,
    MissingSourceFolder,
    PreconditionError,
    RemoteExecutionError,
    StagingFailure,
    TargetError,
    TargetUnreachable,
    UnsupportedArgument,
    UnsupportedInstallerKind,
    UnsupportedUninstallCommand,
    WinPushError,
)
from winpush.domain.inventory import InstalledApplication
from winpush.domain.models import (
    DEFAULT_ACCEPTED_EXIT_CODES,
    EXIT_REBOOT_REQUIRED,
    EXIT_SUCCESS,
    DeploymentResult,
    DeploymentTarget,
    ExecutionOutcome,
    InstallerKind,
    InstallerSpec,
    TargetState,
)
from winpush.domain.settings import ConnectivitySettings, DeploySettings, WinRMSettings

__all__ = [
    # Models
    "DEFAULT_ACCEPTED_EXIT_CODES",
    "EXIT_REBOOT_REQUIRED",
    "EXIT_SUCCESS",
    "DeploymentResult",
    "DeploymentTarget",
    "ExecutionOutcome",
    "InstallerKind",
    "InstallerSpec",
    "TargetState",
    "InstalledApplication",
    "Credential",
    # Settings
    "ConnectivitySettings",
    "DeploySettings",
    "WinRMSettings",
    # Errors
    "ConfigurationError",
    "DownloadError",
    "ExecutionFailure",
    "InstallerNotFound",
    "InventoryError",
    "MissingSourceFolder",
    "PreconditionError",
    "RemoteExecutionError",
    "StagingFailure",
    "TargetError",
    "TargetUnreachable",
    "UnsupportedArgument",
    "UnsupportedInstallerKind",
    "UnsupportedUninstallCommand",
    "WinPushError",
]
