"""
Deployment error taxonomy.

Invocation-wide problems derive from PreconditionError and abort a run
before any target is touched. Everything else is per-target and ends up
as a failed ExecutionOutcome rather than escaping the orchestrator.
"""

from __future__ import annotations


class WinPushError(Exception):
    """Base class for all WinPush errors."""


# ============================================================================
# Invocation-wide
# ============================================================================

class PreconditionError(WinPushError):
    """Raised before any target is processed; aborts the whole invocation."""


class UnsupportedInstallerKind(PreconditionError):
    """Installer extension is not one of msi, exe or ps1."""

    def __init__(self, reference: str, extension: str):
        self.reference = reference
        self.extension = extension
        super().__init__(
            f"Unsupported installer type '{extension or '<none>'}' for {reference}. "
            "Supported types: .msi, .exe, .ps1"
        )


class UnsupportedArgument(PreconditionError):
    """Caller supplied arguments the installer kind cannot accept."""


class UnsupportedUninstallCommand(PreconditionError):
    """Uninstall string is neither an msiexec call nor a direct executable."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Unsupported uninstall command: {command!r}")


class InstallerNotFound(PreconditionError):
    """Local installer path does not exist."""


class MissingSourceFolder(PreconditionError):
    """Companion source directory does not exist."""


class DownloadError(PreconditionError):
    """Installer URL could not be downloaded."""


# ============================================================================
# Per-target
# ============================================================================

class TargetError(WinPushError):
    """Failure scoped to a single target."""

    def __init__(self, target: str, message: str):
        self.target = target
        super().__init__(f"{target}: {message}")


class TargetUnreachable(TargetError):
    """Connectivity precheck failed."""


class StagingFailure(TargetError):
    """Copy or mount failure while staging artifacts."""


class RemoteExecutionError(TargetError):
    """Remote command channel could not be used."""


class ExecutionFailure(TargetError):
    """Exit code outside the accepted set."""

    def __init__(self, target: str, exit_code: int):
        self.exit_code = exit_code
        super().__init__(target, f"exit code {exit_code} is not accepted")


# ============================================================================
# Ancillary
# ============================================================================

class InventoryError(WinPushError):
    """Installed-application query failed."""


class ConfigurationError(WinPushError):
    """Settings or credential files could not be loaded."""
