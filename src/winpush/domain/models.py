"""
Deployment domain models.

Contains the runtime data structures produced and consumed by the
resolver, stager, executor and orchestrators. All of them are immutable
once created.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator


# Installer exit codes treated as success unless the caller overrides them
EXIT_SUCCESS = 0
EXIT_REBOOT_REQUIRED = 3010
DEFAULT_ACCEPTED_EXIT_CODES = frozenset({EXIT_SUCCESS, EXIT_REBOOT_REQUIRED})


# ============================================================================
# Enumerations
# ============================================================================

class InstallerKind(Enum):
    """Installer families with distinct silent-install semantics."""
    MSI = "msi"
    EXE = "exe"
    PS1 = "ps1"

    @classmethod
    def from_extension(cls, extension: str) -> InstallerKind | None:
        """Map a file extension (with or without dot) to a kind."""
        value = extension.lower().lstrip(".")
        for kind in cls:
            if kind.value == value:
                return kind
        return None


class TargetState(Enum):
    """Per-target processing states."""
    PENDING = "pending"
    PRECHECK = "precheck"
    STAGING = "staging"
    EXECUTING = "executing"
    VALIDATED = "validated"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CLEANUP = "cleanup"
    DONE = "done"


# ============================================================================
# Models
# ============================================================================

@dataclass(frozen=True)
class InstallerSpec:
    """
    Normalized installer command, resolved once per invocation.

    Attributes:
        raw_reference: Path or URL exactly as supplied by the caller
        kind: Installer family derived from the file extension
        resolved_executable: Program to launch on the target
        resolved_arguments: Complete argument string for that program
        staging_file_name: File name inside the staging directory
        sourced_from_url: Whether the installer was downloaded
        local_path: Local copy of the installer on this machine
    """
    raw_reference: str
    kind: InstallerKind
    resolved_executable: str
    resolved_arguments: str
    staging_file_name: str
    sourced_from_url: bool = False
    local_path: Path | None = None

    @property
    def command_line(self) -> str:
        """Executable and arguments as one Windows command line."""
        executable = self.resolved_executable
        if " " in executable and not executable.startswith('"'):
            executable = f'"{executable}"'
        if self.resolved_arguments:
            return f"{executable} {self.resolved_arguments}"
        return executable


@dataclass(frozen=True)
class DeploymentTarget:
    """A machine to deploy to. is_local selects the transport strategy."""
    host: str
    is_local: bool = False


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    Result of processing one target.

    exit_code is None when the command never ran (e.g. unreachable target).
    """
    target: str
    exit_code: int | None
    succeeded: bool
    error: str | None = None
    rebooted: bool = False

    @classmethod
    def not_executed(cls, target: str, error: str) -> ExecutionOutcome:
        """Failure recorded before anything was executed."""
        return cls(target=target, exit_code=None, succeeded=False, error=error)

    def to_record(self) -> dict[str, object]:
        """Externally visible {Computer, Success} record."""
        return {"Computer": self.target, "Success": self.succeeded}


@dataclass(frozen=True)
class DeploymentResult:
    """Ordered, immutable sequence of outcomes, one per input target."""
    outcomes: tuple[ExecutionOutcome, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[ExecutionOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def __getitem__(self, index: int) -> ExecutionOutcome:
        return self.outcomes[index]

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    def records(self) -> list[dict[str, object]]:
        """All outcomes as {Computer, Success} records, in input order."""
        return [outcome.to_record() for outcome in self.outcomes]
