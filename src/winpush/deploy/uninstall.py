"""
Uninstall orchestration service.

Same per-target workflow as deployment without staging: reachability
precheck, execution of a normalized uninstall command, validation,
optional reboot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Optional, Sequence

from winpush.deploy.arguments import UninstallCommand
from winpush.deploy.executor import CommandExecutor
from winpush.deploy.orchestrator import TargetRunner, make_target, transition
from winpush.deploy.validator import RebootRequester, accepted_codes, validate
from winpush.domain.credential import Credential
from winpush.domain.errors import (
    ExecutionFailure,
    PreconditionError,
    TargetUnreachable,
    UnsupportedUninstallCommand,
)
from winpush.domain.inventory import InstalledApplication
from winpush.domain.models import (
    DeploymentResult,
    DeploymentTarget,
    ExecutionOutcome,
    TargetState,
)
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.connectivity import ConnectivityProbe, NetworkProbe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UninstallTarget:
    """A host paired with the uninstall command to run on it."""
    host: str
    command: str

    @classmethod
    def from_application(cls, app: InstalledApplication) -> UninstallTarget:
        """
        Build from an inventory record, preferring QuietUninstallString.

        Raises:
            UnsupportedUninstallCommand: The record has no uninstall command
        """
        if not app.uninstall_command:
            raise UnsupportedUninstallCommand("")
        return cls(host=app.computer, command=app.uninstall_command)


@dataclass(frozen=True)
class UninstallRequest:
    """
    One uninstall invocation.

    Either entries (host and command already paired, e.g. from an
    inventory query) or targets plus one shared command, or both.
    """
    entries: Sequence[UninstallTarget] = ()
    targets: Sequence[str] = ()
    command: Optional[str] = None
    credential: Optional[Credential] = None
    reboot: bool = False
    accepted_exit_codes: Optional[AbstractSet[int]] = None
    max_parallel: Optional[int] = None

    def expand(self) -> list[UninstallTarget]:
        """All (host, command) pairs in processing order."""
        if self.targets and not self.command:
            raise PreconditionError("An uninstall command is required when targets are given")
        return [*self.entries, *(UninstallTarget(host, self.command) for host in self.targets)]


class UninstallService:
    """High-level uninstall service."""

    def __init__(
        self,
        settings: Optional[DeploySettings] = None,
        executor: Optional[CommandExecutor] = None,
        probe: Optional[ConnectivityProbe] = None,
        rebooter: Optional[RebootRequester] = None,
    ):
        self.settings = settings or DeploySettings()
        self.executor = executor or CommandExecutor(self.settings)
        self.probe = probe or NetworkProbe(self.settings.connectivity)
        self.rebooter = rebooter or RebootRequester(self.settings)
        self.runner = TargetRunner()

    def uninstall(self, request: UninstallRequest) -> DeploymentResult:
        """
        Run uninstall commands on every target.

        Every command is parsed before any target is touched.

        Raises:
            PreconditionError: A command has an unsupported shape
        """
        entries = request.expand()
        commands = [UninstallCommand.parse(entry.command) for entry in entries]
        accepted = accepted_codes(request.accepted_exit_codes, self.settings.accepted_exit_codes)
        max_parallel = request.max_parallel or self.settings.max_parallel_targets

        logger.info("Uninstalling on %d target(s)", len(entries))
        result = self.runner.run(
            list(zip(entries, commands)),
            lambda pair: make_target(pair[0].host),
            lambda target, pair: self._uninstall_target(target, pair[1], request, accepted),
            max_parallel,
        )
        logger.info("Uninstall finished: %d succeeded, %d failed", result.succeeded, result.failed)
        return result

    def _uninstall_target(
        self,
        target: DeploymentTarget,
        command: UninstallCommand,
        request: UninstallRequest,
        accepted: frozenset,
    ) -> ExecutionOutcome:
        state = TargetState.PENDING
        exit_code = None

        try:
            state = transition(target, state, TargetState.PRECHECK)
            if not target.is_local and not self.probe.can_reach(target.host):
                raise TargetUnreachable(target.host, "host is not reachable")

            state = transition(target, state, TargetState.EXECUTING)
            exit_code = self.executor.execute_uninstall(target, command, request.credential)

            state = transition(target, state, TargetState.VALIDATED)
            if not validate(exit_code, accepted):
                state = transition(target, state, TargetState.FAILED)
                failure = ExecutionFailure(target.host, exit_code)
                logger.warning("%s", failure)
                return ExecutionOutcome(target.host, exit_code, False, error=str(failure))

            rebooted = False
            if request.reboot:
                rebooted = self.rebooter.request(target, request.credential)
            state = transition(target, state, TargetState.SUCCEEDED)
            logger.info("%s: uninstall succeeded (exit code %d)", target.host, exit_code)
            return ExecutionOutcome(target.host, exit_code, True, rebooted=rebooted)

        except TargetUnreachable as e:
            state = transition(target, state, TargetState.FAILED)
            logger.warning("%s", e)
            return ExecutionOutcome.not_executed(target.host, str(e))

        except Exception as e:  # pylint: disable=broad-except
            logger.exception("%s: failed during %s", target.host, state.value)
            state = transition(target, state, TargetState.FAILED)
            return ExecutionOutcome(target.host, exit_code, False, error=str(e))

        finally:
            transition(target, state, TargetState.DONE)
