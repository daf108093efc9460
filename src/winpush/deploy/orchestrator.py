"""
Deployment orchestration service.

Coordinates the per-target deployment workflow:
precheck, staging, execution, validation, optional reboot and cleanup.
A failure on one target is recorded and never stops the others.
"""

from __future__ import annotations

import concurrent.futures
import contextlib
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, Callable, Optional, Sequence, TypeVar

from winpush.deploy.collector import ResultCollector
from winpush.deploy.executor import CommandExecutor
from winpush.deploy.resolver import InstallerResolver
from winpush.deploy.stager import ArtifactStager
from winpush.deploy.validator import RebootRequester, accepted_codes, validate
from winpush.domain.credential import Credential
from winpush.domain.errors import ExecutionFailure, MissingSourceFolder, TargetUnreachable
from winpush.domain.models import (
    DeploymentResult,
    DeploymentTarget,
    ExecutionOutcome,
    InstallerSpec,
    TargetState,
)
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.connectivity import ConnectivityProbe, NetworkProbe
from winpush.infrastructure.psremote.client import is_local_host

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DeploymentRequest:
    """
    One deploy invocation.

    Attributes:
        targets: Host names in processing order (duplicates allowed)
        installer: Local path or http(s) URL of the installer
        arguments: Caller silent-install arguments
        source_directory: Companion files staged together with the installer
        credential: Credential for shares and WinRM (None = current user)
        reboot: Restart targets after a successful install
        accepted_exit_codes: Overrides the configured accepted set
        max_parallel: Overrides the configured fan-out
    """
    targets: Sequence[str]
    installer: str
    arguments: Optional[str] = None
    source_directory: Optional[str] = None
    credential: Optional[Credential] = None
    reboot: bool = False
    accepted_exit_codes: Optional[AbstractSet[int]] = None
    max_parallel: Optional[int] = None


class TargetRunner:
    """
    Runs a per-target worker over all targets and collects outcomes.

    Sequential by default; with max_parallel > 1 targets run on a thread
    pool, except that local targets share one lock because they share one
    staging directory.
    """

    def __init__(self):
        self._local_lock = threading.Lock()

    def run(
        self,
        items: Sequence[T],
        host_of: Callable[[T], DeploymentTarget],
        worker: Callable[[DeploymentTarget, T], ExecutionOutcome],
        max_parallel: int = 1,
    ) -> DeploymentResult:
        collector = ResultCollector(len(items))

        def process(index: int, item: T) -> None:
            target = host_of(item)
            guard = self._local_lock if target.is_local else contextlib.nullcontext()
            with guard:
                collector.record(index, worker(target, item))

        workers = min(max_parallel, len(items))
        if workers <= 1:
            for index, item in enumerate(items):
                process(index, item)
        else:
            logger.info("Processing %d targets with %d parallel workers", len(items), workers)
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [pool.submit(process, index, item) for index, item in enumerate(items)]
                for future in concurrent.futures.as_completed(futures):
                    future.result()

        return collector.freeze()


def transition(target: DeploymentTarget, current: TargetState, new: TargetState) -> TargetState:
    logger.debug("%s: %s -> %s", target.host, current.value, new.value)
    return new


def make_target(host: str) -> DeploymentTarget:
    host = host.strip()
    return DeploymentTarget(host=host, is_local=is_local_host(host))


class DeploymentService:
    """
    High-level deployment service.

    Usage:
        service = DeploymentService(settings)
        result = service.deploy(DeploymentRequest(
            targets=["PC1", "PC2"],
            installer="Setup.msi",
            reboot=True,
        ))
        for record in result.records():
            print(record)
    """

    def __init__(
        self,
        settings: Optional[DeploySettings] = None,
        resolver: Optional[InstallerResolver] = None,
        stager: Optional[ArtifactStager] = None,
        executor: Optional[CommandExecutor] = None,
        probe: Optional[ConnectivityProbe] = None,
        rebooter: Optional[RebootRequester] = None,
    ):
        self.settings = settings or DeploySettings()
        self.resolver = resolver or InstallerResolver(self.settings)
        self.stager = stager or ArtifactStager(self.settings)
        self.executor = executor or CommandExecutor(self.settings)
        self.probe = probe or NetworkProbe(self.settings.connectivity)
        self.rebooter = rebooter or RebootRequester(self.settings)
        self.runner = TargetRunner()

    def deploy(self, request: DeploymentRequest) -> DeploymentResult:
        """
        Deploy an installer to every target.

        Returns:
            One outcome per target, in input order

        Raises:
            PreconditionError: Before any target is touched, when the
                installer or source directory cannot be used
        """
        if request.source_directory and not Path(request.source_directory).is_dir():
            raise MissingSourceFolder(f"Source folder not found: {request.source_directory}")

        accepted = accepted_codes(request.accepted_exit_codes, self.settings.accepted_exit_codes)
        max_parallel = request.max_parallel or self.settings.max_parallel_targets

        try:
            spec = self.resolver.resolve(request.installer, request.arguments)
            logger.info("Deploying %s to %d target(s)", spec.staging_file_name, len(request.targets))

            result = self.runner.run(
                list(request.targets),
                make_target,
                lambda target, _host: self._deploy_target(target, spec, request, accepted),
                max_parallel,
            )
        finally:
            self.resolver.cleanup()

        logger.info("Deployment finished: %d succeeded, %d failed", result.succeeded, result.failed)
        return result

    def _precheck(self, target: DeploymentTarget, credential: Optional[Credential]) -> None:
        if not self.probe.can_reach(target.host):
            raise TargetUnreachable(target.host, "host is not reachable")
        if not self.probe.can_write_admin_share(target.host, self.settings.staging_share, credential):
            raise TargetUnreachable(
                target.host, f"administrative share {self.settings.staging_share} is not writable"
            )

    def _discard(self, target: DeploymentTarget, credential: Optional[Credential]) -> None:
        """Cleanup never lets an exception leave the target."""
        try:
            self.stager.discard(target, credential)
        except Exception:  # pylint: disable=broad-except
            logger.exception("%s: staging cleanup failed", target.host)

    def _deploy_target(
        self,
        target: DeploymentTarget,
        spec: InstallerSpec,
        request: DeploymentRequest,
        accepted: frozenset,
    ) -> ExecutionOutcome:
        state = TargetState.PENDING
        exit_code = None
        staging_started = False
        outcome = None

        try:
            state = transition(target, state, TargetState.PRECHECK)
            if not target.is_local:
                self._precheck(target, request.credential)

            state = transition(target, state, TargetState.STAGING)
            staging_started = True
            staging_path = self.stager.stage(target, spec, request.source_directory, request.credential)

            state = transition(target, state, TargetState.EXECUTING)
            exit_code = self.executor.execute(target, spec, staging_path, request.credential)

            state = transition(target, state, TargetState.VALIDATED)
            if validate(exit_code, accepted):
                rebooted = False
                if request.reboot:
                    rebooted = self.rebooter.request(target, request.credential)
                state = transition(target, state, TargetState.SUCCEEDED)
                logger.info("%s: succeeded (exit code %d)", target.host, exit_code)
                outcome = ExecutionOutcome(target.host, exit_code, True, rebooted=rebooted)
            else:
                state = transition(target, state, TargetState.FAILED)
                failure = ExecutionFailure(target.host, exit_code)
                logger.warning("%s", failure)
                outcome = ExecutionOutcome(target.host, exit_code, False, error=str(failure))

        except TargetUnreachable as e:
            state = transition(target, state, TargetState.FAILED)
            logger.warning("%s", e)
            outcome = ExecutionOutcome.not_executed(target.host, str(e))

        except Exception as e:  # pylint: disable=broad-except
            logger.exception("%s: failed during %s", target.host, state.value)
            state = transition(target, state, TargetState.FAILED)
            outcome = ExecutionOutcome(target.host, exit_code, False, error=str(e))

        finally:
            state = transition(target, state, TargetState.CLEANUP)
            if staging_started and (target.is_local or outcome is None or not outcome.succeeded):
                self._discard(target, request.credential)
            transition(target, state, TargetState.DONE)

        return outcome
