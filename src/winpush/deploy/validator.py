"""
Outcome validation and post-install reboot.
"""

from __future__ import annotations

import logging
import subprocess
from typing import AbstractSet, Callable, Optional

from winpush.domain.credential import Credential
from winpush.domain.errors import UnsupportedArgument
from winpush.domain.models import DeploymentTarget
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.psremote.client import ConnectionConfig, PSRemoteClient

logger = logging.getLogger(__name__)


def validate(exit_code: Optional[int], accepted: AbstractSet[int]) -> bool:
    """True when the command ran and its exit code is accepted."""
    return exit_code is not None and exit_code in accepted


def accepted_codes(requested: Optional[AbstractSet[int]], default: AbstractSet[int]) -> frozenset:
    """
    The accepted exit codes for one invocation.

    Raises:
        UnsupportedArgument: If an explicit override is empty
    """
    if requested is None:
        return frozenset(default)
    if not requested:
        raise UnsupportedArgument("At least one accepted exit code is required")
    return frozenset(requested)


class RebootRequester:
    """
    Issues an immediate restart to a target.

    Only the acceptance of the restart command is awaited, bounded by
    reboot_timeout. Failures are reported, never raised.
    """

    def __init__(
        self,
        settings: Optional[DeploySettings] = None,
        client_factory: Optional[Callable[[ConnectionConfig], PSRemoteClient]] = None,
    ):
        self.settings = settings or DeploySettings()
        self._client_factory = client_factory or PSRemoteClient

    def request(self, target: DeploymentTarget, credential: Optional[Credential] = None) -> bool:
        """Returns True when the target accepted the restart command."""
        timeout = self.settings.reboot_timeout
        logger.info("%s: requesting reboot", target.host)

        if target.is_local:
            try:
                result = subprocess.run(
                    ["shutdown.exe", "/r", "/t", "0"],
                    capture_output=True,
                    text=True,
                    timeout=timeout,
                    check=False,
                )
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.warning("%s: reboot request failed: %s", target.host, e)
                return False
            accepted, detail = result.returncode == 0, result.stderr.strip()
        else:
            config = ConnectionConfig.for_target(target.host, credential, self.settings.winrm)
            config.operation_timeout_sec = timeout
            client = self._client_factory(config)
            try:
                result = client.run_cmd("shutdown", ["/r", "/t", "0"])
            finally:
                client.close()
            accepted, detail = result.success, result.error or result.stderr.strip()

        if not accepted:
            logger.warning("%s: reboot request failed: %s", target.host, detail)
        return accepted
