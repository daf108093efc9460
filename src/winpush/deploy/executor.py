"""
Command execution on targets.

Local targets run the command in-process with subprocess; remote targets
run a generated PowerShell script through the WinRM client. Both block
until the installer exits, with no timeout.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, Optional

from winpush.deploy.arguments import UninstallCommand
from winpush.domain.credential import Credential
from winpush.domain.errors import RemoteExecutionError
from winpush.domain.models import DeploymentTarget, InstallerSpec
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.psremote.client import ConnectionConfig, PSRemoteClient
from winpush.infrastructure.psremote.scripts import command_script, staged_install_script

logger = logging.getLogger(__name__)


class CommandExecutor:
    """Runs install and uninstall commands and returns their exit codes."""

    def __init__(
        self,
        settings: Optional[DeploySettings] = None,
        client_factory: Optional[Callable[[ConnectionConfig], PSRemoteClient]] = None,
    ):
        self.settings = settings or DeploySettings()
        self._client_factory = client_factory or PSRemoteClient

    def execute(
        self,
        target: DeploymentTarget,
        spec: InstallerSpec,
        staging_path: str,
        credential: Optional[Credential] = None,
    ) -> int:
        """
        Run a staged installer.

        For remote targets the generated script also removes the staging
        directory once the installer has exited.

        Raises:
            RemoteExecutionError: If the remote command channel fails
        """
        logger.info("%s: running %s", target.host, spec.command_line)
        if target.is_local:
            return self._run_local(target, spec.command_line, cwd=staging_path)

        script = staged_install_script(
            staging_path, spec.resolved_executable, spec.resolved_arguments
        )
        return self._run_remote(target, script, credential)

    def execute_uninstall(
        self,
        target: DeploymentTarget,
        command: UninstallCommand,
        credential: Optional[Credential] = None,
    ) -> int:
        """
        Run a normalized uninstall command.

        Raises:
            RemoteExecutionError: If the remote command channel fails
        """
        logger.info("%s: running %s", target.host, command.command_line)
        if target.is_local:
            return self._run_local(target, command.command_line)

        return self._run_remote(
            target, command_script(command.executable, command.arguments), credential
        )

    def _run_local(self, target: DeploymentTarget, command_line: str, cwd: Optional[str] = None) -> int:
        result = subprocess.run(
            command_line,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.stdout:
            logger.debug("%s stdout: %s", target.host, result.stdout.strip())
        if result.stderr:
            logger.debug("%s stderr: %s", target.host, result.stderr.strip())
        logger.info("%s: exit code %d", target.host, result.returncode)
        return result.returncode

    def _run_remote(
        self, target: DeploymentTarget, script: str, credential: Optional[Credential]
    ) -> int:
        config = ConnectionConfig.for_target(target.host, credential, self.settings.winrm)
        client = self._client_factory(config)
        try:
            result = client.run_ps(script)
        finally:
            client.close()

        if not result.connected:
            raise RemoteExecutionError(target.host, result.error)

        if result.stderr.strip():
            logger.debug("%s stderr: %s", target.host, result.stderr.strip())
        logger.info("%s: exit code %d (%s/%s)", target.host, result.return_code,
                    result.transport_used, result.auth_used)
        return result.return_code
