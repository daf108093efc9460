"""
Installer resolution.

Turns a raw installer reference (local path or URL) plus optional caller
arguments into the normalized InstallerSpec executed on every target.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePath, PureWindowsPath

from winpush.deploy.arguments import MsiArguments, quote
from winpush.domain.errors import (
    InstallerNotFound,
    UnsupportedArgument,
    UnsupportedInstallerKind,
)
from winpush.domain.models import InstallerKind, InstallerSpec
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.downloads import (
    Downloader,
    file_name_from_url,
    is_url,
    unblock_file,
)

logger = logging.getLogger(__name__)

POWERSHELL_EXE = "powershell.exe"
MSIEXEC_EXE = "msiexec.exe"


class InstallerResolver:
    """
    Resolves installer references into InstallerSpecs.

    Downloads are kept until cleanup() so that every target of an
    invocation stages the same file.
    """

    def __init__(
        self,
        settings: DeploySettings | None = None,
        downloader: Downloader | None = None,
    ):
        self.settings = settings or DeploySettings()
        self.downloader = downloader or Downloader(self.settings.download_directory)

    def resolve(self, reference: str, arguments: str | None = None) -> InstallerSpec:
        """
        Resolve a reference into an InstallerSpec.

        Args:
            reference: Local path or http(s) URL of the installer
            arguments: Optional caller argument string

        Raises:
            UnsupportedInstallerKind: Extension is not msi, exe or ps1
            UnsupportedArgument: Arguments given for a ps1 installer
            InstallerNotFound: Local path does not exist
            DownloadError: URL could not be fetched
        """
        from_url = is_url(reference)
        file_name = file_name_from_url(reference) if from_url else PurePath(reference).name

        extension = PurePath(file_name).suffix
        kind = InstallerKind.from_extension(extension)
        if kind is None:
            raise UnsupportedInstallerKind(reference, extension)

        arguments = (arguments or "").strip()
        if kind is InstallerKind.PS1 and arguments:
            raise UnsupportedArgument(
                f"PowerShell installers do not accept arguments (got {arguments!r})"
            )

        if from_url:
            local_path = self.downloader.fetch(reference)
            if kind is InstallerKind.PS1:
                unblock_file(local_path)
        else:
            local_path = Path(reference)
            if not local_path.is_file():
                raise InstallerNotFound(f"Installer not found: {reference}")

        staged_file = str(PureWindowsPath(self.settings.staging_directory) / file_name)
        executable, resolved_arguments = self._command_for(kind, staged_file, file_name, arguments)

        spec = InstallerSpec(
            raw_reference=reference,
            kind=kind,
            resolved_executable=executable,
            resolved_arguments=resolved_arguments,
            staging_file_name=file_name,
            sourced_from_url=from_url,
            local_path=local_path,
        )
        logger.info("Resolved %s installer: %s", kind.value.upper(), spec.command_line)
        return spec

    def _command_for(
        self, kind: InstallerKind, staged_file: str, file_name: str, arguments: str
    ) -> tuple[str, str]:
        if kind is InstallerKind.MSI:
            log_file = PureWindowsPath(self.settings.msi_log_directory) / (
                f"{PurePath(file_name).stem}_install.log"
            )
            msi = MsiArguments.from_caller(staged_file, str(log_file), arguments)
            if arguments:
                logger.debug("Caller MSI arguments %r reduced to %s", arguments, msi.extra)
            return MSIEXEC_EXE, msi.render()

        if kind is InstallerKind.PS1:
            return POWERSHELL_EXE, (
                "-NoProfile -NonInteractive -ExecutionPolicy Bypass -File " + quote(staged_file)
            )

        return staged_file, arguments

    def cleanup(self) -> None:
        """Remove files downloaded during this invocation."""
        self.downloader.cleanup()
