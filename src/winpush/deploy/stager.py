"""
Artifact staging.

Copies the installer, or a companion source tree containing it, into the
fixed staging directory of a target. Remote targets are reached through
their administrative share.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from winpush.domain.credential import Credential
from winpush.domain.errors import StagingFailure
from winpush.domain.models import DeploymentTarget, InstallerSpec
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.shares import AdminShareMounter, ShareMountError

logger = logging.getLogger(__name__)


class ArtifactStager:
    """Creates and removes the staging directory on targets."""

    def __init__(
        self,
        settings: Optional[DeploySettings] = None,
        mounter: Optional[AdminShareMounter] = None,
    ):
        self.settings = settings or DeploySettings()
        self.mounter = mounter or AdminShareMounter()

    @contextmanager
    def _staging_root(
        self, target: DeploymentTarget, credential: Optional[Credential]
    ) -> Iterator[Path]:
        """Yield the staging directory as reachable from this machine."""
        if target.is_local:
            yield Path(self.settings.staging_directory)
            return

        with self.mounter.mount(target.host, self.settings.staging_share, credential) as drive:
            yield drive.joinpath(*self.settings.staging_relative.parts)

    def stage(
        self,
        target: DeploymentTarget,
        spec: InstallerSpec,
        source_directory: Optional[str] = None,
        credential: Optional[Credential] = None,
    ) -> str:
        """
        Stage the installer on a target.

        Returns:
            The staging directory as seen by the target

        Raises:
            StagingFailure: If mounting or copying fails; partial state is removed
        """
        try:
            with self._staging_root(target, credential) as root:
                try:
                    self._populate(root, spec, source_directory)
                except BaseException:
                    shutil.rmtree(root, ignore_errors=True)
                    raise
        except (ShareMountError, OSError, shutil.Error) as e:
            raise StagingFailure(target.host, f"staging failed: {e}") from e

        logger.info("%s: staged %s in %s", target.host, spec.staging_file_name,
                    self.settings.staging_directory)
        return self.settings.staging_directory

    def _populate(self, root: Path, spec: InstallerSpec, source_directory: Optional[str]) -> None:
        # Leftovers from an earlier run
        shutil.rmtree(root, ignore_errors=True)

        if source_directory:
            logger.debug("Copying source tree %s to %s", source_directory, root)
            shutil.copytree(source_directory, root, dirs_exist_ok=True)
        else:
            root.mkdir(parents=True, exist_ok=True)

        installer = root / spec.staging_file_name
        if not installer.exists():
            if spec.local_path is None:
                raise FileNotFoundError(f"No local copy of {spec.raw_reference}")
            logger.debug("Copying installer %s to %s", spec.local_path, installer)
            shutil.copy2(spec.local_path, installer)

    def discard(self, target: DeploymentTarget, credential: Optional[Credential] = None) -> None:
        """Remove the staging directory. Errors are logged, never raised."""
        try:
            with self._staging_root(target, credential) as root:
                if root.exists():
                    shutil.rmtree(root)
                    logger.debug("%s: removed staging directory", target.host)
        except (ShareMountError, OSError) as e:
            logger.warning("%s: failed to remove staging directory: %s", target.host, e)
