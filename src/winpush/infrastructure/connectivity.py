"""
Connectivity precheck for deployment targets.

Decides whether a target can be reached at all and whether its
administrative share is writable before anything is staged on it.
"""

from __future__ import annotations

import logging
import os
import socket
from typing import Optional, Protocol

from winpush.domain.credential import Credential
from winpush.domain.settings import ConnectivitySettings
from winpush.infrastructure.shares import AdminShareMounter, ShareMountError

logger = logging.getLogger(__name__)


class ConnectivityProbe(Protocol):
    """Precheck collaborator consumed by the orchestrators."""

    def can_reach(self, host: str) -> bool:
        ...

    def can_write_admin_share(
        self, host: str, share: str = "C$", credential: Optional[Credential] = None
    ) -> bool:
        ...


class NetworkProbe:
    """
    Socket and admin-share based connectivity probe.

    A host is reachable when any configured TCP port accepts a connection.
    The admin share is checked through its UNC path, or by mounting it
    when an explicit credential is supplied.
    """

    def __init__(
        self,
        settings: Optional[ConnectivitySettings] = None,
        mounter: Optional[AdminShareMounter] = None,
    ):
        self.settings = settings or ConnectivitySettings()
        self.mounter = mounter or AdminShareMounter()

    def can_reach(self, host: str) -> bool:
        for port in self.settings.probe_ports:
            if self._test_port(host, port):
                logger.debug("%s reachable on port %d", host, port)
                return True
        logger.debug("%s not reachable on ports %s", host, self.settings.probe_ports)
        return False

    def can_write_admin_share(
        self, host: str, share: str = "C$", credential: Optional[Credential] = None
    ) -> bool:
        if credential is None:
            return os.path.isdir(f"\\\\{host}\\{share}")

        try:
            with self.mounter.mount(host, share, credential) as root:
                return root.is_dir()
        except (ShareMountError, OSError) as e:
            logger.debug("Admin share check failed for %s: %s", host, e)
            return False

    def _test_port(self, host: str, port: int) -> bool:
        """Test direct TCP connection."""
        try:
            with socket.create_connection((host, port), timeout=self.settings.probe_timeout):
                return True
        except OSError:
            return False
