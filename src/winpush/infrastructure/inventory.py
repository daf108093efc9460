"""
Installed application inventory.

Reads the Uninstall registry hives of a target (local PowerShell or WinRM)
and returns InstalledApplication records.
"""

from __future__ import annotations

import fnmatch
import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from winpush.domain.credential import Credential
from winpush.domain.errors import InventoryError
from winpush.domain.inventory import InstalledApplication
from winpush.domain.settings import WinRMSettings
from winpush.infrastructure.psremote.executor import ScriptExecutor
from winpush.infrastructure.psremote.scripts import INVENTORY_SCRIPT

logger = logging.getLogger(__name__)


class InventoryQuery:
    """Lists installed applications on a target."""

    def __init__(
        self,
        winrm_settings: Optional[WinRMSettings] = None,
        executor_factory: Optional[Callable[..., ScriptExecutor]] = None,
    ):
        self.winrm_settings = winrm_settings or WinRMSettings()
        self._executor_factory = executor_factory or ScriptExecutor.from_config

    def list_applications(
        self,
        host: str,
        credential: Optional[Credential] = None,
        name: Optional[str] = None,
    ) -> List[InstalledApplication]:
        """
        Query installed applications on a host.

        Args:
            host: Target machine
            credential: Explicit credential, or None for the current user
            name: Optional case-insensitive wildcard filter on display name

        Returns:
            Applications sorted by name

        Raises:
            InventoryError: If the query fails or returns malformed data
        """
        with self._executor_factory(host, credential, self.winrm_settings) as executor:
            output = executor.run_json(INVENTORY_SCRIPT, "inventory")

        if not output.ok:
            raise InventoryError(f"Inventory query failed on {host}: {output.error}")

        apps = []
        for row in output.rows:
            row = {**row, "Computer": host}
            try:
                apps.append(InstalledApplication.model_validate(row))
            except ValidationError as e:
                raise InventoryError(f"Malformed inventory record from {host}: {e}") from e

        if name:
            pattern = name.lower()
            apps = [app for app in apps if fnmatch.fnmatch(app.name.lower(), pattern)]

        logger.info("Found %d application(s) on %s", len(apps), host)
        return sorted(apps, key=lambda app: app.name.lower())
