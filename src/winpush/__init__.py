"""
WinPush - Windows Software Deployment Tool.

Pushes MSI, EXE and PowerShell installers (and uninstall commands) to one
or many Windows machines and reports per-target success.

Usage:
    # CLI (recommended)
    winpush deploy PC1 PC2 --installer Setup.msi --reboot

    # Programmatic
    from winpush.deploy import DeploymentService, DeploymentRequest

    service = DeploymentService()
    result = service.deploy(DeploymentRequest(targets=["PC1"], installer="Setup.msi"))
"""

__version__ = "0.1.0"
__author__ = "WinPush Team"

from winpush.deploy import (
    DeploymentRequest,
    DeploymentService,
    UninstallRequest,
    UninstallService,
)

__all__ = [
    "DeploymentRequest",
    "DeploymentService",
    "UninstallRequest",
    "UninstallService",
    "__version__",
]
