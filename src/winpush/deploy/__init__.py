"""
Deployment package.

Installer resolution, artifact staging, command execution, outcome
validation, and the deploy/uninstall orchestration services built on them.
"""

from winpush.deploy.arguments import MsiArguments, UninstallCommand
from winpush.deploy.collector import ResultCollector
from winpush.deploy.executor import CommandExecutor
from winpush.deploy.orchestrator import DeploymentRequest, DeploymentService
from winpush.deploy.resolver import InstallerResolver
from winpush.deploy.stager import ArtifactStager
from winpush.deploy.uninstall import UninstallRequest, UninstallService, UninstallTarget
from winpush.deploy.validator import RebootRequester, accepted_codes, validate

__all__ = [
    "ArtifactStager",
    "CommandExecutor",
    "DeploymentRequest",
    "DeploymentService",
    "InstallerResolver",
    "MsiArguments",
    "RebootRequester",
    "ResultCollector",
    "UninstallCommand",
    "UninstallRequest",
    "UninstallService",
    "UninstallTarget",
    "accepted_codes",
    "validate",
]
