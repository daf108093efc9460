"""
Deploy Command Function - Push an installer to targets.
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer

from winpush.deploy.orchestrator import DeploymentRequest, DeploymentService
from winpush.interface.cli.context import handle_errors, read_targets, resolve_credential
from winpush.interface.cli.formatters import ResultFormatter

logger = logging.getLogger(__name__)


def deploy(  # pylint: disable=too-many-arguments,too-many-positional-arguments
    ctx: typer.Context,
    targets: List[str] = typer.Argument(
        ...,
        help="Target computers ('-' reads names from stdin)."
    ),
    installer: str = typer.Option(
        ...,
        "--installer",
        "-i",
        help="Installer path or http(s) URL (.msi, .exe or .ps1)."
    ),
    arguments: Optional[str] = typer.Option(
        None,
        "--arguments",
        "-a",
        help="Silent-install arguments (MSI UI, restart and log flags are always replaced)."
    ),
    source: Optional[Path] = typer.Option(
        None,
        "--source",
        "-s",
        help="Folder of companion files staged together with the installer."
    ),
    credential_ref: Optional[str] = typer.Option(
        None,
        "--credential",
        "-c",
        help="Stored credential reference."
    ),
    username: Optional[str] = typer.Option(
        None,
        "--username",
        "-u",
        help="Account to connect as (password is prompted)."
    ),
    reboot: bool = typer.Option(
        False,
        "--reboot",
        help="Restart each target after a successful install."
    ),
    accept_codes: Optional[List[int]] = typer.Option(
        None,
        "--accept-code",
        help="Exit code treated as success (repeatable; replaces the configured set)."
    ),
    parallel: Optional[int] = typer.Option(
        None,
        "--parallel",
        "-p",
        help="Number of targets processed concurrently.",
        min=1,
        max=20
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print [{Computer, Success}] records as JSON."
    ),
):
    """
    Deploy an installer to one or more computers.

    Each target is prechecked, staged, executed, validated and cleaned up
    independently; one failing target never stops the others.
    """
    with handle_errors():
        context = ctx.obj
        hosts = read_targets(targets)
        credential = resolve_credential(context, credential_ref, username)

        request = DeploymentRequest(
            targets=hosts,
            installer=installer,
            arguments=arguments,
            source_directory=str(source) if source else None,
            credential=credential,
            reboot=reboot,
            accepted_exit_codes=frozenset(accept_codes) if accept_codes else None,
            max_parallel=parallel,
        )
        result = DeploymentService(context.settings).deploy(request)

    ResultFormatter().display(result, "🚀 Deployment Results", as_json)
