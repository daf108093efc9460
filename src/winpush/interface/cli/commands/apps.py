"""
Apps Command Function - List installed applications on targets.
"""

import logging
from typing import List, Optional

import typer

from winpush.domain.errors import InventoryError
from winpush.domain.inventory import InstalledApplication
from winpush.infrastructure.inventory import InventoryQuery
from winpush.interface.cli.context import console, handle_errors, read_targets, resolve_credential
from winpush.interface.cli.formatters import InventoryFormatter

logger = logging.getLogger(__name__)


def apps(
    ctx: typer.Context,
    targets: List[str] = typer.Argument(
        ...,
        help="Target computers ('-' reads names from stdin)."
    ),
    name: Optional[str] = typer.Option(
        None,
        "--name",
        "-n",
        help="Wildcard filter on the display name (case-insensitive)."
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
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print records as JSON."
    ),
):
    """
    List installed applications from the registry Uninstall hives.
    """
    failed = 0
    found: List[InstalledApplication] = []

    with handle_errors():
        context = ctx.obj
        hosts = read_targets(targets)
        credential = resolve_credential(context, credential_ref, username)
        query = InventoryQuery(context.settings.winrm)

        for host in hosts:
            try:
                found.extend(query.list_applications(host, credential, name))
            except InventoryError as e:
                failed += 1
                console.print(f"[red]❌ {e}[/red]")

    InventoryFormatter().display(found, as_json)
    if failed:
        raise typer.Exit(1)
