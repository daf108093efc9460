"""
Credential Command CLI - Stored credential management.
"""

import logging

import typer
from pydantic import SecretStr

from winpush.domain.credential import Credential
from winpush.interface.cli.context import console, handle_errors

logger = logging.getLogger(__name__)

credential_app = typer.Typer(
    name="credential",
    help="🔐 Manage stored (encrypted) credentials",
    rich_markup_mode="rich",
    no_args_is_help=True
)


@credential_app.command("set")
def credential_set(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Reference name used with --credential."),
    username: str = typer.Option(..., "--username", "-u", help="Account name (DOMAIN\\user)."),
):
    """
    Store a credential encrypted under the master password.

    The master password comes from WINPUSH_MASTER_PASSWORD or is prompted.
    """
    password = typer.prompt(f"Password for {username}", hide_input=True, confirmation_prompt=True)
    with handle_errors():
        credential = Credential(username=username, password=SecretStr(password))
        ctx.obj.config.save_credential(ref, credential)
    console.print(f"[green]✅ Saved credential '{ref}'[/green]")


@credential_app.command("list")
def credential_list(ctx: typer.Context):
    """List stored credential references."""
    refs = ctx.obj.config.repository.list_credential_refs()
    if not refs:
        console.print("[yellow]No stored credentials[/yellow]")
        return
    for ref in refs:
        typer.echo(ref)
