"""
CLI Application - command wiring and global options.
"""

import logging
from pathlib import Path
from typing import Optional

import typer

from winpush.infrastructure.config.manager import ConfigManager
from winpush.infrastructure.logging_config import setup_logging
from winpush.interface.cli.commands.apps import apps
from winpush.interface.cli.commands.credential import credential_app
from winpush.interface.cli.commands.deploy import deploy
from winpush.interface.cli.commands.uninstall import uninstall
from winpush.interface.cli.context import CLIContext, prompt_master_password

app = typer.Typer(
    name="winpush",
    help="🚀 Push software installers to Windows machines",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True
)

app.command("deploy")(deploy)
app.command("uninstall")(uninstall)
app.command("apps")(apps)
app.add_typer(credential_app, name="credential")


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        envvar="WINPUSH_CONFIG_DIR",
        help="Directory holding deploy_settings.json and credentials/."
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug output."
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write a full debug log to this file."
    ),
):
    """
    🚀 WinPush - Windows software deployment

    Installs MSI, EXE and PowerShell installers silently on local or remote
    computers (admin share + WinRM) and reports per-target success.

    🔧 **Quick Start:**
    1. Store a credential: `winpush credential set admin -u CORP\\deploy`
    2. Deploy: `winpush deploy PC1 PC2 -i Setup.msi -c admin --reboot`
    3. Inspect: `winpush apps PC1 --name "Contoso*"`
    4. Remove: `winpush uninstall PC1 --name "Contoso*" -c admin`
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO, str(log_file) if log_file else None)
    ctx.obj = CLIContext(ConfigManager(config_dir, password_prompt=prompt_master_password))


if __name__ == "__main__":
    app()
