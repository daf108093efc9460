"""
CLI result formatters.

Render deployment results and inventory listings as rich tables, or as
JSON on stdout for pipeline use.
"""

import json
from typing import List

import typer
from rich.table import Table

from winpush.domain.inventory import InstalledApplication
from winpush.domain.models import DeploymentResult
from winpush.interface.cli.context import console


class ResultFormatter:
    """Displays per-target outcomes."""

    def display(self, result: DeploymentResult, title: str, as_json: bool = False) -> None:
        if as_json:
            typer.echo(json.dumps(result.records(), indent=2))
            return

        table = Table(title=title)
        table.add_column("Computer", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("Exit Code", justify="right")
        table.add_column("Rebooted")
        table.add_column("Details", style="dim")

        for outcome in result:
            status = "[green]✅ Success[/green]" if outcome.succeeded else "[red]❌ Failed[/red]"
            exit_code = "-" if outcome.exit_code is None else str(outcome.exit_code)
            table.add_row(
                outcome.target,
                status,
                exit_code,
                "yes" if outcome.rebooted else "",
                outcome.error or "",
            )

        console.print(table)
        console.print(
            f"\n[blue]📊 Summary: {result.succeeded}/{len(result)} targets succeeded[/blue]"
        )


class InventoryFormatter:
    """Displays installed applications."""

    def display(self, apps: List[InstalledApplication], as_json: bool = False) -> None:
        if as_json:
            typer.echo(json.dumps([app.model_dump(by_alias=True) for app in apps], indent=2))
            return

        table = Table(title="📦 Installed Applications")
        table.add_column("Computer", style="cyan", no_wrap=True)
        table.add_column("Name", style="green")
        table.add_column("Version", style="yellow")
        table.add_column("GUID", style="magenta")
        table.add_column("Uninstall Command", style="dim")

        for app in apps:
            table.add_row(
                app.computer,
                app.name,
                app.version or "",
                app.guid or "",
                app.uninstall_command or "",
            )

        console.print(table)
        console.print(f"\n[blue]📊 {len(apps)} application(s)[/blue]")
