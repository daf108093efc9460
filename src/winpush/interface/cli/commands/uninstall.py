"""
Uninstall Command Function - Remove software from targets.

Either runs one given command on every target, or queries each target's
inventory and uninstalls every application matching a name pattern.
"""

import logging
from typing import List, Optional, Tuple, Union

import typer

from winpush.deploy.uninstall import UninstallRequest, UninstallService, UninstallTarget
from winpush.domain.errors import InventoryError
from winpush.domain.models import DeploymentResult, ExecutionOutcome
from winpush.infrastructure.inventory import InventoryQuery
from winpush.interface.cli.context import console, handle_errors, read_targets, resolve_credential
from winpush.interface.cli.formatters import ResultFormatter

logger = logging.getLogger(__name__)


# Per host, in input order: its uninstall entries, or the outcome of a failed query
HostPlan = Tuple[str, Union[List[UninstallTarget], ExecutionOutcome]]


def _plan_from_inventory(hosts, name, credential, settings) -> List[HostPlan]:
    """Query every host; hosts whose query fails carry a failed outcome."""
    query = InventoryQuery(settings.winrm)
    plan: List[HostPlan] = []

    for host in hosts:
        try:
            apps = query.list_applications(host, credential, name)
        except InventoryError as e:
            logger.error("%s", e)
            plan.append((host, ExecutionOutcome.not_executed(host, str(e))))
            continue

        if not apps:
            logger.warning("%s: no application matches '%s'", host, name)
        entries = []
        for app in apps:
            if app.uninstall_command:
                entries.append(UninstallTarget.from_application(app))
            else:
                logger.warning("%s: '%s' has no uninstall command, skipping", host, app.name)
        plan.append((host, entries))

    return plan


def _merge_in_input_order(plan: List[HostPlan], outcomes) -> List[ExecutionOutcome]:
    """Interleave query failures with uninstall outcomes by host position."""
    executed = list(outcomes)
    merged: List[ExecutionOutcome] = []
    position = 0
    for _host, item in plan:
        if isinstance(item, ExecutionOutcome):
            merged.append(item)
        else:
            merged.extend(executed[position:position + len(item)])
            position += len(item)
    return merged


def uninstall(  # pylint: disable=too-many-arguments,too-many-positional-arguments
    ctx: typer.Context,
    targets: List[str] = typer.Argument(
        ...,
        help="Target computers ('-' reads names from stdin)."
    ),
    command: Optional[str] = typer.Option(
        None,
        "--command",
        help="Uninstall command (msiexec or a direct .exe invocation)."
    ),
    name: Optional[str] = typer.Option(
        None,
        "--name",
        "-n",
        help="Wildcard pattern; uninstall every installed application matching it."
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
        help="Restart each target after a successful uninstall."
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
    Uninstall software from one or more computers.
    """
    if bool(command) == bool(name):
        raise typer.BadParameter("Give exactly one of --command or --name")

    with handle_errors():
        context = ctx.obj
        hosts = read_targets(targets)
        credential = resolve_credential(context, credential_ref, username)
        settings = context.settings

        if name:
            plan = _plan_from_inventory(hosts, name, credential, settings)
            entries = [entry for _host, item in plan if isinstance(item, list) for entry in item]
            request_targets: List[str] = []
        else:
            plan, entries, request_targets = None, [], hosts

        outcomes = ()
        if entries or request_targets:
            request = UninstallRequest(
                entries=entries,
                targets=request_targets,
                command=command,
                credential=credential,
                reboot=reboot,
                accepted_exit_codes=frozenset(accept_codes) if accept_codes else None,
                max_parallel=parallel,
            )
            outcomes = UninstallService(settings).uninstall(request).outcomes
        elif not any(isinstance(item, ExecutionOutcome) for _host, item in plan):
            console.print(f"[yellow]No application matching '{name}' found[/yellow]")

        if plan is not None:
            outcomes = _merge_in_input_order(plan, outcomes)

    ResultFormatter().display(DeploymentResult(tuple(outcomes)), "🗑️ Uninstall Results", as_json)
