"""
Shared CLI state and helpers.

Holds the configuration manager created by the global callback and turns
command-line inputs (targets, credential options) into domain objects.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

import typer
from pydantic import SecretStr, ValidationError
from rich.console import Console

from winpush.domain.credential import Credential
from winpush.domain.errors import ConfigurationError, PreconditionError
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.config.manager import ConfigManager

logger = logging.getLogger(__name__)

# Human-facing output goes to stderr; stdout is reserved for --json
console = Console(stderr=True)

EXIT_PRECONDITION = 2
EXIT_CONFIGURATION = 1


@dataclass
class CLIContext:
    """Objects shared by all commands of one invocation."""
    config: ConfigManager

    @property
    def settings(self) -> DeploySettings:
        return self.config.load_settings()


def prompt_master_password() -> str:
    return typer.prompt("Master password", hide_input=True)


def read_targets(targets: List[str]) -> List[str]:
    """
    Expand '-' into host names read from stdin, one per line.

    Blank lines and '#' comments are ignored; order is preserved.
    """
    hosts = []
    for target in targets:
        if target == "-":
            stdin = typer.get_text_stream("stdin")
            for line in stdin:
                line = line.strip()
                if line and not line.startswith("#"):
                    hosts.append(line)
        else:
            hosts.append(target)

    if not hosts:
        raise typer.BadParameter("No targets given", param_hint="TARGETS")
    return hosts


def resolve_credential(
    context: CLIContext,
    credential_ref: Optional[str],
    username: Optional[str],
) -> Optional[Credential]:
    """Stored credential, prompted credential, or None for the current user."""
    if credential_ref and username:
        raise typer.BadParameter("Use either --credential or --username, not both")
    if credential_ref:
        return context.config.get_credential(credential_ref)
    if username:
        password = typer.prompt(f"Password for {username}", hide_input=True)
        return Credential(username=username, password=SecretStr(password))
    return None


@contextmanager
def handle_errors() -> Iterator[None]:
    """Map invocation-wide errors onto exit codes."""
    try:
        yield
    except PreconditionError as e:
        logger.debug("Precondition failed", exc_info=True)
        console.print(f"[red]❌ Error:[/red] {e}")
        raise typer.Exit(EXIT_PRECONDITION) from e
    except (ConfigurationError, ValidationError) as e:
        logger.debug("Configuration error", exc_info=True)
        console.print(f"[red]❌ Configuration error:[/red] {e}")
        raise typer.Exit(EXIT_CONFIGURATION) from e
