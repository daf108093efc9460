"""
Script Executor - JSON-emitting PowerShell scripts.

Runs a script through a PSRemoteClient and decodes the JSON document it
prints into a list of row dictionaries. Used by read-only queries such as
the installed application inventory.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from winpush.domain.credential import Credential
from winpush.domain.settings import WinRMSettings
from winpush.infrastructure.psremote.client import ConnectionConfig, PSRemoteClient

logger = logging.getLogger(__name__)


def extract_json(text: str) -> Any:
    """
    Decode the JSON document embedded in script output.

    PowerShell may print warnings or progress before the document, so
    decoding starts at the first bracket or brace and stops at the last
    matching closer. Returns None when the output holds no document.

    Raises:
        ValueError: If the document is not valid JSON
    """
    output = text.strip()
    openers = [pos for pos in (output.find("["), output.find("{")) if pos >= 0]
    if not openers:
        return None

    start = min(openers)
    end = output.rfind("]" if output[start] == "[" else "}") + 1
    return json.loads(output[start:end])


@dataclass(frozen=True)
class JsonOutput:
    """Rows decoded from one script run, or the reason there are none."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    error: str = ""
    transport: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


class ScriptExecutor:
    """
    Runs JSON-emitting scripts on one target.

    Usable as a context manager; the client is closed on exit.
    """

    def __init__(self, client: PSRemoteClient) -> None:
        self.client = client

    @classmethod
    def from_config(
        cls,
        hostname: str,
        credential: Credential | None = None,
        winrm_settings: WinRMSettings | None = None,
    ) -> ScriptExecutor:
        """Create executor from connection parameters."""
        return cls(PSRemoteClient(ConnectionConfig.for_target(hostname, credential, winrm_settings)))

    def __enter__(self) -> ScriptExecutor:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def run_json(self, script: str, label: str) -> JsonOutput:
        """
        Run a script and decode its output into rows.

        A single JSON object becomes a one-row list; empty output becomes
        an empty list.
        """
        result = self.client.run_ps(script)
        if not result.success:
            error = result.error or result.stderr.strip() or f"exit code {result.return_code}"
            return JsonOutput(error=error, transport=result.transport_used)

        try:
            document = extract_json(result.stdout)
        except ValueError as e:
            logger.warning("Unparseable output from %s script: %s", label, e)
            return JsonOutput(error=f"JSON parse error: {e}", transport=result.transport_used)

        if document is None:
            rows = []
        elif isinstance(document, dict):
            rows = [document]
        else:
            rows = list(document)

        logger.debug("%s script returned %d row(s) via %s", label, len(rows), result.transport_used)
        return JsonOutput(rows=rows, transport=result.transport_used)

    def close(self) -> None:
        """Close the underlying client."""
        self.client.close()
