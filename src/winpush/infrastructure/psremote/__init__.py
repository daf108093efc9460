"""
PSRemote Infrastructure Package.

Resilient PowerShell remoting using pywinrm, with a local PowerShell
bypass for the machine WinPush runs on.
"""

from winpush.infrastructure.psremote.client import (
    ConnectionConfig,
    PSRemoteClient,
    PSRemoteResult,
    is_local_host,
)
from winpush.infrastructure.psremote.executor import (
    JsonOutput,
    ScriptExecutor,
    extract_json,
)
from winpush.infrastructure.psremote.scripts import ps_quote

__all__ = [
    "ConnectionConfig",
    "PSRemoteClient",
    "PSRemoteResult",
    "is_local_host",
    "JsonOutput",
    "ScriptExecutor",
    "extract_json",
    "ps_quote",
]
