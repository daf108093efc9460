"""
PSRemote Client - Resilient pywinrm Wrapper.

Opens a WinRM session with a target by walking an ordered list of
transport/authentication combinations, then runs PowerShell or CMD
commands through it. Commands aimed at the machine WinPush runs on skip
WinRM and run as local processes.

Attempt order:
1. HTTPS (5986), certificate validated: Negotiate, Kerberos, NTLM
2. HTTPS (5986), certificate ignored: Negotiate, Kerberos, NTLM, Basic
3. HTTP (5985): Negotiate, Kerberos, NTLM (never Basic)
"""

from __future__ import annotations

import logging
import os
import socket
import subprocess
import tempfile
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import winrm  # pywinrm

from winpush.domain.credential import Credential
from winpush.domain.settings import WinRMSettings
from winpush.infrastructure.credentials import CredentialHandler

logger = logging.getLogger(__name__)

LOCALHOST_ALIASES = frozenset({"localhost", "127.0.0.1", "::1", ".", "(local)"})

LOCAL_POWERSHELL = [
    "powershell.exe",
    "-NoProfile",
    "-NonInteractive",
    "-ExecutionPolicy",
    "Bypass",
    "-File",
]


def is_local_host(hostname: str) -> bool:
    """
    Detect if hostname refers to this machine.

    Matches: localhost, 127.0.0.1, ::1, ., (local), local machine name
    (short or fully qualified).
    """
    name = hostname.lower().strip()
    if name in LOCALHOST_ALIASES:
        return True

    try:
        local_name = socket.gethostname().lower()
        fqdn = socket.getfqdn().lower()
    except OSError:
        return False

    return name in {local_name, local_name.split(".")[0], fqdn}


class Transport(Enum):
    HTTPS = "https"
    HTTP = "http"


class AuthMethod(Enum):
    NEGOTIATE = "negotiate"
    KERBEROS = "kerberos"
    NTLM = "ntlm"
    BASIC = "basic"


_INTEGRATED = (AuthMethod.NEGOTIATE, AuthMethod.KERBEROS, AuthMethod.NTLM)

# (transport, auth, verify certificate)
ATTEMPT_ORDER = (
    [(Transport.HTTPS, auth, True) for auth in _INTEGRATED]
    + [(Transport.HTTPS, auth, False) for auth in (*_INTEGRATED, AuthMethod.BASIC)]
    + [(Transport.HTTP, auth, False) for auth in _INTEGRATED]
)


@dataclass
class ConnectionConfig:
    """
    Connection parameters for one target.

    Mutable so callers can tighten operation_timeout_sec for a single
    short command (e.g. the restart request).
    """

    hostname: str
    username: str | None = None
    password: str | None = None
    port_http: int = 5985
    port_https: int = 5986
    timeout_seconds: int = 30
    operation_timeout_sec: int = 120
    # None waits for a local process however long it takes
    local_timeout_sec: int | None = None

    @classmethod
    def for_target(
        cls,
        hostname: str,
        credential: Credential | None = None,
        winrm_settings: WinRMSettings | None = None,
    ) -> ConnectionConfig:
        """Build a config from a credential and WinRM settings."""
        settings = winrm_settings or WinRMSettings()
        username, password = CredentialHandler().winrm_auth(credential)
        return cls(
            hostname=hostname,
            username=username,
            password=password,
            port_http=settings.port_http,
            port_https=settings.port_https,
            timeout_seconds=settings.connect_timeout,
            operation_timeout_sec=settings.operation_timeout,
        )

    def endpoint(self, transport: Transport) -> str:
        port = self.port_https if transport == Transport.HTTPS else self.port_http
        return f"{transport.value}://{self.hostname}:{port}/wsman"


@dataclass
class PSRemoteResult:
    """Outcome of one command; error is set only when it never ran."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    return_code: int = -1
    transport_used: str = ""
    auth_used: str = ""
    error: str = ""

    @property
    def connected(self) -> bool:
        """False when the command never reached the target."""
        return not self.error


class PSRemoteClient:
    """
    PowerShell/CMD runner for one target.

    The first working transport/auth combination is kept for the
    lifetime of the client; nothing is shared between instances.
    """

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._session: winrm.Session | None = None
        self._transport: Transport | None = None
        self._auth: AuthMethod | None = None
        self.is_localhost = is_local_host(config.hostname)
        if self.is_localhost:
            logger.debug("%s is this machine - using local processes", config.hostname)

    def connect(self) -> bool:
        """Open a session, trying each combination in ATTEMPT_ORDER."""
        if self.is_localhost or self._session is not None:
            return True

        for transport, auth, verify in ATTEMPT_ORDER:
            if auth == AuthMethod.BASIC and not self.config.username:
                continue
            session = self._open_session(transport, auth, verify)
            if session is None:
                continue

            if transport == Transport.HTTPS and not verify:
                logger.warning("Connected to %s with SSL verification DISABLED", self.config.hostname)
            logger.info("Connected to %s: %s + %s", self.config.hostname, transport.value, auth.value)
            self._session, self._transport, self._auth = session, transport, auth
            return True

        logger.error("All WinRM connection attempts failed for %s", self.config.hostname)
        return False

    def _open_session(self, transport: Transport, auth: AuthMethod, verify: bool):
        endpoint = self.config.endpoint(transport)
        logger.debug("Trying %s with %s (verify=%s)", endpoint, auth.value, verify)
        try:
            session = winrm.Session(
                target=endpoint,
                auth=(self.config.username, self.config.password),
                transport=auth.value,
                server_cert_validation="validate" if verify else "ignore",
                operation_timeout_sec=self.config.operation_timeout_sec,
                read_timeout_sec=self.config.operation_timeout_sec + 10,
            )
            probe = session.run_cmd("echo", ["OK"])
        except Exception as e:  # pylint: disable=broad-except
            # pywinrm surfaces transport, auth and TLS failures as unrelated types
            logger.debug("%s/%s failed: %s - %s", endpoint, auth.value, type(e).__name__, str(e)[:100])
            return None

        if probe.status_code == 0 and b"OK" in probe.std_out:
            return session
        return None

    def run_ps(self, script: str) -> PSRemoteResult:
        """
        Run a PowerShell script and wait for it to finish.

        The script's exit code becomes return_code.
        """
        if self.is_localhost:
            return self._run_local_script(script)
        return self._run_remote(lambda session: session.run_ps(script))

    def run_cmd(self, command: str, args: list[str] | None = None) -> PSRemoteResult:
        """Run a CMD command, bounded by operation_timeout_sec."""
        if self.is_localhost:
            return self._run_local([command, *(args or [])], self.config.operation_timeout_sec)
        return self._run_remote(lambda session: session.run_cmd(command, args or []))

    def _run_remote(self, call: Callable[[winrm.Session], object]) -> PSRemoteResult:
        if not self.connect():
            return PSRemoteResult(
                success=False,
                error=f"Failed to establish WinRM connection to {self.config.hostname}",
            )

        transport = self._transport.value if self._transport else ""
        auth = self._auth.value if self._auth else ""
        try:
            response = call(self._session)
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("Remote command failed on %s", self.config.hostname)
            return PSRemoteResult(
                success=False,
                error=str(e) or type(e).__name__,
                transport_used=transport,
                auth_used=auth,
            )

        return PSRemoteResult(
            success=response.status_code == 0,
            stdout=response.std_out.decode("utf-8", errors="replace"),
            stderr=response.std_err.decode("utf-8", errors="replace"),
            return_code=response.status_code,
            transport_used=transport,
            auth_used=auth,
        )

    def _run_local_script(self, script: str) -> PSRemoteResult:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".ps1", delete=False, encoding="utf-8") as f:
            f.write(script)
            script_path = f.name
        try:
            return self._run_local([*LOCAL_POWERSHELL, script_path], self.config.local_timeout_sec)
        finally:
            try:
                os.unlink(script_path)
            except OSError as e:
                logger.debug("Could not remove %s: %s", script_path, e)

    def _run_local(self, argv: list[str], timeout: int | None) -> PSRemoteResult:
        logger.debug("Running locally: %s", argv[0])
        try:
            completed = subprocess.run(
                argv, capture_output=True, text=True, timeout=timeout, check=False
            )
        except subprocess.TimeoutExpired:
            return PSRemoteResult(
                success=False, error=f"Timed out after {timeout}s", transport_used="local", auth_used="local"
            )
        except OSError as e:
            logger.exception("Local execution of %s failed", argv[0])
            return PSRemoteResult(success=False, error=str(e), transport_used="local", auth_used="local")

        return PSRemoteResult(
            success=completed.returncode == 0,
            stdout=completed.stdout,
            stderr=completed.stderr,
            return_code=completed.returncode,
            transport_used="local",
            auth_used="local",
        )

    def close(self) -> None:
        """Drop the session; the next command reconnects."""
        self._session = None
