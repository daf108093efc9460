"""
Installer and uninstaller argument builders.

msiexec command lines are handled as token lists with named fields rather
than by string search and replace, so that caller-supplied UI, restart and
logging options can be stripped reliably and replaced by the silent set.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PureWindowsPath

from winpush.domain.errors import UnsupportedUninstallCommand

# Whitespace-separated tokens; double-quoted runs stay inside one token
_TOKEN = re.compile(r'(?:[^\s"]+|"[^"]*")+')

_UI_LEVEL = re.compile(r"^[/-](q.*|passive|silent|s)$", re.IGNORECASE)
_RESTART = re.compile(r"^[/-](norestart|forcerestart|promptrestart)$", re.IGNORECASE)
_LOG = re.compile(r"^[/-](l[iwearucmopvx+!*]*|log)$", re.IGNORECASE)
_ACTION = re.compile(r"^[/-](i|x|package|uninstall)$", re.IGNORECASE)
_ACTION_ATTACHED = re.compile(r"^[/-]([ix])(\S+)$", re.IGNORECASE)

_MSIEXEC_NAMES = frozenset({"msiexec", "msiexec.exe"})
_QUOTED_EXE = re.compile(r'^"([^"]+\.exe)"(?:\s+(.*))?$', re.IGNORECASE | re.DOTALL)
_UNQUOTED_EXE = re.compile(r'^([^"]+?\.exe)(?:\s+(.*))?$', re.IGNORECASE | re.DOTALL)

SILENT_FLAGS = ("/qn", "/norestart")


def tokenize(arguments: str | None) -> list[str]:
    """Split a Windows command line into tokens, keeping quoted runs intact."""
    if not arguments:
        return []
    return _TOKEN.findall(arguments)


def quote(value: str) -> str:
    """Double-quote a value for a Windows command line."""
    return f'"{value.strip(chr(34))}"'


def _takes_operand(token: str, tokens: list[str], index: int) -> bool:
    return index + 1 < len(tokens) and not tokens[index + 1].startswith(("/", "-"))


def strip_msi_conflicts(tokens: list[str]) -> list[str]:
    """
    Remove options that would conflict with a silent, logged install.

    Drops UI level, restart and logging options, and any package action
    (/i, /x, /package) along with the operand that follows it.
    """
    residual = []
    skip_next = False
    for index, token in enumerate(tokens):
        if skip_next:
            skip_next = False
            continue
        if _UI_LEVEL.match(token) or _RESTART.match(token):
            continue
        if _LOG.match(token) or _ACTION.match(token):
            skip_next = _takes_operand(token, tokens, index)
            continue
        if _ACTION_ATTACHED.match(token):
            continue
        residual.append(token)
    return residual


@dataclass(frozen=True)
class MsiArguments:
    """
    msiexec argument line for a silent install.

    Attributes:
        package: Path to the .msi as seen by the target
        log_file: Verbose log destination on the target
        extra: Residual caller tokens (typically PROPERTY=value)
    """
    package: str
    log_file: str
    extra: tuple[str, ...] = field(default_factory=tuple)
    ui_level: str = "/qn"
    restart: str = "/norestart"

    @classmethod
    def from_caller(cls, package: str, log_file: str, caller_arguments: str | None) -> MsiArguments:
        """Build from caller arguments, discarding anything that conflicts."""
        return cls(
            package=package,
            log_file=log_file,
            extra=tuple(strip_msi_conflicts(tokenize(caller_arguments))),
        )

    def render(self) -> str:
        parts = [
            "/i", quote(self.package),
            self.ui_level, self.restart,
            "/l*v", quote(self.log_file),
            *self.extra,
        ]
        return " ".join(parts)


@dataclass(frozen=True)
class UninstallCommand:
    """An uninstall command split into program and argument string."""
    executable: str
    arguments: str = ""

    @property
    def command_line(self) -> str:
        executable = quote(self.executable) if " " in self.executable else self.executable
        return f"{executable} {self.arguments}".strip()

    @classmethod
    def parse(cls, command: str) -> UninstallCommand:
        """
        Normalize an uninstall string from the registry or the caller.

        msiexec commands are made silent: UI, restart and logging options
        are removed, /I{GUID} (modify) becomes /X{GUID}, and /qn /norestart
        are appended. A direct .exe invocation is kept as-is.

        Raises:
            UnsupportedUninstallCommand: For any other command shape
        """
        text = (command or "").strip()
        tokens = tokenize(text)
        if not tokens:
            raise UnsupportedUninstallCommand(command)

        program = tokens[0].strip('"')
        if PureWindowsPath(program).name.lower() in _MSIEXEC_NAMES:
            return cls._parse_msiexec(command, tokens[1:])

        match = _QUOTED_EXE.match(text) or _UNQUOTED_EXE.match(text)
        if match:
            return cls(executable=match.group(1), arguments=(match.group(2) or "").strip())

        raise UnsupportedUninstallCommand(command)

    @classmethod
    def _parse_msiexec(cls, command: str, tokens: list[str]) -> UninstallCommand:
        product = None
        residual = []
        skip_next = False
        for index, token in enumerate(tokens):
            if skip_next:
                skip_next = False
                continue
            attached = _ACTION_ATTACHED.match(token)
            if attached and attached.group(1).lower() in ("i", "x"):
                product = attached.group(2)
                continue
            if _ACTION.match(token):
                if _takes_operand(token, tokens, index):
                    product = tokens[index + 1]
                    skip_next = True
                continue
            if _UI_LEVEL.match(token) or _RESTART.match(token):
                continue
            if _LOG.match(token):
                skip_next = _takes_operand(token, tokens, index)
                continue
            residual.append(token)

        if not product:
            raise UnsupportedUninstallCommand(command)

        arguments = " ".join([f"/X{product}", *SILENT_FLAGS, *residual])
        return cls(executable="msiexec.exe", arguments=arguments)
