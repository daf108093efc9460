"""
Credential Handler for remote operations.

Converts a Credential into the operand formats expected by the tools that
consume it (net use, pywinrm). Never logs password material.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from winpush.domain.credential import Credential


class CredentialHandler:
    """Prepares credentials for share mounts and WinRM sessions."""

    def net_use_operands(self, credential: Optional[Credential]) -> List[str]:
        """
        Build the credential part of a `net use` command line.

        Args:
            credential: Explicit credential, or None for the current user

        Returns:
            list: [password, "/user:NAME"] or an empty list
        """
        if credential is None:
            return []
        return [credential.get_password(), f"/user:{credential.username}"]

    def winrm_auth(self, credential: Optional[Credential]) -> Tuple[Optional[str], Optional[str]]:
        """Return the (username, password) tuple pywinrm expects."""
        if credential is None:
            return None, None
        return credential.username, credential.get_password()

    def describe(self, credential: Optional[Credential]) -> str:
        """Loggable description of a credential."""
        if credential is None:
            return "current user"
        return credential.username
