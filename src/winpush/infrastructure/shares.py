"""
Administrative share mounts.

Maps a target's administrative share (\\\\HOST\\C$) onto an unused local
drive letter with `net use` for the duration of a `with` block, so that
staging can use ordinary file operations on the remote disk.
"""

from __future__ import annotations

import logging
import os
import string
import subprocess
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from winpush.domain.credential import Credential
from winpush.infrastructure.credentials import CredentialHandler

logger = logging.getLogger(__name__)

# A, B are floppy legacy and C is the system drive
CANDIDATE_DRIVE_LETTERS = tuple(reversed(string.ascii_uppercase[3:]))


class ShareMountError(OSError):
    """Raised when a share cannot be mounted or no drive letter is free."""


def find_free_drive_letter() -> Optional[str]:
    """Return the first unused drive letter, searching from Z downwards."""
    for letter in CANDIDATE_DRIVE_LETTERS:
        if not os.path.exists(f"{letter}:\\"):
            return letter
    return None


class AdminShareMounter:
    """
    Mounts administrative shares with `net use`.

    Letter selection and mapping happen under one lock so concurrent
    mounts never race for the same letter.
    """

    _letter_lock = threading.Lock()

    def __init__(self, timeout: int = 60):
        self.timeout = timeout
        self.credential_handler = CredentialHandler()

    @contextmanager
    def mount(
        self,
        host: str,
        share: str = "C$",
        credential: Optional[Credential] = None,
    ) -> Iterator[Path]:
        """
        Mount \\\\host\\share and yield the drive root.

        The mapping is always removed when the block exits.

        Raises:
            ShareMountError: If no drive letter is free or net use fails
        """
        unc = f"\\\\{host}\\{share}"

        with self._letter_lock:
            letter = find_free_drive_letter()
            if letter is None:
                raise ShareMountError(f"No free drive letter available to mount {unc}")

            drive = f"{letter}:"
            logger.debug(
                "Mounting %s on %s as %s", unc, drive, self.credential_handler.describe(credential)
            )
            try:
                result = self._net_use(
                    [drive, unc, *self.credential_handler.net_use_operands(credential), "/persistent:no"]
                )
            except subprocess.TimeoutExpired as e:
                # A hung mapping may still complete later
                self.release(drive)
                raise ShareMountError(f"net use {unc} timed out after {self.timeout}s") from e
            if result.returncode != 0:
                raise ShareMountError(
                    f"net use {unc} failed ({result.returncode}): {result.stderr.strip() or result.stdout.strip()}"
                )

        try:
            yield Path(f"{drive}\\")
        finally:
            self.release(drive)

    def release(self, drive: str) -> None:
        """Remove a drive mapping. Failures are logged, never raised."""
        try:
            result = self._net_use([drive, "/delete", "/y"])
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Failed to release %s: %s", drive, e)
            return
        if result.returncode != 0:
            logger.warning("Failed to release %s: %s", drive, result.stderr.strip())
        else:
            logger.debug("Released %s", drive)

    def _net_use(self, args: list[str]) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["net", "use", *args],
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=False,
        )
