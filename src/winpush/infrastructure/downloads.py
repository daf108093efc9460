"""
Installer downloads.

Fetches installers referenced by URL into a local download directory
using ``urllib.request``.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
import tempfile
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from winpush.domain.errors import DownloadError

logger = logging.getLogger(__name__)

URL_SCHEMES = ("http", "https")


def is_url(reference: str) -> bool:
    """True when the reference is an HTTP(S) URL rather than a path."""
    return urlparse(reference).scheme.lower() in URL_SCHEMES


def file_name_from_url(url: str) -> str:
    """Last path segment of a URL, percent-decoded."""
    name = unquote(urlparse(url).path.rstrip("/").rsplit("/", 1)[-1])
    if not name:
        raise DownloadError(f"Cannot determine a file name from URL: {url}")
    return name


def unblock_file(path: Path) -> None:
    """
    Remove the Zone.Identifier stream Windows attaches to downloaded files.

    No-op on other platforms.
    """
    if sys.platform != "win32":
        return
    try:
        os.remove(f"{path}:Zone.Identifier")
        logger.debug("Unblocked %s", path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to unblock %s: %s", path, e)


class Downloader:
    """Downloads installers and remembers what it fetched so it can clean up."""

    def __init__(self, download_directory: Optional[str] = None, timeout: int = 60):
        self.download_directory = Path(download_directory or tempfile.gettempdir())
        self.timeout = timeout
        self.downloaded: list[Path] = []

    def fetch(self, url: str) -> Path:
        """
        Download a URL into the download directory.

        An existing file of the same name is reused without downloading.

        Raises:
            DownloadError: If the download fails
        """
        dest = self.download_directory / file_name_from_url(url)
        if dest.exists():
            logger.info("Using previously downloaded %s", dest)
            return dest

        logger.info("Downloading %s", url)
        self.download_directory.mkdir(parents=True, exist_ok=True)
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as resp:
                with open(dest, "wb") as f:
                    shutil.copyfileobj(resp, f)
        except (urllib.error.URLError, OSError, ValueError) as e:
            dest.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download {url}: {e}") from e

        self.downloaded.append(dest)
        logger.debug("Downloaded %s (%d bytes)", dest, dest.stat().st_size)
        return dest

    def cleanup(self) -> None:
        """Delete every file this downloader fetched."""
        while self.downloaded:
            path = self.downloaded.pop()
            try:
                path.unlink(missing_ok=True)
                logger.debug("Removed download %s", path)
            except OSError as e:
                logger.warning("Failed to remove download %s: %s", path, e)
