"""
Shared pytest fixtures.
"""

import sys
from pathlib import Path

import pytest

# Ensure src is in python path
PROJECT_ROOT = Path(__file__).parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from winpush.domain.settings import DeploySettings  # noqa: E402


@pytest.fixture
def settings(tmp_path):
    """Settings whose local staging directory lives under tmp_path."""
    return DeploySettings(
        staging_directory=str(tmp_path / "staging"),
        download_directory=str(tmp_path / "downloads"),
    )


@pytest.fixture
def installer_file(tmp_path):
    """Factory creating a dummy installer file in tmp_path/src."""
    def make(name="Setup.msi", content=b"installer"):
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
    return make
