"""
Configuration infrastructure package.

File-backed persistence for deployment settings and encrypted credentials.
"""

from winpush.infrastructure.config.credential_manager import CredentialManager
from winpush.infrastructure.config.manager import ConfigManager, default_config_dir
from winpush.infrastructure.config.repository import ConfigRepository

__all__ = [
    "ConfigManager",
    "ConfigRepository",
    "CredentialManager",
    "default_config_dir",
]
