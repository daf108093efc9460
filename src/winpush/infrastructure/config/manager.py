"""
Configuration manager for the application layer.

Provides one entry point for loading settings and resolving credential
references, translating storage errors into ConfigurationError.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Dict, Optional

from winpush.domain.credential import Credential
from winpush.domain.errors import ConfigurationError
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.config.credential_manager import CredentialManager
from winpush.infrastructure.config.repository import ConfigRepository

logger = logging.getLogger(__name__)

MASTER_PASSWORD_ENV = "WINPUSH_MASTER_PASSWORD"
CONFIG_DIR_ENV = "WINPUSH_CONFIG_DIR"


def default_config_dir() -> Path:
    """WINPUSH_CONFIG_DIR, or a 'config' directory under the working directory."""
    env_dir = os.environ.get(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path.cwd() / "config"


class ConfigManager:
    """
    Application layer manager for configuration operations.

    Settings are loaded once and cached. The master password is requested
    lazily, only when an encrypted credential is actually read or written.
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        password_prompt: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize the config manager.

        Args:
            config_dir: Base directory for configuration files
            password_prompt: Called for the master password when the
                environment does not provide one
        """
        self.config_dir = config_dir or default_config_dir()
        self.repository = ConfigRepository(self.config_dir)
        self._password_prompt = password_prompt
        self._settings: Optional[DeploySettings] = None
        self._credentials_cache: Dict[str, Credential] = {}
        self._credential_manager: Optional[CredentialManager] = None

    def load_settings(self, force_reload: bool = False) -> DeploySettings:
        """
        Load deployment settings.

        Raises:
            ConfigurationError: If the settings file is invalid
        """
        if self._settings is None or force_reload:
            try:
                self._settings = self.repository.load_deploy_settings()
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
            logger.debug("Loaded settings from %s", self.config_dir)
        return self._settings

    def _master_password(self) -> Optional[str]:
        password = os.environ.get(MASTER_PASSWORD_ENV)
        if password:
            return password
        if self._password_prompt is not None:
            return self._password_prompt()
        return None

    def _get_credential_manager(self, need_key: bool) -> CredentialManager:
        if self._credential_manager is None:
            self._credential_manager = CredentialManager(self.repository)
        if need_key and not self._credential_manager.master_password:
            self._credential_manager.master_password = self._master_password()
        return self._credential_manager

    def get_credential(self, cred_ref: str) -> Credential:
        """
        Resolve a stored credential reference.

        Raises:
            ConfigurationError: If the credential cannot be loaded
        """
        if cred_ref in self._credentials_cache:
            return self._credentials_cache[cred_ref]

        try:
            manager = self._get_credential_manager(need_key=False)
            if manager.is_encrypted(cred_ref):
                manager = self._get_credential_manager(need_key=True)
            credential = manager.load_decrypted_credential(cred_ref)
        except (FileNotFoundError, ValueError) as e:
            raise ConfigurationError(str(e)) from e

        self._credentials_cache[cred_ref] = credential
        return credential

    def save_credential(self, cred_ref: str, credential: Credential) -> None:
        """
        Store a credential encrypted under the master password.

        Raises:
            ConfigurationError: If no master password is available or saving fails
        """
        try:
            self._get_credential_manager(need_key=True).save_encrypted_credential(cred_ref, credential)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        self._credentials_cache[cred_ref] = credential
