"""
Credential manager for secure credential operations.

Stored credentials are Fernet-encrypted JSON documents keyed by a PBKDF2
derivation of the master password. The salt lives in credentials/.salt;
the master password is never written anywhere.

On-disk format::

    {"encrypted": true, "data": "<base64 token>", "salt_hash": "<sha256 of salt>"}

Plain {"username", "password"} files are still read for compatibility.
"""

import base64
import hashlib
import json
import logging
import secrets
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from pydantic import SecretStr

from winpush.domain.credential import Credential
from winpush.infrastructure.config.repository import CREDENTIALS_DIR, ConfigRepository

logger = logging.getLogger(__name__)

SALT_LENGTH = 32
KDF_ITERATIONS = 100000


def derive_key(password: str, salt: bytes) -> bytes:
    """Fernet key from a master password and salt."""
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=KDF_ITERATIONS)
    return base64.urlsafe_b64encode(kdf.derive(password.encode()))


def salt_fingerprint(salt: bytes) -> str:
    return hashlib.sha256(salt).hexdigest()


def _credential_from(data: Dict[str, Any]) -> Credential:
    try:
        return Credential(username=data["username"], password=SecretStr(data["password"]))
    except KeyError as e:
        raise ValueError(f"Credential is missing field {e}") from e


class CredentialManager:
    """Encrypts, stores and loads credentials under one master password."""

    def __init__(self, repository: ConfigRepository, master_password: Optional[str] = None):
        """
        Args:
            repository: Config repository for file operations
            master_password: Only needed for encrypted files
        """
        self.repository = repository
        self.master_password = master_password
        self._fernet: Optional[Fernet] = None
        self._salt: Optional[bytes] = None

    @property
    def _salt_file(self) -> Path:
        return self.repository.config_dir / CREDENTIALS_DIR / ".salt"

    def _credential_file(self, cred_ref: str) -> str:
        return f"{CREDENTIALS_DIR}/{cred_ref}"

    def _load_salt(self) -> bytes:
        """Persisted salt, created on first use."""
        if self._salt is None:
            if self._salt_file.exists():
                self._salt = self._salt_file.read_bytes()
            else:
                self._salt = secrets.token_bytes(SALT_LENGTH)
                self._salt_file.parent.mkdir(parents=True, exist_ok=True)
                self._salt_file.write_bytes(self._salt)
                logger.info("Created new salt file")
        return self._salt

    def _cipher(self) -> Fernet:
        """
        Raises:
            ValueError: If no master password is set
        """
        if self._fernet is None:
            if not self.master_password:
                raise ValueError("Master password required for credential encryption")
            self._fernet = Fernet(derive_key(self.master_password, self._load_salt()))
        return self._fernet

    def encrypt_credential(self, credential: Credential) -> Dict[str, Any]:
        """On-disk representation of a credential."""
        payload = json.dumps(
            {"username": credential.username, "password": credential.get_password()}
        ).encode()
        token = self._cipher().encrypt(payload)
        return {
            "encrypted": True,
            "data": base64.b64encode(token).decode(),
            "salt_hash": salt_fingerprint(self._load_salt()),
        }

    def decrypt_credential(self, stored: Dict[str, Any]) -> Credential:
        """
        Inverse of encrypt_credential; plain files pass through.

        Raises:
            ValueError: If decryption fails or data is invalid
        """
        if not stored.get("encrypted", False):
            return _credential_from(stored)

        cipher = self._cipher()
        if "salt_hash" in stored and stored["salt_hash"] != salt_fingerprint(self._load_salt()):
            raise ValueError("Salt hash mismatch - credential may be corrupted")

        try:
            plain = cipher.decrypt(base64.b64decode(stored["data"]))
        except InvalidToken as e:
            raise ValueError("Credential decryption failed - wrong master password?") from e
        return _credential_from(json.loads(plain.decode()))

    def save_encrypted_credential(self, cred_ref: str, credential: Credential) -> None:
        """
        Raises:
            ValueError: If encryption or writing fails
        """
        try:
            self.repository.save_json_file(self._credential_file(cred_ref), self.encrypt_credential(credential))
        except OSError as e:
            raise ValueError(f"Failed to save credential '{cred_ref}': {e}") from e
        logger.info("Saved encrypted credential: %s", cred_ref)

    def load_decrypted_credential(self, cred_ref: str) -> Credential:
        """
        Raises:
            ValueError: If loading or decryption fails
        """
        try:
            credential = self.decrypt_credential(self.repository.load_json_file(self._credential_file(cred_ref)))
        except (FileNotFoundError, ValueError) as e:
            raise ValueError(f"Failed to load credential '{cred_ref}': {e}") from e

        logger.debug("Loaded credential: %s", cred_ref)
        return credential

    def is_encrypted(self, cred_ref: str) -> bool:
        """Whether the stored credential needs the master password."""
        stored = self.repository.load_json_file(self._credential_file(cred_ref))
        return bool(stored.get("encrypted", False))
