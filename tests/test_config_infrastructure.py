"""
Tests for the config infrastructure layer.

This module tests the repository, manager, and credential manager components.
"""

import json
import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from pydantic import SecretStr, ValidationError

from winpush.domain.credential import Credential
from winpush.domain.errors import ConfigurationError
from winpush.domain.settings import DeploySettings
from winpush.infrastructure.config.credential_manager import CredentialManager
from winpush.infrastructure.config.manager import MASTER_PASSWORD_ENV, ConfigManager
from winpush.infrastructure.config.repository import ConfigRepository


class TestConfigRepository:
    """Test cases for ConfigRepository."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = Path(tempfile.mkdtemp())
        self.repo = ConfigRepository(self.temp_dir)

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def test_load_json_file_success(self):
        test_data = {"key": "value", "number": 42}
        (self.temp_dir / "test.json").write_text(json.dumps(test_data))

        assert self.repo.load_json_file("test") == test_data

    def test_load_jsonc_strips_comments(self):
        (self.temp_dir / "test.jsonc").write_text(
            '{\n'
            '  // staging on D:\n'
            '  "staging_directory": "D:\\\\Stage", /* inline */\n'
            '  "url": "http://example.com/x"\n'
            '}\n'
        )

        result = self.repo.load_json_file("test")

        assert result == {"staging_directory": "D:\\Stage", "url": "http://example.com/x"}

    def test_load_json_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            self.repo.load_json_file("nonexistent")

    def test_invalid_json(self):
        (self.temp_dir / "test.json").write_text("{not json")
        with pytest.raises(ValueError):
            self.repo.load_json_file("test")

    def test_save_json_file(self):
        test_data = {"key": "value"}
        path = self.repo.save_json_file("sub/test", test_data)

        assert path == self.temp_dir / "sub" / "test.json"
        assert json.loads(path.read_text()) == test_data

    def test_missing_settings_use_defaults(self):
        settings = self.repo.load_deploy_settings()
        assert settings == DeploySettings()

    def test_settings_round_trip(self):
        settings = DeploySettings(accepted_exit_codes={0, 3010, 1641}, max_parallel_targets=5)
        self.repo.save_deploy_settings(settings)

        loaded = self.repo.load_deploy_settings()

        assert loaded.accepted_exit_codes == frozenset({0, 3010, 1641})
        assert loaded.max_parallel_targets == 5

    def test_invalid_settings(self):
        (self.temp_dir / "deploy_settings.json").write_text(json.dumps({"max_parallel_targets": 99}))
        with pytest.raises(ValueError, match="Invalid deployment settings"):
            self.repo.load_deploy_settings()

    def test_list_credential_refs(self):
        assert self.repo.list_credential_refs() == []
        cred_dir = self.temp_dir / "credentials"
        cred_dir.mkdir()
        (cred_dir / "b.json").write_text("{}")
        (cred_dir / "a.json").write_text("{}")
        (cred_dir / ".salt").write_bytes(b"x")

        assert self.repo.list_credential_refs() == ["a", "b"]


class TestCredentialManager:
    """Test cases for CredentialManager."""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.repo = ConfigRepository(self.temp_dir)
        self.manager = CredentialManager(self.repo, master_password="master")
        self.credential = Credential(username="CORP\\deploy", password=SecretStr("s3cret"))

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def test_encrypt_decrypt(self):
        stored = self.manager.encrypt_credential(self.credential)

        assert stored["encrypted"] is True
        assert "s3cret" not in json.dumps(stored)

        decrypted = self.manager.decrypt_credential(stored)
        assert decrypted.username == "CORP\\deploy"
        assert decrypted.get_password() == "s3cret"

    def test_save_and_load(self):
        self.manager.save_encrypted_credential("admin", self.credential)

        assert (self.temp_dir / "credentials" / "admin.json").exists()
        assert (self.temp_dir / "credentials" / ".salt").exists()

        fresh = CredentialManager(self.repo, master_password="master")
        assert fresh.load_decrypted_credential("admin").get_password() == "s3cret"

    def test_wrong_master_password(self):
        self.manager.save_encrypted_credential("admin", self.credential)

        wrong = CredentialManager(self.repo, master_password="nope")
        with pytest.raises(ValueError, match="wrong master password"):
            wrong.load_decrypted_credential("admin")

    def test_legacy_plain_credential(self):
        stored = {"username": "user", "password": "pw"}
        credential = CredentialManager(self.repo).decrypt_credential(stored)
        assert credential.get_password() == "pw"

    def test_master_password_required(self):
        with pytest.raises(ValueError, match="Master password required"):
            CredentialManager(self.repo).encrypt_credential(self.credential)


class TestConfigManager:
    """Test cases for ConfigManager."""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def test_settings_cached(self):
        manager = ConfigManager(self.temp_dir)
        assert manager.load_settings() is manager.load_settings()

    def test_invalid_settings_raise_configuration_error(self):
        (self.temp_dir / "deploy_settings.json").write_text(json.dumps({"staging_directory": "C:\\"}))
        with pytest.raises(ConfigurationError):
            ConfigManager(self.temp_dir).load_settings()

    def test_credential_with_env_master_password(self):
        credential = Credential(username="deploy", password=SecretStr("pw"))
        with patch.dict("os.environ", {MASTER_PASSWORD_ENV: "master"}):
            ConfigManager(self.temp_dir).save_credential("admin", credential)
            loaded = ConfigManager(self.temp_dir).get_credential("admin")

        assert loaded.username == "deploy"
        assert loaded.get_password() == "pw"

    def test_master_password_prompted_only_for_encrypted(self):
        cred_dir = self.temp_dir / "credentials"
        cred_dir.mkdir()
        (cred_dir / "plain.json").write_text(json.dumps({"username": "u", "password": "p"}))
        prompt = Mock(return_value="master")

        with patch.dict("os.environ", {}, clear=True):
            credential = ConfigManager(self.temp_dir, password_prompt=prompt).get_credential("plain")

        assert credential.username == "u"
        prompt.assert_not_called()

    def test_missing_credential(self):
        with pytest.raises(ConfigurationError):
            ConfigManager(self.temp_dir).get_credential("missing")


class TestDeploySettings:
    """Test cases for settings validation."""

    def test_defaults(self):
        settings = DeploySettings()
        assert settings.staging_directory == "C:\\Windows\\Temp\\WinPushStaging"
        assert settings.accepted_exit_codes == frozenset({0, 3010})
        assert settings.reboot_timeout == 30
        assert settings.max_parallel_targets == 1
        assert settings.staging_share == "C$"
        assert settings.staging_relative.parts == ("Windows", "Temp", "WinPushStaging")

    def test_other_drive(self):
        settings = DeploySettings(staging_directory="D:\\Deploy\\Stage")
        assert settings.staging_share == "D$"

    @pytest.mark.parametrize("value", ["C:\\", "relative\\dir", ""])
    def test_invalid_staging_directory(self, value):
        with pytest.raises(ValidationError):
            DeploySettings(staging_directory=value)

    def test_empty_accepted_codes(self):
        with pytest.raises(ValidationError):
            DeploySettings(accepted_exit_codes=[])

    def test_parallel_bounds(self):
        with pytest.raises(ValidationError):
            DeploySettings(max_parallel_targets=0)
        with pytest.raises(ValidationError):
            DeploySettings(max_parallel_targets=21)

    def test_probe_ports_validated(self):
        with pytest.raises(ValidationError):
            DeploySettings(connectivity={"probe_ports": [0]})
