"""
Tests for the typer command line interface.

Services and inventory queries are patched at the command modules; only
argument handling, exit codes and output formatting are exercised here.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from winpush.domain.errors import InstallerNotFound, InventoryError
from winpush.domain.inventory import InstalledApplication
from winpush.domain.models import DeploymentResult, ExecutionOutcome
from winpush.infrastructure.config.manager import MASTER_PASSWORD_ENV
from winpush.interface.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("winpush.interface.cli.app.setup_logging"):
        yield


def invoke(config_dir, *args, **kwargs):
    return runner.invoke(app, ["--config-dir", str(config_dir), *args], **kwargs)


def result_of(*outcomes):
    return DeploymentResult(tuple(outcomes))


class TestDeployCommand:
    """Test cases for `winpush deploy`."""

    @patch("winpush.interface.cli.commands.deploy.DeploymentService")
    def test_json_records(self, service_cls, tmp_path):
        service_cls.return_value.deploy.return_value = result_of(
            ExecutionOutcome("PC1", 0, True),
            ExecutionOutcome.not_executed("PC2", "host is not reachable"),
        )

        result = invoke(tmp_path, "deploy", "PC1", "PC2", "-i", "Setup.msi", "--json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            {"Computer": "PC1", "Success": True},
            {"Computer": "PC2", "Success": False},
        ]

    @patch("winpush.interface.cli.commands.deploy.DeploymentService")
    def test_request_built_from_options(self, service_cls, tmp_path):
        service_cls.return_value.deploy.return_value = result_of(ExecutionOutcome("PC1", 0, True))

        result = invoke(
            tmp_path, "deploy", "PC1", "-i", "https://example.com/agent.exe",
            "-a", "/S", "--reboot", "--accept-code", "0", "--accept-code", "1641", "-p", "4",
        )

        assert result.exit_code == 0, result.output
        request = service_cls.return_value.deploy.call_args[0][0]
        assert request.targets == ["PC1"]
        assert request.installer == "https://example.com/agent.exe"
        assert request.arguments == "/S"
        assert request.reboot is True
        assert request.accepted_exit_codes == frozenset({0, 1641})
        assert request.max_parallel == 4
        assert request.credential is None

    @patch("winpush.interface.cli.commands.deploy.DeploymentService")
    def test_targets_from_stdin(self, service_cls, tmp_path):
        service_cls.return_value.deploy.return_value = result_of()

        result = invoke(tmp_path, "deploy", "-", "-i", "Setup.msi", input="PC1\n# lab\n\nPC2\n")

        assert result.exit_code == 0, result.output
        assert service_cls.return_value.deploy.call_args[0][0].targets == ["PC1", "PC2"]

    @patch("winpush.interface.cli.commands.deploy.DeploymentService")
    def test_precondition_error_exit_code(self, service_cls, tmp_path):
        service_cls.return_value.deploy.side_effect = InstallerNotFound("Installer not found: Setup.msi")

        result = invoke(tmp_path, "deploy", "PC1", "-i", "Setup.msi")

        assert result.exit_code == 2

    @patch("winpush.interface.cli.commands.deploy.DeploymentService")
    def test_invalid_settings_exit_code(self, service_cls, tmp_path):
        (tmp_path / "deploy_settings.json").write_text(json.dumps({"max_parallel_targets": 0}))

        result = invoke(tmp_path, "deploy", "PC1", "-i", "Setup.msi")

        assert result.exit_code == 1
        service_cls.assert_not_called()

    @patch("winpush.interface.cli.commands.deploy.DeploymentService")
    def test_credential_and_username_are_exclusive(self, service_cls, tmp_path):
        result = invoke(tmp_path, "deploy", "PC1", "-i", "Setup.msi", "-c", "admin", "-u", "CORP\\x")

        assert result.exit_code == 2
        service_cls.assert_not_called()

    @patch("winpush.interface.cli.commands.deploy.DeploymentService")
    def test_prompted_credential(self, service_cls, tmp_path):
        service_cls.return_value.deploy.return_value = result_of(ExecutionOutcome("PC1", 0, True))

        result = invoke(tmp_path, "deploy", "PC1", "-i", "Setup.msi", "-u", "CORP\\deploy", input="pw\n")

        assert result.exit_code == 0, result.output
        credential = service_cls.return_value.deploy.call_args[0][0].credential
        assert credential.username == "CORP\\deploy"
        assert credential.get_password() == "pw"


class TestUninstallCommand:
    """Test cases for `winpush uninstall`."""

    def test_requires_exactly_one_selector(self, tmp_path):
        assert invoke(tmp_path, "uninstall", "PC1").exit_code == 2
        assert invoke(tmp_path, "uninstall", "PC1", "--command", "x.exe", "--name", "X*").exit_code == 2

    @patch("winpush.interface.cli.commands.uninstall.UninstallService")
    def test_command_on_every_target(self, service_cls, tmp_path):
        service_cls.return_value.uninstall.return_value = result_of(
            ExecutionOutcome("PC1", 0, True), ExecutionOutcome("PC2", 0, True)
        )

        result = invoke(tmp_path, "uninstall", "PC1", "PC2", "--command", "MsiExec.exe /X{GUID}", "--json")

        assert result.exit_code == 0, result.output
        request = service_cls.return_value.uninstall.call_args[0][0]
        assert request.targets == ["PC1", "PC2"]
        assert request.command == "MsiExec.exe /X{GUID}"

    @patch("winpush.interface.cli.commands.uninstall.logger")
    @patch("winpush.interface.cli.commands.uninstall.UninstallService")
    @patch("winpush.interface.cli.commands.uninstall.InventoryQuery")
    def test_by_name_combines_query_failures(self, query_cls, service_cls, _logger, tmp_path):
        app_record = InstalledApplication(
            Computer="PC1", Name="Contoso Agent", UninstallString="MsiExec.exe /I{AAA}"
        )
        query_cls.return_value.list_applications.side_effect = [
            [app_record],
            InventoryError("PC2: Failed to establish WinRM connection"),
        ]
        service_cls.return_value.uninstall.return_value = result_of(ExecutionOutcome("PC1", 0, True))

        result = invoke(tmp_path, "uninstall", "PC1", "PC2", "--name", "Contoso*", "--json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            {"Computer": "PC1", "Success": True},
            {"Computer": "PC2", "Success": False},
        ]
        request = service_cls.return_value.uninstall.call_args[0][0]
        assert [(e.host, e.command) for e in request.entries] == [("PC1", "MsiExec.exe /I{AAA}")]

    @patch("winpush.interface.cli.commands.uninstall.logger")
    @patch("winpush.interface.cli.commands.uninstall.UninstallService")
    @patch("winpush.interface.cli.commands.uninstall.InventoryQuery")
    def test_by_name_failed_first_host_keeps_input_order(self, query_cls, service_cls, _logger, tmp_path):
        query_cls.return_value.list_applications.side_effect = [
            InventoryError("PC1: Failed to establish WinRM connection"),
            [
                InstalledApplication(Computer="PC2", Name="Contoso Agent", UninstallString="MsiExec.exe /I{AAA}"),
                InstalledApplication(Computer="PC2", Name="Contoso Tools", UninstallString="MsiExec.exe /I{BBB}"),
            ],
            InventoryError("PC3: Failed to establish WinRM connection"),
        ]
        service_cls.return_value.uninstall.return_value = result_of(
            ExecutionOutcome("PC2", 0, True), ExecutionOutcome("PC2", 1603, False)
        )

        result = invoke(tmp_path, "uninstall", "PC1", "PC2", "PC3", "--name", "Contoso*", "--json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            {"Computer": "PC1", "Success": False},
            {"Computer": "PC2", "Success": True},
            {"Computer": "PC2", "Success": False},
            {"Computer": "PC3", "Success": False},
        ]

    @patch("winpush.interface.cli.commands.uninstall.logger")
    @patch("winpush.interface.cli.commands.uninstall.UninstallService")
    @patch("winpush.interface.cli.commands.uninstall.InventoryQuery")
    def test_by_name_nothing_found(self, query_cls, service_cls, _logger, tmp_path):
        query_cls.return_value.list_applications.return_value = []

        result = invoke(tmp_path, "uninstall", "PC1", "--name", "Nothing*")

        assert result.exit_code == 0, result.output
        service_cls.assert_not_called()


class TestAppsCommand:
    """Test cases for `winpush apps`."""

    @patch("winpush.interface.cli.commands.apps.InventoryQuery")
    def test_json_listing(self, query_cls, tmp_path):
        query_cls.return_value.list_applications.return_value = [
            InstalledApplication(Computer="PC1", Name="7-Zip", Version="23.01"),
        ]

        result = invoke(tmp_path, "apps", "PC1", "--name", "7-*", "--json")

        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert records[0]["Name"] == "7-Zip"
        assert records[0]["Computer"] == "PC1"
        query_cls.return_value.list_applications.assert_called_once_with("PC1", None, "7-*")

    @patch("winpush.interface.cli.commands.apps.InventoryQuery")
    def test_failed_host_sets_exit_code(self, query_cls, tmp_path):
        query_cls.return_value.list_applications.side_effect = InventoryError("PC1: unreachable")

        result = invoke(tmp_path, "apps", "PC1")

        assert result.exit_code == 1


class TestCredentialCommands:
    """Test cases for `winpush credential`."""

    def test_set_then_list(self, tmp_path):
        with patch.dict("os.environ", {MASTER_PASSWORD_ENV: "master"}):
            result = invoke(tmp_path, "credential", "set", "admin", "-u", "CORP\\deploy", input="pw\npw\n")
            assert result.exit_code == 0, result.output
            assert (tmp_path / "credentials" / "admin.json").exists()

            listed = invoke(tmp_path, "credential", "list")

        assert listed.exit_code == 0
        assert "admin" in listed.stdout

    def test_set_without_master_password(self, tmp_path):
        prompt = MagicMock(return_value="")
        with patch.dict("os.environ", {}, clear=True), \
                patch("winpush.interface.cli.app.prompt_master_password", prompt):
            result = invoke(tmp_path, "credential", "set", "admin", "-u", "CORP\\deploy", input="pw\npw\n")

        assert result.exit_code == 1
