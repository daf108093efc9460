"""
Tests for the uninstall orchestration service.
"""

from unittest.mock import MagicMock

import pytest

from fakes import FakeProbe
from winpush.deploy.uninstall import UninstallRequest, UninstallService, UninstallTarget
from winpush.domain.errors import PreconditionError, UnsupportedUninstallCommand
from winpush.domain.inventory import InstalledApplication
from winpush.domain.settings import DeploySettings


class TestUninstallService:
    """Test cases for UninstallService."""

    def setup_method(self):
        self.probe = FakeProbe()
        self.executor = MagicMock()
        self.executor.execute_uninstall.return_value = 0
        self.rebooter = MagicMock()
        self.rebooter.request.return_value = True
        self.service = UninstallService(
            DeploySettings(), executor=self.executor, probe=self.probe, rebooter=self.rebooter
        )

    def test_custom_accepted_codes(self):
        self.executor.execute_uninstall.return_value = 1

        result = self.service.uninstall(UninstallRequest(
            targets=["PC1"],
            command="MsiExec.exe /X{GUID}",
            accepted_exit_codes=[0, 3010, 1],
        ))

        assert result[0].succeeded is True
        assert result[0].exit_code == 1
        command = self.executor.execute_uninstall.call_args[0][1]
        assert command.command_line == "msiexec.exe /X{GUID} /qn /norestart"

    def test_empty_accepted_codes_rejected_before_any_target(self):
        with pytest.raises(PreconditionError):
            self.service.uninstall(UninstallRequest(
                targets=["PC1"], command="MsiExec.exe /X{GUID}", accepted_exit_codes=[]
            ))

        assert self.probe.reach_calls == []
        self.executor.execute_uninstall.assert_not_called()

    def test_exit_code_outside_default_set(self):
        self.executor.execute_uninstall.return_value = 1

        result = self.service.uninstall(UninstallRequest(targets=["PC1"], command="MsiExec.exe /X{GUID}"))

        assert result.records() == [{"Computer": "PC1", "Success": False}]

    def test_unreachable_target_not_executed(self):
        self.probe.unreachable = {"PC1"}

        result = self.service.uninstall(UninstallRequest(
            targets=["PC1", "PC2"], command="C:\\Tools\\remove.exe /S"
        ))

        assert [o.succeeded for o in result] == [False, True]
        assert result[0].exit_code is None
        assert self.executor.execute_uninstall.call_count == 1
        # Reachability only, no admin share check
        assert self.probe.share_calls == []

    def test_unsupported_command_rejected_before_any_target(self):
        entries = [
            UninstallTarget("PC1", "MsiExec.exe /X{GUID}"),
            UninstallTarget("PC2", "rundll32 thing.dll,Remove"),
        ]

        with pytest.raises(UnsupportedUninstallCommand):
            self.service.uninstall(UninstallRequest(entries=entries))

        assert self.probe.reach_calls == []
        self.executor.execute_uninstall.assert_not_called()

    def test_targets_without_command(self):
        with pytest.raises(PreconditionError):
            self.service.uninstall(UninstallRequest(targets=["PC1"]))

    def test_entries_keep_their_commands(self):
        entries = [
            UninstallTarget("PC1", "MsiExec.exe /I{AAA}"),
            UninstallTarget("PC2", '"C:\\Program Files\\B\\unins000.exe" /VERYSILENT'),
        ]

        result = self.service.uninstall(UninstallRequest(entries=entries))

        assert [o.target for o in result] == ["PC1", "PC2"]
        commands = [c[0][1] for c in self.executor.execute_uninstall.call_args_list]
        assert commands[0].arguments == "/X{AAA} /qn /norestart"
        assert commands[1].executable == "C:\\Program Files\\B\\unins000.exe"

    def test_reboot_after_success(self):
        result = self.service.uninstall(UninstallRequest(
            targets=["PC1"], command="MsiExec.exe /X{GUID}", reboot=True
        ))

        assert result[0].rebooted is True
        self.rebooter.request.assert_called_once()

    def test_unexpected_exception_recorded(self):
        self.executor.execute_uninstall.side_effect = [RuntimeError("boom"), 0]

        result = self.service.uninstall(UninstallRequest(
            targets=["PC1", "PC2"], command="MsiExec.exe /X{GUID}"
        ))

        assert [o.succeeded for o in result] == [False, True]
        assert result[0].error == "boom"


class TestUninstallTarget:
    """Test cases for building uninstall entries from inventory records."""

    def test_prefers_quiet_uninstall_string(self):
        app = InstalledApplication(
            Computer="PC1",
            Name="Contoso Agent",
            UninstallString="MsiExec.exe /I{AAA}",
            QuietUninstallString='"C:\\Contoso\\uninstall.exe" /quiet',
        )

        entry = UninstallTarget.from_application(app)

        assert entry == UninstallTarget("PC1", '"C:\\Contoso\\uninstall.exe" /quiet')

    def test_falls_back_to_uninstall_string(self):
        app = InstalledApplication(Computer="PC1", Name="Contoso", UninstallString="MsiExec.exe /I{AAA}",
                                   QuietUninstallString="")

        assert UninstallTarget.from_application(app).command == "MsiExec.exe /I{AAA}"

    def test_no_command(self):
        app = InstalledApplication(Computer="PC1", Name="Contoso")
        with pytest.raises(UnsupportedUninstallCommand):
            UninstallTarget.from_application(app)
