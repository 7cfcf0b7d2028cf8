"""
Tests for the command-line interface

The workflow itself is patched out; these tests cover option handling,
exit codes and output.
"""

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from cpai_provisioner import __version__
from cpai_provisioner.cli import EXIT_CANCELLED, main
from cpai_provisioner.core.exceptions import PrivilegeError, ProvisioningCancelled
from cpai_provisioner.docker.models import ContainerInfo, DockerStatus
from cpai_provisioner.provisioning.models import ProvisioningReport
from cpai_provisioner.provisioning.repair import RepairCommand, RepairReport, RepairStepResult

PROVISIONER = "cpai_provisioner.provisioning.orchestrator.Provisioner"


def dir_args(tmp_path) -> list[str]:
    return [
        "--data-dir", str(tmp_path / "data"),
        "--modules-dir", str(tmp_path / "modules"),
        "--scripts-dir", str(tmp_path / "scripts"),
    ]


class TestVersion:
    """Tests for the command group"""

    def test_version(self):
        """Test --version prints the package version"""
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestInstall:
    """Tests for the install command"""

    def test_success_prints_summary(self, tmp_path):
        """Test a finished run exits 0 with the summary"""
        report = ProvisioningReport(
            container_name="codeproject-ai", base_url="http://localhost:32168", api_ready=True
        )
        with patch(PROVISIONER) as provisioner_cls:
            provisioner_cls.return_value.run.return_value = report
            with patch("cpai_provisioner.provisioning.summary.get_lan_address", return_value=None):
                result = CliRunner().invoke(main, ["install", *dir_args(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "CodeProject.AI Server is installed" in result.output

    def test_options_reach_settings(self, tmp_path):
        """Test CLI options end up in the settings handed to the workflow"""
        report = ProvisioningReport(container_name="cpai-test", base_url="http://localhost:40000")
        with patch(PROVISIONER) as provisioner_cls:
            provisioner_cls.return_value.run.return_value = report
            with patch("cpai_provisioner.provisioning.summary.get_lan_address", return_value=None):
                CliRunner().invoke(
                    main,
                    [
                        "install", *dir_args(tmp_path),
                        "--port", "40000",
                        "--container-name", "cpai-test",
                        "--skip-firewall",
                        "--wait-modules",
                    ],
                )

        settings = provisioner_cls.call_args.args[0]
        assert settings.port == 40000
        assert settings.container_name == "cpai-test"
        assert settings.firewall_enabled is False
        assert settings.wait_for_module_completion is True

    def test_hard_failure_exits_1(self, tmp_path):
        """Test a critical step failure prints the hint and exits 1"""
        with patch(PROVISIONER) as provisioner_cls:
            provisioner_cls.return_value.run.side_effect = PrivilegeError()
            result = CliRunner().invoke(main, ["install", *dir_args(tmp_path)])

        assert result.exit_code == 1
        assert "Administrator privileges are required" in result.output
        assert "Recovery" in result.output

    def test_cancel_exits_130(self, tmp_path):
        """Test an interrupted run exits with the interrupt code"""
        with patch(PROVISIONER) as provisioner_cls:
            provisioner_cls.return_value.run.side_effect = ProvisioningCancelled()
            result = CliRunner().invoke(main, ["install", *dir_args(tmp_path)])

        assert result.exit_code == EXIT_CANCELLED
        assert "cancelled" in result.output

    def test_invalid_port_exits_1(self, tmp_path):
        """Test invalid configuration is rejected before the workflow starts"""
        with patch(PROVISIONER) as provisioner_cls:
            result = CliRunner().invoke(main, ["install", *dir_args(tmp_path), "--port", "70000"])

        assert result.exit_code == 1
        provisioner_cls.assert_not_called()

    def test_log_file(self, tmp_path):
        """Test --log-file receives the log"""
        log_file = tmp_path / "logs" / "install.log"
        with patch(PROVISIONER) as provisioner_cls:
            provisioner_cls.return_value.run.side_effect = PrivilegeError()
            CliRunner().invoke(main, ["install", *dir_args(tmp_path), "--log-file", str(log_file)])
        assert log_file.exists()


class TestStatus:
    """Tests for the status command"""

    def test_status_table(self, tmp_path):
        """Test engine, container and API state are shown"""
        docker = MagicMock()
        docker.get_status.return_value = DockerStatus(
            installed=True, running=True, version="Docker version 24.0.7"
        )
        docker.get_container_status.return_value = ContainerInfo(name="codeproject-ai", status="running")
        server = MagicMock()
        server.__enter__.return_value = server
        server.is_ready.return_value = True

        with patch("cpai_provisioner.docker.client.DockerClient", return_value=docker):
            with patch("cpai_provisioner.server.client.ServerClient", return_value=server):
                result = CliRunner().invoke(main, ["status", *dir_args(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Docker version 24.0.7" in result.output
        server.is_ready.assert_called_once_with(timeout=5)

    def test_container_skipped_when_daemon_down(self, tmp_path):
        """Test the container is not inspected without a daemon"""
        docker = MagicMock()
        docker.get_status.return_value = DockerStatus(installed=True, running=False)
        server = MagicMock()
        server.__enter__.return_value = server
        server.is_ready.return_value = False

        with patch("cpai_provisioner.docker.client.DockerClient", return_value=docker):
            with patch("cpai_provisioner.server.client.ServerClient", return_value=server):
                result = CliRunner().invoke(main, ["status", *dir_args(tmp_path)])

        assert result.exit_code == 0, result.output
        docker.get_container_status.assert_not_called()


class TestRepair:
    """Tests for the repair command"""

    def test_repair_table(self, tmp_path):
        """Test each repair step is listed"""
        report = ProvisioningReport(container_name="codeproject-ai", base_url="http://localhost:32168")
        report.repair = RepairReport(
            steps=[RepairStepResult(command=RepairCommand("Uninstall numpy", "true"), outcome="noop")]
        )
        report.restarted = True
        with patch(PROVISIONER) as provisioner_cls:
            provisioner_cls.return_value.repair_and_restart.return_value = report
            result = CliRunner().invoke(main, ["repair", *dir_args(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Uninstall numpy" in result.output
        assert "Repair complete" in result.output


class TestScripts:
    """Tests for the scripts command"""

    def test_writes_scripts(self, tmp_path):
        """Test the six scripts are written to the scripts directory"""
        result = CliRunner().invoke(main, ["scripts", *dir_args(tmp_path)])

        assert result.exit_code == 0, result.output
        assert len(list((tmp_path / "scripts").iterdir())) == 6
