"""
Unit tests for platform implementations.

Tests command execution, error propagation and the shared file helpers.
"""

import subprocess
from unittest.mock import Mock, patch

import pytest

from vps_hardening.core.errors import CommandError
from vps_hardening.platforms.base import CommandResult
from vps_hardening.platforms.linux import LinuxPlatform
from vps_hardening.utils.os_detection import detect_system, parse_os_release

from conftest import FakePlatform


class TestLinuxPlatform:
    """Test Linux platform implementation."""

    @pytest.fixture
    def linux_platform(self):
        """Create Linux platform instance."""
        return LinuxPlatform(timeout=30)

    @patch('subprocess.run')
    def test_execute_command_success(self, mock_run, linux_platform):
        mock_run.return_value = Mock(returncode=0, stdout="Status: active\n", stderr="")

        result = linux_platform.execute_command(["ufw", "status"])

        assert result.success
        assert result.stdout == "Status: active\n"
        args, kwargs = mock_run.call_args
        assert args[0] == ["ufw", "status"]
        assert kwargs["timeout"] == 30
        assert kwargs["env"]["DEBIAN_FRONTEND"] == "noninteractive"

    @patch('subprocess.run')
    def test_execute_command_failure(self, mock_run, linux_platform):
        mock_run.return_value = Mock(returncode=100, stdout="", stderr="E: Unable to locate package")

        result = linux_platform.execute_command(["apt-get", "install", "-y", "nothing"])

        assert not result.success
        assert result.exit_code == 100
        assert result.stderr == "E: Unable to locate package"

    @patch('subprocess.run')
    def test_execute_command_timeout(self, mock_run, linux_platform):
        mock_run.side_effect = subprocess.TimeoutExpired(["apt-get", "update"], 30)

        result = linux_platform.execute_command(["apt-get", "update"])

        assert result.exit_code == -1
        assert "timed out" in result.stderr

    @patch('subprocess.run')
    def test_missing_executable(self, mock_run, linux_platform):
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory")

        result = linux_platform.execute_command(["fail2ban-client", "status"])

        assert result.exit_code == 127

    @patch('vps_hardening.platforms.linux.os.geteuid', return_value=0)
    def test_is_root(self, mock_geteuid, linux_platform):
        assert linux_platform.is_root()

    def test_current_user_behind_sudo(self, linux_platform, monkeypatch):
        monkeypatch.setenv("SUDO_USER", "alice")
        assert linux_platform.current_user() == "alice"


class TestBasePlatform:
    """Test helpers shared by every platform."""

    def test_run_raises_on_failure(self):
        platform = FakePlatform()
        platform.respond(["systemctl", "restart", "fail2ban"], exit_code=1,
                         stderr="Job for fail2ban.service failed.")

        with pytest.raises(CommandError) as exc_info:
            platform.run(["systemctl", "restart", "fail2ban"])

        error = exc_info.value
        assert error.exit_code == 1
        assert error.argv == ["systemctl", "restart", "fail2ban"]
        assert error.message == (
            "Command failed (1): systemctl restart fail2ban\nJob for fail2ban.service failed."
        )

    def test_run_unchecked(self):
        platform = FakePlatform()
        platform.respond(["ufw", "status"], exit_code=1)

        assert not platform.run(["ufw", "status"], check=False).success

    def test_result_lines(self):
        result = CommandResult(argv=["x"], stdout="a\n\n  \nb\n")
        assert result.lines == ["a", "b"]

    def test_write_config_file_reports_change(self, tmp_path):
        platform = FakePlatform()
        path = tmp_path / "etc" / "jail.local"

        assert platform.write_config_file(path, "[DEFAULT]\n") is True
        assert platform.write_config_file(path, "[DEFAULT]\n") is False
        assert path.read_text() == "[DEFAULT]\n"

    def test_backups_never_overwrite(self, tmp_path):
        platform = FakePlatform()
        path = tmp_path / "sshd_config"
        path.write_text("Port 22\n")

        with patch('vps_hardening.platforms.base.time.time', return_value=1700000000):
            first = platform.backup_file(path)
            path.write_text("Port 2222\n")
            second = platform.backup_file(path)

        assert first.name == "sshd_config.backup.1700000000"
        assert second.name == "sshd_config.backup.1700000000.1"
        assert first.read_text() == "Port 22\n"
        assert second.read_text() == "Port 2222\n"

    def test_backup_of_missing_file(self, tmp_path):
        with pytest.raises(IOError, match="Failed to backup"):
            FakePlatform().backup_file(tmp_path / "missing")

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            FakePlatform().read_config_file(tmp_path / "missing")


class TestOSDetection:
    """Test host information gathering."""

    def test_parse_os_release(self):
        info = parse_os_release(
            'NAME="Ubuntu"\nVERSION_ID="24.04"\n# comment\nPRETTY_NAME="Ubuntu 24.04.1 LTS"\n'
        )
        assert info == {"NAME": "Ubuntu", "VERSION_ID": "24.04", "PRETTY_NAME": "Ubuntu 24.04.1 LTS"}

    def test_detect_system(self, tmp_path):
        os_release = tmp_path / "os-release"
        os_release.write_text('PRETTY_NAME="Debian GNU/Linux 12 (bookworm)"\n')
        platform = FakePlatform()
        platform.respond(["uptime", "-p"], stdout="up 3 days, 4 hours\n")

        info = detect_system(platform, os_release_path=os_release)

        assert info.os_version == "Debian GNU/Linux 12 (bookworm)"
        assert info.uptime == "up 3 days, 4 hours"

    def test_lsb_release_fallback(self, tmp_path):
        platform = FakePlatform()
        platform.respond(["lsb_release", "-d"], stdout="Description:\tUbuntu 22.04.4 LTS\n")

        info = detect_system(platform, os_release_path=tmp_path / "missing")

        assert info.os_version == "Ubuntu 22.04.4 LTS"

    def test_unknown_distribution(self, tmp_path):
        platform = FakePlatform()
        platform.respond(["lsb_release", "-d"], exit_code=127)
        platform.respond(["uptime", "-p"], exit_code=1)

        info = detect_system(platform, os_release_path=tmp_path / "missing")

        assert info.os_version == "Unknown Linux Distribution"
        assert info.uptime is None
