"""
Read-only security audit of a VPS.

The Auditor inspects configuration files and service state and classifies
each check as pass, warn or fail. It never changes the host, and a missing
tool or file becomes a finding rather than an exception.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..platforms.base import BasePlatform
from ..tools.docker import Docker
from ..tools.fail2ban import Fail2ban, parse_banned_ips
from ..tools.sshd import DEFAULT_SSH_PORT, SSHDaemon
from ..tools.system import Apt
from ..tools.ufw import UFWFirewall
from ..tools.unattended import UNATTENDED_UPGRADE_KEY, UPDATE_LISTS_KEY, UnattendedUpgrades
from ..utils.config_editing import get_directive
from ..utils.os_detection import detect_system
from .config import Settings
from .models import AuditReport, AuditSection, FindingStatus

logger = logging.getLogger(__name__)

RECENT_SUDO_LINES = 5


def classify_ssh_config(content: str, section: AuditSection) -> None:
    """
    Classify sshd_config text. Depends only on the text passed in.
    """
    def value(key: str) -> Optional[str]:
        found = get_directive(content, key)
        return found.lower() if found else None

    if value("PermitRootLogin") == "no":
        section.passed("ssh_root_login", "Root login disabled")
    else:
        section.failed("ssh_root_login", "Root login is enabled (consider disabling)")

    if value("PubkeyAuthentication") == "yes":
        section.passed("ssh_pubkey_auth", "Public key authentication enabled")
    else:
        section.warned("ssh_pubkey_auth", "Public key authentication not explicitly enabled")

    if value("PasswordAuthentication") == "no":
        section.passed("ssh_password_auth", "Password authentication disabled")
    else:
        section.failed(
            "ssh_password_auth",
            "Password authentication is enabled (SSH key-only is more secure)",
        )

    port = value("Port") or str(DEFAULT_SSH_PORT)
    if port != str(DEFAULT_SSH_PORT):
        section.passed("ssh_port", f"SSH port changed from default (Port: {port})")
    else:
        section.warned(
            "ssh_port",
            "SSH using default port 22 (consider changing to reduce scan attempts)",
        )

    if value("PermitEmptyPasswords") == "no":
        section.passed("ssh_empty_passwords", "Empty passwords disabled")
    else:
        section.warned("ssh_empty_passwords", "Empty passwords not explicitly disabled")


class Auditor:
    """
    Runs every audit check and collects the findings into a report.

    Each check is independent; their order only affects presentation.
    """

    def __init__(self, platform: BasePlatform, settings: Settings):
        self.platform = platform
        self.settings = settings
        self.sshd = SSHDaemon(platform, settings)
        self.ufw = UFWFirewall(platform)
        self.fail2ban = Fail2ban(platform, settings)
        self.unattended = UnattendedUpgrades(platform, settings)
        self.docker = Docker(platform)
        self.apt = Apt(platform)

    def run(self) -> AuditReport:
        """
        Perform the audit.

        Returns:
            AuditReport: System information and findings for every domain
        """
        report = AuditReport(system_info=detect_system(self.platform))

        checks: List[Callable[[], AuditSection]] = [
            self.audit_ssh,
            self.audit_firewall,
            self.audit_fail2ban,
            self.audit_auto_updates,
            self.audit_docker,
            self.audit_packages,
            self.audit_security_events,
        ]
        for check in checks:
            report.sections.append(check())

        report.completed_at = datetime.now()
        logger.info(
            "Audit complete: %d pass, %d warn, %d fail",
            report.count(FindingStatus.PASS),
            report.count(FindingStatus.WARN),
            report.count(FindingStatus.FAIL),
        )
        return report

    def audit_ssh(self) -> AuditSection:
        section = AuditSection(title="SSH Configuration")

        if self.sshd.config_exists():
            try:
                classify_ssh_config(self.sshd.read_config(), section)
            except (PermissionError, UnicodeDecodeError) as e:
                section.failed("ssh_config", f"SSH config file not readable: {e}")
        else:
            section.failed("ssh_config", "SSH config file not found")

        try:
            key_count = self.sshd.authorized_key_count()
        except (PermissionError, UnicodeDecodeError) as e:
            section.warned("ssh_authorized_keys", f"Cannot read authorized_keys: {e}")
            return section

        if key_count is not None:
            section.passed("ssh_authorized_keys", f"SSH keys configured ({key_count} keys)")
        else:
            section.warned("ssh_authorized_keys", "No SSH authorized_keys file found")

        return section

    def audit_firewall(self) -> AuditSection:
        section = AuditSection(title="Firewall (UFW)")

        if not self.ufw.is_installed():
            section.failed("ufw_installed", "UFW not installed", hint="To install: sudo apt install ufw")
            return section

        if self.ufw.is_active():
            section.passed("ufw_active", "UFW firewall is active")
            section.raw_output = self.ufw.rule_listing()
        else:
            section.warned("ufw_active", "UFW firewall is not active", hint="To enable: sudo ufw enable")

        return section

    def audit_fail2ban(self) -> AuditSection:
        section = AuditSection(title="Fail2ban (Intrusion Prevention)")

        if not self.fail2ban.is_installed():
            section.failed(
                "fail2ban_installed", "Fail2ban not installed",
                hint="To install: sudo apt install fail2ban",
            )
            return section

        if not self.fail2ban.is_running():
            section.warned(
                "fail2ban_running", "Fail2ban is installed but not running",
                hint="To start: sudo systemctl start fail2ban",
            )
            return section

        section.passed("fail2ban_running", "Fail2ban is running")

        jail_status = self.fail2ban.jail_status()
        if jail_status is None:
            section.warned("fail2ban_ssh_jail", "SSH jail not found")
            return section

        first_line = jail_status.strip().splitlines()[0] if jail_status.strip() else "sshd"
        section.note(f"SSH jail status: {first_line}")

        banned = parse_banned_ips(jail_status)
        if banned:
            section.warned("fail2ban_banned", f"Currently banned IPs: {' '.join(banned)}")

        return section

    def audit_auto_updates(self) -> AuditSection:
        section = AuditSection(title="Automatic Updates")

        if not self.unattended.config_exists():
            section.failed(
                "unattended_config", "Unattended-upgrades not configured",
                hint="To install: sudo apt install unattended-upgrades",
            )
            return section

        section.passed("unattended_config", "Unattended-upgrades configuration found")

        if self.unattended.periodic_enabled(UPDATE_LISTS_KEY):
            section.passed("auto_update_checks", "Automatic update checks enabled")
        else:
            section.warned("auto_update_checks", "Automatic update checks may not be enabled")

        if self.unattended.periodic_enabled(UNATTENDED_UPGRADE_KEY):
            section.passed("auto_security_upgrades", "Automatic security upgrades enabled")
        else:
            section.warned("auto_security_upgrades", "Automatic security upgrades may not be enabled")

        return section

    def audit_docker(self) -> AuditSection:
        section = AuditSection(title="Docker Security")

        if not self.docker.is_installed():
            section.note("Docker not installed (optional)")
            return section

        if not self.docker.is_running():
            section.warned("docker_running", "Docker installed but not running")
            return section

        section.passed("docker_running", "Docker is installed and running")

        if self.docker.user_in_docker_group(self.platform.current_user()):
            section.warned("docker_group", "Current user in docker group (can escalate to root)")
        else:
            section.passed("docker_group", "Current user not in docker group")

        if self.docker.is_rootless():
            section.passed("docker_rootless", "Docker rootless mode enabled")
        else:
            section.warned(
                "docker_rootless",
                "Docker running in rootful mode (consider rootless for better security)",
            )

        return section

    def audit_packages(self) -> AuditSection:
        section = AuditSection(title="System Security Status")

        pending = self.apt.pending_upgrades()
        if pending is None:
            section.warned("pending_updates", "Could not query package updates")
        elif pending > 0:
            section.warned(
                "pending_updates", f"Updates available: {pending} packages",
                hint="Run: sudo apt update && sudo apt upgrade",
            )
        else:
            section.passed("pending_updates", "System is up to date")

        last_update = self.platform.file_mtime(self.settings.apt_history_path)
        if last_update:
            section.note(f"Last package update: {last_update.date().isoformat()}")

        return section

    def audit_security_events(self) -> AuditSection:
        section = AuditSection(title="Recent Security Events")
        auth_log = self.settings.auth_log_path

        if not self.platform.file_exists(auth_log):
            section.note(f"{auth_log} not found")
            return section

        try:
            lines = self.platform.read_config_file(auth_log).splitlines()
        except (PermissionError, UnicodeDecodeError) as e:
            section.warned("auth_log", f"Cannot read {auth_log}: {e}")
            return section

        failed = sum(1 for line in lines if "Failed password" in line)
        if failed > 0:
            section.warned("failed_ssh_logins", f"Failed SSH login attempts: {failed}")
        else:
            section.passed("failed_ssh_logins", "No failed SSH login attempts detected")

        sudo_lines = [line for line in lines if "sudo" in line][-RECENT_SUDO_LINES:]
        if sudo_lines:
            section.note(f"Recent sudo usage detected (last {len(sudo_lines)} entries)")

        return section
