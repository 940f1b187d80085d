"""
Interactive, confirm-gated hardening of a VPS.

The Hardener walks the hardening steps in a fixed order. Each step is
offered to the operator through a ConfirmationProvider; declined steps are
skipped without touching the host. A completed step appends one line to the
action log. Any failing external command aborts the whole run: there is no
rollback beyond the SSH config backup, which the operator restores by hand.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from rich.console import Console

from ..platforms.base import BasePlatform
from ..reporting.console import StatusPrinter
from ..tools.docker import Docker
from ..tools.fail2ban import Fail2ban
from ..tools.sshd import SSHDaemon, hardened_directives
from ..tools.system import Apt
from ..tools.ufw import UFWFirewall
from ..tools.unattended import PACKAGES as UNATTENDED_PACKAGES, UnattendedUpgrades
from ..utils.prompts import ConfirmationProvider
from .action_log import ActionLog
from .config import Settings
from .errors import HardeningError, InvalidSelectionError, PrivilegeError
from .models import POSTURE_CHOICES, POSTURES, HardeningStep, PostureProfile

logger = logging.getLogger(__name__)


def select_posture(selection: str) -> PostureProfile:
    """
    Map a menu choice to its posture profile.

    Raises:
        InvalidSelectionError: For anything but one of the offered choices
    """
    posture = POSTURE_CHOICES.get(selection.strip())
    if posture is None:
        raise InvalidSelectionError(
            f"Invalid selection: {selection!r}. Exiting.",
            remediation=f"Choose one of {', '.join(POSTURE_CHOICES)}",
        )
    return POSTURES[posture]


class Hardener:
    """
    Applies the hardening steps for one posture.

    Args:
        platform: Host access
        settings: File locations and ports
        confirmations: Source of yes/no answers
        action_log: Audit trail (defaults to the configured log path)
        console: Output console
    """

    def __init__(self, platform: BasePlatform, settings: Settings,
                 confirmations: ConfirmationProvider,
                 action_log: Optional[ActionLog] = None,
                 console: Optional[Console] = None):
        self.platform = platform
        self.settings = settings
        self.confirmations = confirmations
        self.action_log = action_log or ActionLog(settings.action_log_path)
        self.printer = StatusPrinter(console)

        self.apt = Apt(platform)
        self.sshd = SSHDaemon(platform, settings)
        self.ufw = UFWFirewall(platform)
        self.fail2ban = Fail2ban(platform, settings)
        self.unattended = UnattendedUpgrades(platform, settings)
        self.docker = Docker(platform)

        self.ssh_backup: Optional[Path] = None

    def require_privileges(self) -> None:
        """
        Raises:
            PrivilegeError: If not running as root
        """
        if not self.platform.is_root():
            raise PrivilegeError(
                "This command requires root or sudo privileges.",
                remediation="Run with: sudo vps-harden",
            )

    def steps(self) -> List[Tuple[HardeningStep, Callable[[PostureProfile], Optional[str]]]]:
        """Step handlers in presentation order."""
        return [
            (HardeningStep.SSH, self.harden_ssh),
            (HardeningStep.FIREWALL, self.configure_firewall),
            (HardeningStep.INTRUSION_PREVENTION, self.configure_fail2ban),
            (HardeningStep.AUTO_UPDATES, self.configure_auto_updates),
            (HardeningStep.DOCKER, self.review_docker),
        ]

    def run(self, profile: PostureProfile) -> List[HardeningStep]:
        """
        Offer every step and apply the confirmed ones.

        Args:
            profile: Selected posture

        Returns:
            List[HardeningStep]: Steps that were completed

        Raises:
            PrivilegeError: If not running as root
            CommandError: If any external command fails
        """
        self.require_privileges()
        logger.info("Hardening with posture %s", profile.name)

        completed = []
        for step, handler in self.steps():
            description = handler(profile)
            if description is None:
                continue
            self.action_log.append(description)
            completed.append(step)
            logger.info("Completed step %s", step.value)

        self.print_next_steps(profile, completed)
        return completed

    def harden_ssh(self, profile: PostureProfile) -> Optional[str]:
        self.printer.header("Step 1: SSH Hardening")
        port = profile.ssh_port

        if not self.confirmations.confirm(
            f"Harden SSH (disable root login, key-only auth, port {port})?"
        ):
            self.printer.warning("Skipped SSH hardening")
            return None

        if not self.sshd.config_exists():
            raise HardeningError(
                f"SSH config file not found: {self.sshd.config_path}",
                remediation="Install openssh-server and re-run",
            )

        self.ssh_backup = self.sshd.backup()
        self.printer.success(f"Backed up SSH config to {self.ssh_backup}")

        if self.sshd.apply(profile):
            for key, value in hardened_directives(profile):
                self.printer.success(f"Set {key} {value}")
        else:
            self.printer.success("SSH configuration already hardened")

        # Open the new port first so the reload cannot lock out this session
        if self.ufw.is_installed() and self.ufw.is_active():
            if self.ufw.allow_port(port, limit=profile.ufw_strict):
                self.printer.success(f"Allowed SSH port {port} in active UFW firewall")

        self.sshd.reload()
        self.printer.success("Reloaded SSH configuration")
        self.printer.warning(f"Remember: SSH is now on port {port}. Update your SSH client.")

        return f"SSH hardened: disabled root, key-only auth, port={port}"

    def configure_firewall(self, profile: PostureProfile) -> Optional[str]:
        self.printer.header("Step 2: UFW Firewall")

        if not self.confirmations.confirm("Configure UFW firewall?"):
            self.printer.warning("Skipped UFW configuration")
            return None

        if not self.ufw.is_installed():
            self.apt.install("ufw")
            self.printer.success("Installed UFW")

        self.ufw.set_default_policies()
        self.printer.success("Set default deny incoming, allow outgoing")

        self.ufw.allow_port(profile.ssh_port, limit=profile.ufw_strict)
        mode = "rate-limited" if profile.ufw_strict else "allowed"
        self.printer.success(f"SSH on port {profile.ssh_port} {mode}")

        self.ufw.allow_port(self.settings.app_port)
        self.printer.success(f"Allowed application port {self.settings.app_port}")

        tls_port = self.settings.tls_port
        if self.confirmations.confirm(f"Allow HTTPS (port {tls_port}) for reverse proxy?"):
            self.ufw.allow_port(tls_port)
            self.printer.success("Allowed HTTPS")

        self.ufw.enable()
        self.printer.success("UFW firewall enabled")

        return "UFW firewall configured and enabled"

    def configure_fail2ban(self, profile: PostureProfile) -> Optional[str]:
        self.printer.header("Step 3: Fail2ban (Intrusion Prevention)")

        if not self.confirmations.confirm("Install and configure Fail2ban?"):
            self.printer.warning("Skipped Fail2ban installation")
            return None

        if not self.fail2ban.is_installed():
            self.apt.install("fail2ban")
            self.printer.success("Installed Fail2ban")

        if self.fail2ban.ensure_jail_local():
            self.printer.success(f"Created {self.fail2ban.jail_local_path}")

        self.fail2ban.configure(profile)
        thresholds = profile.fail2ban_thresholds
        preset = "aggressive" if profile.fail2ban_aggressive else "standard"
        self.printer.success(
            f"Configured Fail2ban ({preset}: {thresholds.maxretry} attempts in "
            f"{thresholds.findtime}s, {thresholds.bantime}s ban)"
        )

        self.fail2ban.enable_and_start()
        self.printer.success("Enabled and started Fail2ban")

        return f"Fail2ban installed and configured (aggressive={str(profile.fail2ban_aggressive).lower()})"

    def configure_auto_updates(self, profile: PostureProfile) -> Optional[str]:
        self.printer.header("Step 4: Automatic Security Updates")

        if not self.confirmations.confirm("Enable automatic security updates?"):
            self.printer.warning("Skipped automatic updates setup")
            return None

        self.apt.install(*UNATTENDED_PACKAGES)
        self.printer.success("Installed unattended-upgrades")

        self.unattended.reconfigure()
        self.unattended.enable_periodic()
        self.printer.success("Enabled automatic updates")

        if profile.auto_reboot:
            self.unattended.set_automatic_reboot(True)
            self.printer.success("Enabled automatic reboot after kernel updates")
        else:
            self.printer.info("Automatic reboot disabled (manual reboot may be needed)")

        return f"Automatic security updates enabled (auto_reboot={str(profile.auto_reboot).lower()})"

    def review_docker(self, profile: PostureProfile) -> Optional[str]:
        self.printer.header("Step 5: Docker Security")

        if not self.docker.is_installed():
            self.printer.warning("Docker not installed (optional)")
            return None

        if not self.confirmations.confirm("Configure Docker security settings?"):
            self.printer.warning("Skipped Docker security review")
            return None

        for line in Docker.guidance(profile):
            self.printer.info(line)

        return "Docker security settings reviewed"

    def print_next_steps(self, profile: PostureProfile, completed: List[HardeningStep]) -> None:
        self.printer.header("Hardening Complete!")

        if completed:
            self.printer.success(f"Applied {len(completed)} hardening step(s)")
        else:
            self.printer.warning("No hardening steps were applied")

        console = self.printer.console
        console.print("\nNext steps:\n")
        console.print("1. Run audit to verify hardening:\n   vps-audit\n")
        console.print(
            f"2. Test SSH connection on port ({profile.ssh_port}):\n"
            f"   ssh -p {profile.ssh_port} user@hostname\n"
        )
        console.print("3. Review firewall rules:\n   sudo ufw status\n")
        console.print(f"4. Monitor security logs:\n   sudo tail -f {self.settings.auth_log_path}\n")

        self.printer.info(f"All changes logged to: {self.action_log.path}")
        if self.ssh_backup:
            self.printer.info(f"SSH config backed up to: {self.ssh_backup}")
