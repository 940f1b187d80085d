"""
Test fixtures and utilities for the VPS hardening test suite.

FakePlatform stands in for a Debian host: it records every command, answers
from canned responses and keeps just enough state (installed tools, running
services, UFW rules) for the auditor and hardener to converge the way they
do on a real machine. Configuration files live under tmp_path.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import pytest

from vps_hardening.core.config import Settings
from vps_hardening.platforms.base import BasePlatform, CommandResult

# Package name -> executable that shows it is installed
PACKAGE_TOOLS = {
    "ufw": "ufw",
    "fail2ban": "fail2ban-client",
    "unattended-upgrades": "unattended-upgrade",
}


class FakePlatform(BasePlatform):
    """In-memory host with recorded commands."""

    def __init__(self, root: bool = True, installed: Iterable[str] = ("apt", "apt-get"),
                 user: str = "alice"):
        self.root = root
        self.installed: Set[str] = set(installed)
        self.user = user
        self.active_services: Set[str] = set()
        self.ufw_active = False
        self.ufw_rules: List[str] = []
        self.responses: Dict[Tuple[str, ...], CommandResult] = {}
        self.failing: Set[Tuple[str, ...]] = set()
        self.commands: List[List[str]] = []

    def respond(self, argv: Sequence[str], stdout: str = "", exit_code: int = 0,
                stderr: str = "") -> None:
        """Canned result for every command starting with argv."""
        self.responses[tuple(argv)] = CommandResult(
            argv=list(argv), stdout=stdout, stderr=stderr, exit_code=exit_code
        )

    def fail(self, argv: Sequence[str]) -> None:
        self.failing.add(tuple(argv))

    def ran(self, argv: Sequence[str]) -> bool:
        return list(argv) in self.commands

    def execute_command(self, argv: Sequence[str], timeout: Optional[int] = None) -> CommandResult:
        argv = list(argv)
        self.commands.append(argv)

        if tuple(argv) in self.failing:
            return CommandResult(argv=argv, stderr="simulated failure", exit_code=1)

        for length in range(len(argv), 0, -1):
            canned = self.responses.get(tuple(argv[:length]))
            if canned is not None:
                return canned.model_copy(update={"argv": argv})

        return self._simulate(argv)

    def _simulate(self, argv: List[str]) -> CommandResult:
        def ok(stdout: str = "") -> CommandResult:
            return CommandResult(argv=argv, stdout=stdout)

        if argv[:2] == ["apt-get", "install"]:
            for package in argv[3:]:
                self.installed.add(PACKAGE_TOOLS.get(package, package))
            return ok()

        if argv[0] == "systemctl":
            action, unit = argv[1], argv[-1]
            if action == "is-active":
                exit_code = 0 if unit in self.active_services else 3
                return CommandResult(argv=argv, exit_code=exit_code)
            if action in ("start", "restart"):
                self.active_services.add(unit)
            return ok()

        if argv[0] == "ufw":
            return self._simulate_ufw(argv)

        return ok()

    def _simulate_ufw(self, argv: List[str]) -> CommandResult:
        if argv[1:] == ["status"]:
            if not self.ufw_active:
                return CommandResult(argv=argv, stdout="Status: inactive\n")
            rows = "".join(f"{rule.split()[-1]:<27}{rule.split()[1].upper():<11}Anywhere\n"
                           for rule in self.ufw_rules)
            return CommandResult(
                argv=argv,
                stdout="Status: active\n\nTo                         Action      From\n"
                       "--                         ------      ----\n" + rows,
            )
        if argv[1:] == ["show", "added"]:
            listing = "\n".join(self.ufw_rules) if self.ufw_rules else "(None)"
            return CommandResult(argv=argv, stdout=f"Added user rules (see 'ufw status' for running firewall):\n{listing}\n")
        if argv[1] in ("allow", "limit"):
            self.ufw_rules.append(" ".join(argv))
        elif argv[1:] == ["--force", "enable"]:
            self.ufw_active = True
        return CommandResult(argv=argv)

    def which(self, tool: str) -> bool:
        return tool in self.installed

    def is_root(self) -> bool:
        return self.root

    def current_user(self) -> str:
        return self.user

    def mutating_commands(self) -> List[List[str]]:
        """Commands that would change a real host."""
        readonly = {"is-active", "status", "show", "list", "info", "-nG", "-d", "-p"}
        return [argv for argv in self.commands if len(argv) < 2 or argv[1] not in readonly]


DEFAULT_SSHD_CONFIG = """\
# This is the sshd server system-wide configuration file.

Include /etc/ssh/sshd_config.d/*.conf

#Port 22
#AddressFamily any

#PermitRootLogin prohibit-password
#PubkeyAuthentication yes

# To disable tunneled clear text passwords, change to no here!
#PasswordAuthentication yes
#PermitEmptyPasswords no

KbdInteractiveAuthentication no
UsePAM yes
X11Forwarding yes
Subsystem sftp /usr/lib/openssh/sftp-server
"""

SAMPLE_JAIL_CONF = """\
[INCLUDES]
before = paths-debian.conf

[DEFAULT]
ignoreip = 127.0.0.1/8
bantime  = 10m
findtime  = 10m
maxretry = 5
backend = auto

[sshd]
port    = ssh
logpath = %(sshd_log)s
backend = %(sshd_backend)s

[apache-auth]
port     = http,https
maxretry = 6
"""

SAMPLE_UNATTENDED_CONFIG = """\
Unattended-Upgrade::Allowed-Origins {
        "${distro_id}:${distro_codename}-security";
};

//Unattended-Upgrade::Remove-Unused-Dependencies "false";

// Automatically reboot *WITHOUT CONFIRMATION* if
//  the file /var/run/reboot-required is found after the upgrade
//Unattended-Upgrade::Automatic-Reboot "false";

//Unattended-Upgrade::Automatic-Reboot-Time "02:00";
"""


@pytest.fixture
def settings(tmp_path):
    """Settings with every file under tmp_path."""
    return Settings(
        sshd_config_path=tmp_path / "ssh" / "sshd_config",
        authorized_keys_path=tmp_path / "home" / ".ssh" / "authorized_keys",
        jail_conf_path=tmp_path / "fail2ban" / "jail.conf",
        jail_local_path=tmp_path / "fail2ban" / "jail.local",
        unattended_config_path=tmp_path / "apt" / "50unattended-upgrades",
        auto_upgrades_path=tmp_path / "apt" / "20auto-upgrades",
        auth_log_path=tmp_path / "log" / "auth.log",
        apt_history_path=tmp_path / "log" / "apt" / "history.log",
        action_log_path=tmp_path / "log" / "vps-hardening.log",
    )


def write_file(path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


@pytest.fixture
def host(settings):
    """A stock host: default sshd_config, jail.conf and unattended-upgrades shipped."""
    write_file(settings.sshd_config_path, DEFAULT_SSHD_CONFIG)
    write_file(settings.jail_conf_path, SAMPLE_JAIL_CONF)
    write_file(settings.unattended_config_path, SAMPLE_UNATTENDED_CONFIG)
    return settings


@pytest.fixture
def fake_platform():
    return FakePlatform()
