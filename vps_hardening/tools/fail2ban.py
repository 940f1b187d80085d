"""
fail2ban intrusion-prevention configuration.
"""

import logging
import re
from typing import List, Optional

from ..core.config import Settings
from ..core.models import PostureProfile
from ..platforms.base import BasePlatform
from ..utils.config_editing import get_ini_option, set_ini_option
from .system import ServiceManager

logger = logging.getLogger(__name__)

SERVICE_NAME = "fail2ban"
SSH_JAIL = "sshd"

_BANNED = re.compile(r'Banned IP list:\s*(.*)$', re.MULTILINE)


def parse_banned_ips(jail_status: str) -> List[str]:
    """Banned addresses from ``fail2ban-client status <jail>`` output."""
    match = _BANNED.search(jail_status)
    if not match:
        return []
    return match.group(1).split()


def jail_port(ssh_port: int) -> str:
    """Port list for the SSH jail so bans also cover a moved daemon."""
    return "ssh" if ssh_port == 22 else f"ssh,{ssh_port}"


class Fail2ban:
    """Manages jail.local and the fail2ban service."""

    def __init__(self, platform: BasePlatform, settings: Settings):
        self.platform = platform
        self.jail_conf_path = settings.jail_conf_path
        self.jail_local_path = settings.jail_local_path
        self.services = ServiceManager(platform)

    def is_installed(self) -> bool:
        return self.platform.which("fail2ban-client")

    def is_running(self) -> bool:
        return self.services.is_active(SERVICE_NAME)

    def jail_status(self, jail: str = SSH_JAIL) -> Optional[str]:
        """Status text of a jail, None if the jail does not exist."""
        result = self.platform.run(["fail2ban-client", "status", jail], check=False)
        if not result.success:
            return None
        return result.stdout

    def ensure_jail_local(self) -> bool:
        """
        Create jail.local from the shipped jail.conf if it is missing.

        Returns:
            bool: True if the file was created
        """
        if self.platform.file_exists(self.jail_local_path):
            return False

        if self.platform.file_exists(self.jail_conf_path):
            self.platform.copy_file(self.jail_conf_path, self.jail_local_path)
            logger.info("Seeded %s from %s", self.jail_local_path, self.jail_conf_path)
        else:
            self.platform.write_config_file(self.jail_local_path, "[DEFAULT]\n")
            logger.info("Created empty %s", self.jail_local_path)
        return True

    def configure(self, profile: PostureProfile) -> bool:
        """
        Write the posture's ban thresholds and enable the SSH jail.

        Returns:
            bool: True if jail.local changed
        """
        thresholds = profile.fail2ban_thresholds
        values = {
            "maxretry": str(thresholds.maxretry),
            "findtime": str(thresholds.findtime),
            "bantime": str(thresholds.bantime),
        }

        content = self.platform.read_config_file(self.jail_local_path)
        for key, value in values.items():
            content = set_ini_option(content, "DEFAULT", key, value)
            # a jail-level override would shadow DEFAULT
            if get_ini_option(content, SSH_JAIL, key) is not None:
                content = set_ini_option(content, SSH_JAIL, key, value)

        content = set_ini_option(content, SSH_JAIL, "enabled", "true")
        content = set_ini_option(content, SSH_JAIL, "port", jail_port(profile.ssh_port))

        return self.platform.write_config_file(self.jail_local_path, content)

    def enable_and_start(self) -> None:
        self.services.enable(SERVICE_NAME)
        # restart picks up a changed jail.local on re-runs
        self.services.restart(SERVICE_NAME)
