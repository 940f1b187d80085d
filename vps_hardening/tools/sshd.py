"""
OpenSSH daemon configuration.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.config import Settings
from ..core.models import PostureProfile
from ..platforms.base import BasePlatform
from ..utils.config_editing import set_directive
from .system import ServiceManager

logger = logging.getLogger(__name__)

DEFAULT_SSH_PORT = 22

# systemd unit name differs between Debian (ssh) and others (sshd)
SSH_UNITS = ("ssh", "sshd")


def hardened_directives(profile: PostureProfile) -> List[Tuple[str, str]]:
    """sshd directives enforced for a posture, in file order."""
    return [
        ("PermitRootLogin", "no"),
        ("PubkeyAuthentication", "yes"),
        ("PasswordAuthentication", "no"),
        ("Port", str(profile.ssh_port)),
        ("PermitEmptyPasswords", "no"),
    ]


class SSHDaemon:
    """Reads and rewrites sshd_config and reloads the daemon."""

    def __init__(self, platform: BasePlatform, settings: Settings):
        self.platform = platform
        self.config_path = settings.sshd_config_path
        self.authorized_keys_path = settings.authorized_keys_path
        self.services = ServiceManager(platform)

    def config_exists(self) -> bool:
        return self.platform.file_exists(self.config_path)

    def read_config(self) -> str:
        return self.platform.read_config_file(self.config_path)

    def authorized_key_count(self) -> Optional[int]:
        """Keys in the operator's authorized_keys, None if the file is missing."""
        if not self.platform.file_exists(self.authorized_keys_path):
            return None
        content = self.platform.read_config_file(self.authorized_keys_path)
        return len([
            line for line in content.splitlines()
            if line.strip() and not line.strip().startswith('#')
        ])

    def backup(self) -> Path:
        return self.platform.backup_file(self.config_path)

    def apply(self, profile: PostureProfile) -> bool:
        """
        Rewrite the hardened directives for a posture.

        Returns:
            bool: True if the file content changed
        """
        content = self.read_config()
        for key, value in hardened_directives(profile):
            content = set_directive(content, key, value)
            logger.debug("sshd_config: %s %s", key, value)
        return self.platform.write_config_file(self.config_path, content)

    def reload(self) -> str:
        return self.services.reload(*SSH_UNITS)
