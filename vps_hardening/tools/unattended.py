"""
unattended-upgrades configuration.
"""

import logging
from typing import Optional

from ..core.config import Settings
from ..platforms.base import BasePlatform
from ..utils.config_editing import get_apt_option, set_apt_option

logger = logging.getLogger(__name__)

PACKAGES = ("unattended-upgrades", "apt-listchanges")

UPDATE_LISTS_KEY = "APT::Periodic::Update-Package-Lists"
UNATTENDED_UPGRADE_KEY = "APT::Periodic::Unattended-Upgrade"
AUTOMATIC_REBOOT_KEY = "Unattended-Upgrade::Automatic-Reboot"


class UnattendedUpgrades:
    """Manages 20auto-upgrades and 50unattended-upgrades."""

    def __init__(self, platform: BasePlatform, settings: Settings):
        self.platform = platform
        self.config_path = settings.unattended_config_path
        self.periodic_path = settings.auto_upgrades_path

    def config_exists(self) -> bool:
        return self.platform.file_exists(self.config_path)

    def periodic_option(self, key: str) -> Optional[str]:
        if not self.platform.file_exists(self.periodic_path):
            return None
        return get_apt_option(self.platform.read_config_file(self.periodic_path), key)

    def periodic_enabled(self, key: str) -> bool:
        value = self.periodic_option(key)
        return value is not None and value not in ("0", "")

    def reconfigure(self) -> None:
        self.platform.run([
            "dpkg-reconfigure", "-f", "noninteractive", "-plow", "unattended-upgrades"
        ])

    def enable_periodic(self) -> bool:
        """Turn on the daily list refresh and upgrade run."""
        content = ""
        if self.platform.file_exists(self.periodic_path):
            content = self.platform.read_config_file(self.periodic_path)

        content = set_apt_option(content, UPDATE_LISTS_KEY, "1")
        content = set_apt_option(content, UNATTENDED_UPGRADE_KEY, "1")
        return self.platform.write_config_file(self.periodic_path, content)

    def set_automatic_reboot(self, enabled: bool = True) -> bool:
        """Flip the automatic-reboot option, leaving every other line alone."""
        content = ""
        if self.config_exists():
            content = self.platform.read_config_file(self.config_path)

        content = set_apt_option(content, AUTOMATIC_REBOOT_KEY, "true" if enabled else "false")
        changed = self.platform.write_config_file(self.config_path, content)
        if changed:
            logger.info("Set %s to %s", AUTOMATIC_REBOOT_KEY, enabled)
        return changed
