"""
Package manager and service manager wrappers.
"""

import logging
from typing import Optional

from ..core.errors import CommandError
from ..platforms.base import BasePlatform

logger = logging.getLogger(__name__)


class Apt:
    """apt/apt-get access for installs and pending-upgrade counts."""

    def __init__(self, platform: BasePlatform):
        self.platform = platform

    def is_available(self) -> bool:
        """Whether the apt front end used for package queries is installed."""
        return self.platform.which("apt")

    def install(self, *packages: str) -> None:
        """
        Refresh package lists and install packages.

        Raises:
            CommandError: If either apt-get call fails
        """
        logger.info("Installing %s", ", ".join(packages))
        self.platform.run(["apt-get", "update"])
        self.platform.run(["apt-get", "install", "-y", *packages])

    def pending_upgrades(self) -> Optional[int]:
        """
        Number of upgradable packages, or None when apt cannot be queried.
        """
        if not self.is_available():
            return None

        result = self.platform.run(["apt", "list", "--upgradable"], check=False)
        if not result.success:
            return None

        return len([
            line for line in result.lines
            if not line.startswith("Listing") and not line.startswith("WARNING")
        ])


class ServiceManager:
    """systemd service control."""

    def __init__(self, platform: BasePlatform):
        self.platform = platform

    def is_active(self, service_name: str) -> bool:
        result = self.platform.run(
            ["systemctl", "is-active", "--quiet", service_name], check=False
        )
        return result.success

    def enable(self, service_name: str) -> None:
        self.platform.run(["systemctl", "enable", service_name])

    def restart(self, service_name: str) -> None:
        self.platform.run(["systemctl", "restart", service_name])

    def reload(self, *service_names: str) -> str:
        """
        Reload the first of several alternative unit names that succeeds.

        Returns:
            str: The unit that was reloaded

        Raises:
            ValueError: If no unit name is given
            CommandError: The failure of the first unit if none could be reloaded
        """
        if not service_names:
            raise ValueError("At least one service name is required")

        first_error: Optional[CommandError] = None
        for name in service_names:
            try:
                self.platform.run(["systemctl", "reload", name])
                return name
            except CommandError as e:
                logger.debug("Reload of %s failed: %s", name, e)
                # report the primary unit, not a missing fallback
                if first_error is None:
                    first_error = e

        raise first_error
