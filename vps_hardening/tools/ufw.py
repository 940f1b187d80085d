"""
UFW (Uncomplicated Firewall) wrapper with idempotent rule application.
"""

import logging
from typing import Set

from ..platforms.base import BasePlatform, CommandResult

logger = logging.getLogger(__name__)


class UFWFirewall:
    """Manages UFW default policies, port rules and activation."""

    def __init__(self, platform: BasePlatform):
        self.platform = platform

    def is_installed(self) -> bool:
        return self.platform.which("ufw")

    def status(self) -> CommandResult:
        return self.platform.run(["ufw", "status"], check=False)

    def is_active(self) -> bool:
        result = self.status()
        return result.success and "Status: active" in result.stdout

    def rule_listing(self) -> str:
        """Rule table from ``ufw status`` without the status header."""
        lines = self.status().stdout.splitlines()
        return "\n".join(lines[2:]).rstrip()

    def added_rules(self) -> Set[str]:
        """
        User rules as ufw commands, e.g. ``ufw allow 22/tcp``.

        ``ufw show added`` lists rules even while the firewall is inactive.
        """
        result = self.platform.run(["ufw", "show", "added"], check=False)
        if not result.success:
            return set()
        return {line.strip() for line in result.lines if line.strip().startswith("ufw ")}

    def set_default_policies(self) -> None:
        self.platform.run(["ufw", "default", "deny", "incoming"])
        self.platform.run(["ufw", "default", "allow", "outgoing"])

    def allow_port(self, port: int, protocol: str = "tcp", limit: bool = False) -> bool:
        """
        Open a port unless an identical rule already exists.

        Args:
            port: Port number
            protocol: tcp or udp
            limit: Use ufw rate limiting instead of a plain allow

        Returns:
            bool: True if a rule was added
        """
        action = "limit" if limit else "allow"
        rule = f"{port}/{protocol}"
        if f"ufw {action} {rule}" in self.added_rules():
            logger.debug("UFW rule already present: %s %s", action, rule)
            return False

        self.platform.run(["ufw", action, rule])
        return True

    def enable(self) -> None:
        self.platform.run(["ufw", "--force", "enable"])
