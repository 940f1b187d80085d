"""
Exception hierarchy for the VPS hardening toolkit.

The core raises these; only the CLI turns them into messages and exit codes.
"""

from typing import List, Optional


class HardeningError(Exception):
    """Base class for all toolkit errors."""

    def __init__(self, message: str, remediation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.remediation = remediation


class PrivilegeError(HardeningError):
    """Raised when the hardener is not running as root."""


class InvalidSelectionError(HardeningError):
    """Raised when the posture selection is not one of the offered choices."""


class ConfigurationError(HardeningError):
    """Raised when the settings file cannot be loaded or validated."""


class CommandError(HardeningError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, argv: List[str], exit_code: int, stderr: str = ""):
        command = " ".join(argv)
        message = f"Command failed ({exit_code}): {command}"
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        super().__init__(message)
        self.argv = list(argv)
        self.exit_code = exit_code
        self.stderr = stderr
