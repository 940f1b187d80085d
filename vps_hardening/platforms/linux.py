"""
Linux platform implementation for Debian and Ubuntu hosts.
"""

import getpass
import os
import shutil
import subprocess
from datetime import datetime
from typing import Optional, Sequence

from .base import BasePlatform, CommandResult

DEFAULT_TIMEOUT = 600


class LinuxPlatform(BasePlatform):
    """
    Linux platform handler backed by subprocess.

    Commands run with a non-interactive apt frontend so that package
    installs never stop to ask questions behind captured output.
    """

    def __init__(self, timeout: int = DEFAULT_TIMEOUT):
        self.timeout = timeout
        self.env = dict(os.environ, DEBIAN_FRONTEND="noninteractive")

    def execute_command(self, argv: Sequence[str], timeout: Optional[int] = None) -> CommandResult:
        """Execute a command with timeout, capturing its output."""
        timeout = timeout or self.timeout
        start_time = datetime.now()

        try:
            result = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
                env=self.env,
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                argv=list(argv),
                stderr=f"Command timed out after {timeout} seconds",
                exit_code=-1,
                execution_time_ms=timeout * 1000,
            )
        except OSError as e:
            return CommandResult(argv=list(argv), stderr=str(e), exit_code=127)

        execution_time_ms = int((datetime.now() - start_time).total_seconds() * 1000)
        return CommandResult(
            argv=list(argv),
            stdout=result.stdout,
            stderr=result.stderr,
            exit_code=result.returncode,
            execution_time_ms=execution_time_ms,
        )

    def which(self, tool: str) -> bool:
        return shutil.which(tool) is not None

    def is_root(self) -> bool:
        return os.geteuid() == 0

    def current_user(self) -> str:
        # Report the operator behind sudo, not root
        return os.environ.get("SUDO_USER") or getpass.getuser()
