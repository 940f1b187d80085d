"""
Base platform interface for auditing and hardening operations.

Everything the toolkit does to a host goes through a platform: running
external commands, locating tools, checking privileges and touching
configuration files. The concrete file helpers live here so that tests can
swap only the command layer.
"""

import logging
import shutil
import time
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from ..core.errors import CommandError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class CommandResult(BaseModel):
    """Outcome of one external command."""
    argv: List[str]
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    execution_time_ms: int = 0

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def lines(self) -> List[str]:
        """Non-empty stdout lines."""
        return [line for line in self.stdout.splitlines() if line.strip()]


class BasePlatform(ABC):
    """
    Abstract base class for host access.

    Implementations must provide command execution, tool lookup and
    identity checks; file handling is shared.
    """

    @abstractmethod
    def execute_command(self, argv: Sequence[str], timeout: Optional[int] = None) -> CommandResult:
        """
        Execute a command without raising on failure.

        Args:
            argv: Command and arguments
            timeout: Timeout in seconds

        Returns:
            CommandResult: stdout, stderr and exit code
        """
        pass

    @abstractmethod
    def which(self, tool: str) -> bool:
        """
        Check whether an executable is on PATH.

        Args:
            tool: Executable name

        Returns:
            bool: True if the tool is installed
        """
        pass

    @abstractmethod
    def is_root(self) -> bool:
        """Whether the current process has root privileges."""
        pass

    @abstractmethod
    def current_user(self) -> str:
        """Name of the operator running the toolkit."""
        pass

    def run(self, argv: Sequence[str], check: bool = True,
            timeout: Optional[int] = None) -> CommandResult:
        """
        Execute a command, raising CommandError on failure when check is set.

        Args:
            argv: Command and arguments
            check: Raise on non-zero exit
            timeout: Timeout in seconds

        Returns:
            CommandResult: Execution result

        Raises:
            CommandError: If check is True and the command failed
        """
        logger.debug("Running: %s", " ".join(argv))
        result = self.execute_command(list(argv), timeout=timeout)
        if check and not result.success:
            raise CommandError(list(argv), result.exit_code, result.stderr)
        return result

    def file_exists(self, file_path: PathLike) -> bool:
        return Path(file_path).is_file()

    def read_config_file(self, file_path: PathLike) -> str:
        """
        Read a configuration file.

        Raises:
            FileNotFoundError: If file doesn't exist
            PermissionError: If access is denied
        """
        try:
            with open(file_path, 'r') as f:
                return f.read()
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {file_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading: {file_path}")

    def write_config_file(self, file_path: PathLike, content: str) -> bool:
        """
        Write a configuration file if its content changed.

        Returns:
            bool: True if the file was rewritten
        """
        path = Path(file_path)
        if path.exists() and path.read_text() == content:
            logger.debug("%s already up to date", path)
            return False

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            f.write(content)
        logger.debug("Wrote %s", path)
        return True

    def copy_file(self, source: PathLike, destination: PathLike) -> None:
        shutil.copy2(source, destination)

    def backup_file(self, file_path: PathLike) -> Path:
        """
        Copy a file to a timestamped sibling that never overwrites an older backup.

        Returns:
            Path: Path to the backup file

        Raises:
            IOError: If backup operation fails
        """
        stamp = int(time.time())
        backup_path = Path(f"{file_path}.backup.{stamp}")
        counter = 1
        while backup_path.exists():
            backup_path = Path(f"{file_path}.backup.{stamp}.{counter}")
            counter += 1

        try:
            shutil.copy2(file_path, backup_path)
        except OSError as e:
            raise IOError(f"Failed to backup {file_path}: {e}")

        logger.info("Backed up %s to %s", file_path, backup_path)
        return backup_path

    def file_mtime(self, file_path: PathLike) -> Optional[datetime]:
        path = Path(file_path)
        if not path.exists():
            return None
        return datetime.fromtimestamp(path.stat().st_mtime)
