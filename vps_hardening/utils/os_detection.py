"""
Host information shown at the top of an audit.
"""

import platform as pyplatform
from pathlib import Path
from typing import Dict, Optional

from ..core.models import SystemInfo
from ..platforms.base import BasePlatform

OS_RELEASE_PATH = Path("/etc/os-release")


def parse_os_release(content: str) -> Dict[str, str]:
    """Parse /etc/os-release text into a dictionary."""
    os_info = {}
    for line in content.splitlines():
        line = line.strip()
        if '=' in line and not line.startswith('#'):
            key, value = line.split('=', 1)
            os_info[key] = value.strip('"\'')
    return os_info


def _os_description(platform: BasePlatform, os_release_path: Path) -> str:
    if platform.file_exists(os_release_path):
        os_info = parse_os_release(platform.read_config_file(os_release_path))
        description = os_info.get("PRETTY_NAME") or os_info.get("NAME")
        if description:
            return description

    result = platform.run(["lsb_release", "-d"], check=False)
    if result.success and ":" in result.stdout:
        return result.stdout.split(":", 1)[1].strip()

    return "Unknown Linux Distribution"


def _uptime(platform: BasePlatform) -> Optional[str]:
    result = platform.run(["uptime", "-p"], check=False)
    if result.success and result.stdout.strip():
        return result.stdout.strip()
    return None


def detect_system(platform: BasePlatform, os_release_path: Path = OS_RELEASE_PATH) -> SystemInfo:
    """
    Gather OS, kernel, hostname and uptime. Never raises for missing sources.
    """
    return SystemInfo(
        os_version=_os_description(platform, os_release_path),
        kernel_version=pyplatform.release(),
        hostname=pyplatform.node(),
        uptime=_uptime(platform),
    )
