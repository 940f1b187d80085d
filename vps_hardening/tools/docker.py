"""
Docker posture checks and guidance. Never changes Docker configuration.
"""

from typing import List

from ..core.models import PostureProfile
from ..platforms.base import BasePlatform
from .system import ServiceManager

ROOTLESS_GUIDANCE = [
    "Docker rootless mode setup requires additional steps.",
    "Install docker-ce-rootless-extras and run dockerd-rootless-setuptool.sh install as the target user.",
    "Remove that user from the docker group once rootless mode works.",
]

BEST_PRACTICES = [
    "Docker best practices:",
    "  - Use named volumes instead of host bind mounts",
    "  - Run containers with --read-only flag",
    "  - Set resource limits (--cpus, --memory)",
    "  - Use custom networks for container isolation",
]


class Docker:
    """Read-only view of the container runtime."""

    def __init__(self, platform: BasePlatform):
        self.platform = platform
        self.services = ServiceManager(platform)

    def is_installed(self) -> bool:
        return self.platform.which("docker")

    def is_running(self) -> bool:
        return self.services.is_active("docker")

    def user_in_docker_group(self, user: str) -> bool:
        result = self.platform.run(["id", "-nG", user], check=False)
        return result.success and "docker" in result.stdout.split()

    def is_rootless(self) -> bool:
        result = self.platform.run(["docker", "info"], check=False)
        return result.success and "rootless" in result.stdout

    @staticmethod
    def guidance(profile: PostureProfile) -> List[str]:
        """Advice matching the posture's Docker-root policy."""
        if profile.docker_nonroot:
            return list(ROOTLESS_GUIDANCE)
        return list(BEST_PRACTICES)
