"""
Runtime settings for the VPS hardening toolkit.

Defaults describe a stock Debian/Ubuntu host. An optional YAML file can
override any of them; it is looked up from an explicit path, the
``VPS_HARDENING_CONFIG`` environment variable, or the system default.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "VPS_HARDENING_CONFIG"
DEFAULT_CONFIG_PATH = Path("/etc/vps-hardening/config.yaml")


class Settings(BaseModel):
    """File locations and fixed ports used by the auditor and hardener."""
    model_config = ConfigDict(extra="forbid")

    # SSH
    sshd_config_path: Path = Path("/etc/ssh/sshd_config")
    authorized_keys_path: Path = Field(
        default_factory=lambda: Path.home() / ".ssh" / "authorized_keys"
    )

    # fail2ban
    jail_conf_path: Path = Path("/etc/fail2ban/jail.conf")
    jail_local_path: Path = Path("/etc/fail2ban/jail.local")

    # unattended-upgrades
    unattended_config_path: Path = Path("/etc/apt/apt.conf.d/50unattended-upgrades")
    auto_upgrades_path: Path = Path("/etc/apt/apt.conf.d/20auto-upgrades")

    # Logs read by the auditor
    auth_log_path: Path = Path("/var/log/auth.log")
    apt_history_path: Path = Path("/var/log/apt/history.log")

    # Action log written by the hardener
    action_log_path: Path = Path("/var/log/vps-hardening.log")

    # Ports opened by the firewall step
    app_port: int = Field(9999, ge=1, le=65535)
    tls_port: int = Field(443, ge=1, le=65535)

    command_timeout: int = Field(600, gt=0, description="Seconds before an external command is abandoned")


def resolve_config_path(config_path: Optional[str] = None) -> Optional[Path]:
    """Pick the settings file to load, or None when there is nothing to load."""
    if config_path:
        return Path(config_path)

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH

    return None


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML, merged over the built-in defaults.

    Args:
        config_path: Explicit settings file (optional)

    Returns:
        Settings: Validated settings

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    path = resolve_config_path(config_path)
    if path is None:
        logger.debug("No settings file found, using defaults")
        return Settings()

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with open(path, 'r') as f:
            user_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"YAML parsing error in {path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}")

    if not isinstance(user_config, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    return settings_from_mapping(user_config, source=str(path))


def settings_from_mapping(values: Dict[str, Any], source: str = "<mapping>") -> Settings:
    """Validate a plain mapping into Settings."""
    try:
        settings = Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {source}: {e}")

    logger.debug("Loaded settings from %s", source)
    return settings
