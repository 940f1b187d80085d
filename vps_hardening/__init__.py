"""
VPS Security Hardening Toolkit

Audits and interactively hardens SSH, UFW, fail2ban, unattended upgrades
and Docker posture on a single Debian/Ubuntu VPS.
"""

__version__ = "1.0.0"

from .core.auditor import Auditor
from .core.hardener import Hardener
from .core.models import AuditReport, PostureProfile, RiskPosture

__all__ = ["Auditor", "Hardener", "AuditReport", "PostureProfile", "RiskPosture"]
