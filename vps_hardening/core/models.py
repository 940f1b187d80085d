"""
Data models for the VPS hardening toolkit using Pydantic for validation.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskPosture(str, Enum):
    """Named bundles of hardening defaults."""
    BALANCED = "balanced"
    HARDENED = "hardened"
    DEVELOPER = "developer"


class HardeningStep(str, Enum):
    """Hardening domains, in presentation order."""
    SSH = "ssh"
    FIREWALL = "firewall"
    INTRUSION_PREVENTION = "intrusion_prevention"
    AUTO_UPDATES = "auto_updates"
    DOCKER = "docker"


class FindingStatus(str, Enum):
    """Classification of a single audit check."""
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


class Fail2banThresholds(BaseModel):
    """Ban policy applied to the fail2ban jails."""
    model_config = ConfigDict(frozen=True)

    maxretry: int = Field(..., gt=0, description="Failures before a ban")
    findtime: int = Field(..., gt=0, description="Look-back window in seconds")
    bantime: int = Field(..., gt=0, description="Ban duration in seconds")


STANDARD_THRESHOLDS = Fail2banThresholds(maxretry=5, findtime=600, bantime=3600)
AGGRESSIVE_THRESHOLDS = Fail2banThresholds(maxretry=3, findtime=600, bantime=86400)


class PostureProfile(BaseModel):
    """Parameter defaults selected once per hardening run."""
    model_config = ConfigDict(frozen=True)

    posture: RiskPosture
    name: str
    summary: str
    highlights: List[str] = Field(default_factory=list)

    ssh_port: int = Field(..., ge=1, le=65535)
    ufw_strict: bool = False
    fail2ban_aggressive: bool = False
    auto_reboot: bool = False
    docker_nonroot: bool = False

    @property
    def fail2ban_thresholds(self) -> Fail2banThresholds:
        """Thresholds matching the posture's intrusion-prevention preset."""
        return AGGRESSIVE_THRESHOLDS if self.fail2ban_aggressive else STANDARD_THRESHOLDS


POSTURES: Dict[RiskPosture, PostureProfile] = {
    RiskPosture.BALANCED: PostureProfile(
        posture=RiskPosture.BALANCED,
        name="Balanced",
        summary="Good security, reasonable ease of access",
        highlights=[
            "SSH on port 2222",
            "UFW firewall enabled",
            "Fail2ban standard configuration",
            "Automatic security updates",
        ],
        ssh_port=2222,
    ),
    RiskPosture.HARDENED: PostureProfile(
        posture=RiskPosture.HARDENED,
        name="Hardened",
        summary="Maximum security for production systems",
        highlights=[
            "SSH key-only, port 2222",
            "UFW strict inbound rules",
            "Fail2ban aggressive settings",
            "Automatic updates with reboot",
            "Docker runs as non-root",
        ],
        ssh_port=2222,
        ufw_strict=True,
        fail2ban_aggressive=True,
        auto_reboot=True,
        docker_nonroot=True,
    ),
    RiskPosture.DEVELOPER: PostureProfile(
        posture=RiskPosture.DEVELOPER,
        name="Developer",
        summary="For testing and development",
        highlights=[
            "SSH on standard port 22",
            "UFW firewall with basic rules",
            "Fail2ban lenient settings",
            "Automatic security updates",
        ],
        ssh_port=22,
    ),
}

# Menu order shown to the operator
POSTURE_CHOICES: Dict[str, RiskPosture] = {
    "1": RiskPosture.BALANCED,
    "2": RiskPosture.HARDENED,
    "3": RiskPosture.DEVELOPER,
}


class SystemInfo(BaseModel):
    """Host information shown at the top of an audit."""
    os_version: str
    kernel_version: str
    hostname: str
    uptime: Optional[str] = None
    detected_at: datetime = Field(default_factory=datetime.now)


class AuditFinding(BaseModel):
    """Result of inspecting one piece of external state."""
    check: str
    status: FindingStatus
    detail: str
    hint: Optional[str] = None

    @field_validator('check')
    @classmethod
    def validate_check(cls, v):
        """Checks must be named."""
        if not v.strip():
            raise ValueError("Finding check name must not be empty")
        return v


class AuditSection(BaseModel):
    """Findings for one hardening domain."""
    title: str
    findings: List[AuditFinding] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    raw_output: Optional[str] = None

    def add(self, check: str, status: FindingStatus, detail: str,
            hint: Optional[str] = None) -> AuditFinding:
        finding = AuditFinding(check=check, status=status, detail=detail, hint=hint)
        self.findings.append(finding)
        return finding

    def passed(self, check: str, detail: str) -> AuditFinding:
        return self.add(check, FindingStatus.PASS, detail)

    def warned(self, check: str, detail: str, hint: Optional[str] = None) -> AuditFinding:
        return self.add(check, FindingStatus.WARN, detail, hint)

    def failed(self, check: str, detail: str, hint: Optional[str] = None) -> AuditFinding:
        return self.add(check, FindingStatus.FAIL, detail, hint)

    def note(self, text: str) -> None:
        self.notes.append(text)


class AuditReport(BaseModel):
    """Complete output of one audit run. Recomputed every run, never stored."""
    system_info: Optional[SystemInfo] = None
    sections: List[AuditSection] = Field(default_factory=list)
    completed_at: Optional[datetime] = None

    @property
    def findings(self) -> List[AuditFinding]:
        """All findings across sections, in report order."""
        return [f for section in self.sections for f in section.findings]

    def count(self, status: FindingStatus) -> int:
        return sum(1 for f in self.findings if f.status == status)

    def find(self, check: str) -> Optional[AuditFinding]:
        """Look up a finding by check name."""
        for finding in self.findings:
            if finding.check == check:
                return finding
        return None


class ActionLogEntry(BaseModel):
    """One line of the append-only action log."""
    timestamp: datetime
    description: str
