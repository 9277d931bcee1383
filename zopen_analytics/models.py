from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw) -> "Severity":
        """Map a feed severity string onto the enum. Anything else is UNKNOWN."""
        if isinstance(raw, str):
            try:
                return cls(raw)
            except ValueError:
                pass
        return cls.UNKNOWN


SEVERITY_RANK = {
    Severity.UNKNOWN: 0,
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


# ── Telemetry ──────────────────────────────────────────────────────


@dataclass
class Profile:
    uuid: str
    is_bot: bool = False
    is_ibm: bool = False


@dataclass
class InstallEvent:
    name: str
    version: str
    timestamp: int
    is_upgrade: bool = False
    is_build_install: bool = False
    is_runtime_dependency_install: bool = False

    def to_ledger(self) -> dict:
        # Build/runtime flags go to the collector only, not the local ledger
        return {
            "name": self.name,
            "version": self.version,
            "timestamp": self.timestamp,
            "isUpgrade": self.is_upgrade,
        }


@dataclass
class RemoveEvent:
    name: str
    version: str
    timestamp: int

    def to_ledger(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "timestamp": self.timestamp,
        }


@dataclass
class AnalyticsLedger:
    """In-memory form of analytics.json.

    ``extra`` holds any top-level keys written by other zopen tools so a
    rewrite never drops them.
    """
    profile: str
    installs: list[dict] = field(default_factory=list)
    removes: list[dict] = field(default_factory=list)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "AnalyticsLedger":
        installs = data.get("installs", [])
        removes = data.get("removes", [])
        if not isinstance(installs, list) or not isinstance(removes, list):
            raise ValueError("installs/removes must be lists")
        profile = data.get("profile")
        if not isinstance(profile, str) or not profile:
            raise ValueError("missing profile uuid")
        extra = {k: v for k, v in data.items()
                 if k not in ("profile", "installs", "removes")}
        return cls(profile=profile, installs=list(installs),
                   removes=list(removes), extra=extra)

    def to_dict(self) -> dict:
        out = dict(self.extra)
        out["profile"] = self.profile
        out["installs"] = self.installs
        out["removes"] = self.removes
        return out


# ── Audit ──────────────────────────────────────────────────────────


@dataclass
class PackageDescriptor:
    name: str
    home: Path
    release: str


@dataclass
class CVE:
    id: str
    severity: Severity
    details: str = ""
    raw_severity: str = ""  # as it appeared in the feed


@dataclass
class AuditFinding:
    package: str
    release: str
    severity: Severity
    id: str
    details: str = ""


@dataclass
class AuditReport:
    total: int = 0
    low: int = 0
    medium: int = 0
    high: int = 0
    critical: int = 0
    unknown: int = 0
    packages_scanned: int = 0
    findings: list[AuditFinding] = field(default_factory=list)

    def add(self, finding: AuditFinding) -> None:
        """Count one CVE: total always, plus exactly one severity bucket."""
        self.total += 1
        if finding.severity is Severity.LOW:
            self.low += 1
        elif finding.severity is Severity.MEDIUM:
            self.medium += 1
        elif finding.severity is Severity.HIGH:
            self.high += 1
        elif finding.severity is Severity.CRITICAL:
            self.critical += 1
        else:
            self.unknown += 1
        self.findings.append(finding)

    def summary_line(self) -> str:
        # Fixed shape for scripts; unknown-severity CVEs show up in the total only
        return (
            f"{self.total} vulnerabilities ({self.low} low, {self.medium} moderate, "
            f"{self.high} high, {self.critical} critical)"
        )

    def max_severity(self) -> Severity | None:
        if not self.findings:
            return None
        return max((f.severity for f in self.findings), key=SEVERITY_RANK.__getitem__)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "low": self.low,
            "moderate": self.medium,
            "high": self.high,
            "critical": self.critical,
            "unknown": self.unknown,
            "packages_scanned": self.packages_scanned,
            "findings": [
                {
                    "package": f.package,
                    "release": f.release,
                    "severity": f.severity.value,
                    "id": f.id,
                    "details": f.details,
                }
                for f in self.findings
            ],
        }
