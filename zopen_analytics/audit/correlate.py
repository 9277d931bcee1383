"""Join the package inventory against a CVE feed snapshot.

Snapshot shape::

    {"<pkg>": {"<release>": {"CVEs": [{"severity", "id", "details"}, ...]}}}

Matching is exact on both keys. A release that drifted in case, whitespace
or scheme matches nothing: a missed CVE on a renamed build is preferred over
reporting another fork's CVEs.
"""
from __future__ import annotations

import logging
from typing import Iterable

from zopen_analytics.models import CVE, AuditFinding, AuditReport, PackageDescriptor, Severity

logger = logging.getLogger(__name__)


def correlate(name: str, release: str, snapshot: dict) -> list[CVE]:
    """CVEs listed for exactly ``snapshot[name][release]``, in feed order."""
    releases = snapshot.get(name)
    if not isinstance(releases, dict):
        return []
    entry = releases.get(release)
    if not isinstance(entry, dict):
        return []
    raw_cves = entry.get("CVEs", [])
    if not isinstance(raw_cves, list):
        logger.debug("Malformed CVE list for %s %s", name, release)
        return []

    cves = []
    for raw in raw_cves:
        if not isinstance(raw, dict):
            logger.debug("Ignoring malformed CVE entry for %s %s: %r", name, release, raw)
            continue
        raw_severity = raw.get("severity")
        cves.append(CVE(
            id=str(raw.get("id") or ""),
            severity=Severity.parse(raw_severity),
            details=str(raw.get("details") or ""),
            raw_severity=raw_severity if isinstance(raw_severity, str) else "",
        ))
    return cves


def audit(packages: Iterable[PackageDescriptor], snapshot: dict) -> AuditReport:
    """Correlate every package and aggregate the findings into one report."""
    report = AuditReport()
    for pkg in packages:
        report.packages_scanned += 1
        cves = correlate(pkg.name, pkg.release, snapshot)
        if cves:
            logger.info("%s (%s): %d vulnerabilities", pkg.name, pkg.release, len(cves))
        for cve in cves:
            if cve.severity is Severity.UNKNOWN:
                logger.debug("%s has unrecognized severity %r", cve.id, cve.raw_severity)
            report.add(AuditFinding(
                package=pkg.name,
                release=pkg.release,
                severity=cve.severity,
                id=cve.id,
                details=cve.details,
            ))
    return report
