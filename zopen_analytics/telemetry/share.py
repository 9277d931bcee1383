"""One-way telemetry submission to the zopen statistics collector.

Envelopes are plain dicts serialised with json.dumps; package names are never
spliced into JSON text. The collector replies ``{"success": true}``. Anything
else, including transport errors, is logged at error level and dropped.
"""
from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request

from zopen_analytics.config import TELEMETRY_TIMEOUT_SECONDS
from zopen_analytics.models import InstallEvent, Profile, RemoveEvent

logger = logging.getLogger(__name__)

ENVELOPE_TYPES = ("installs", "removals", "profile")


def build_envelope(kind: str, data: dict) -> dict:
    """Wrap event data in the collector's ``{"type", "data"}`` envelope."""
    if kind not in ENVELOPE_TYPES:
        raise ValueError(f"Unknown telemetry envelope type: {kind}")
    return {"type": kind, "data": data}


def install_envelope(uuid: str, event: InstallEvent) -> dict:
    return build_envelope("installs", {
        "uuid": uuid,
        "packagename": event.name,
        "version": event.version,
        "isUpgrade": event.is_upgrade,
        "isBuildInstall": event.is_build_install,
        "isRuntimeDependencyInstall": event.is_runtime_dependency_install,
        "timestamp": event.timestamp,
    })


def remove_envelope(uuid: str, event: RemoveEvent) -> dict:
    return build_envelope("removals", {
        "uuid": uuid,
        "packagename": event.name,
        "version": event.version,
        "timestamp": event.timestamp,
    })


def profile_envelope(profile: Profile) -> dict:
    return build_envelope("profile", {
        "uuid": profile.uuid,
        "isbot": profile.is_bot,
        "isibm": profile.is_ibm,
    })


class RemoteReporter:
    """POSTs envelopes to ``<stats_url>/statistics``. Never raises."""

    def __init__(self, endpoint: str, timeout: float = TELEMETRY_TIMEOUT_SECONDS) -> None:
        self.endpoint = endpoint
        self.timeout = timeout

    def send(self, envelope: dict) -> bool:
        """Submit one envelope. Returns True only on an acknowledged success."""
        try:
            data = json.dumps(envelope).encode("utf-8")
            req = urllib.request.Request(
                self.endpoint,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read().decode("utf-8")
            ack = json.loads(body)
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            # HTTPError is a URLError; BadStatusLine/IncompleteRead are HTTPExceptions
            logger.error("Failed to send %s statistics to %s: %s",
                         envelope.get("type"), self.endpoint, e)
            return False

        if isinstance(ack, dict) and ack.get("success") is True:
            logger.info("Successfully sent %s statistics to %s",
                        envelope.get("type"), self.endpoint)
            return True

        logger.error("Statistics were not accepted by %s: %s", self.endpoint, body[:200])
        return False
