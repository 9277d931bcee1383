"""register* hooks called by zopen's install, remove and init flows."""
from __future__ import annotations

import logging
import time
from typing import Callable

from zopen_analytics.config import Settings
from zopen_analytics.models import InstallEvent, Profile, RemoveEvent
from zopen_analytics.telemetry.consent import is_collecting
from zopen_analytics.telemetry.ledger import AnalyticsStateStore
from zopen_analytics.telemetry.share import (
    RemoteReporter,
    install_envelope,
    profile_envelope,
    remove_envelope,
)

logger = logging.getLogger(__name__)


class Analytics:
    """Gate, record locally, then forward. Only ConfigCorruptError escapes."""

    def __init__(
        self,
        settings: Settings,
        reporter: RemoteReporter | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.reporter = reporter or RemoteReporter(settings.statistics_endpoint)
        self.clock = clock
        self.store = (
            AnalyticsStateStore(settings.analytics_json)
            if settings.analytics_json is not None else None
        )

    def register_install(
        self,
        name: str,
        version: str,
        is_upgrade: bool = False,
        is_runtime_dependency_install: bool = False,
    ) -> bool:
        """Record an install. Returns True if it was written to the ledger."""
        if not self._ready():
            return False

        event = InstallEvent(
            name=name,
            version=version,
            timestamp=int(self.clock()),
            is_upgrade=is_upgrade,
            is_build_install=self.settings.in_build,
            is_runtime_dependency_install=is_runtime_dependency_install,
        )
        uuid = self.store.read_profile_id()
        self.store.append_install(event)
        self.reporter.send(install_envelope(uuid, event))
        return True

    def register_remove(self, name: str, version: str) -> bool:
        """Record a removal. Returns True if it was written to the ledger."""
        if not self._ready():
            return False

        event = RemoveEvent(name=name, version=version, timestamp=int(self.clock()))
        uuid = self.store.read_profile_id()
        self.store.append_remove(event)
        self.reporter.send(remove_envelope(uuid, event))
        return True

    def register_profile(self, profile: Profile) -> bool:
        """Forward a newly created profile. The ledger is written by init, not here."""
        if not is_collecting(self.settings):
            return False
        return self.reporter.send(profile_envelope(profile))

    def _ready(self) -> bool:
        if not is_collecting(self.settings):
            logger.debug("Statistics collection is off; nothing recorded")
            return False
        if self.store is None:
            # First-run consent only covers the profile; there is no ledger yet
            logger.debug("No analytics ledger configured; skipping event")
            return False
        return True
