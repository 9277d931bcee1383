"""Local analytics ledger (analytics.json).

Every mutation is a locked read-modify-write committed by os.replace():

    lock(<ledger>.lock) -> read -> append -> write temp -> fsync -> replace

The replace is the only commit point, so a process killed mid-write leaves
the previous ledger in place (and at worst an orphaned temp file). The
exclusive flock serialises concurrent installs so no writer can overwrite
another writer's event.
"""
from __future__ import annotations

import contextlib
import fcntl
import json
import logging
from pathlib import Path
from typing import Iterator

from zopen_analytics.atomic import write_json_atomic
from zopen_analytics.config import REFRESH_ANALYTICS_COMMAND
from zopen_analytics.errors import ConfigCorruptError
from zopen_analytics.models import AnalyticsLedger, InstallEvent, RemoveEvent

logger = logging.getLogger(__name__)


class AnalyticsStateStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    # ── Reads ──────────────────────────────────────────────────────

    def read(self) -> AnalyticsLedger:
        """Load the ledger. Any read or parse failure is fatal."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("ledger is not a JSON object")
            return AnalyticsLedger.from_dict(data)
        except (OSError, ValueError) as e:
            logger.debug("Failed to load ledger %s: %s", self.path, e)
            raise ConfigCorruptError(
                f"{self.path} is corrupted",
                f"Please re-initialize your file system using {REFRESH_ANALYTICS_COMMAND}",
            ) from e

    def read_profile_id(self) -> str:
        return self.read().profile

    # ── Writes ─────────────────────────────────────────────────────

    def append_install(self, event: InstallEvent) -> None:
        with self._locked():
            ledger = self.read()
            ledger.installs.append(event.to_ledger())
            self._commit(ledger)
        logger.debug("Recorded install of %s %s", event.name, event.version)

    def append_remove(self, event: RemoveEvent) -> None:
        with self._locked():
            ledger = self.read()
            ledger.removes.append(event.to_ledger())
            self._commit(ledger)
        logger.debug("Recorded removal of %s %s", event.name, event.version)

    def initialize(self, profile_id: str) -> AnalyticsLedger:
        """Write a fresh, empty ledger for ``profile_id``, replacing any existing one."""
        ledger = AnalyticsLedger(profile=profile_id)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._locked():
            self._commit(ledger)
        logger.info("Initialized analytics ledger %s", self.path)
        return ledger

    @contextlib.contextmanager
    def _locked(self) -> Iterator[None]:
        with open(self.lock_path, "a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _commit(self, ledger: AnalyticsLedger) -> None:
        write_json_atomic(self.path, ledger.to_dict(), indent=2)
