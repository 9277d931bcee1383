"""Per-run snapshot of the zopen CVE feed.

Always a full refresh: no TTL, no conditional GET. If the feed cannot be
fetched there is no audit.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

import requests

from zopen_analytics.atomic import write_json_atomic
from zopen_analytics.config import FEED_TIMEOUT_SECONDS
from zopen_analytics.errors import FeedFetchError

logger = logging.getLogger(__name__)

SNAPSHOT_NAME = "zopen_vulnerabilities.json"


class VulnerabilityCache:
    def __init__(self, cache_dir: Path, feed_url: str,
                 timeout: float = FEED_TIMEOUT_SECONDS) -> None:
        self.cache_dir = Path(cache_dir)
        self.feed_url = feed_url
        self.timeout = timeout

    @property
    def snapshot_path(self) -> Path:
        return self.cache_dir / SNAPSHOT_NAME

    def refresh(self) -> Path:
        """Download the feed and overwrite the cached snapshot. Returns its path."""
        logger.info("Fetching vulnerability feed from %s", self.feed_url)
        try:
            resp = requests.get(self.feed_url, timeout=self.timeout)
            resp.raise_for_status()
            feed = resp.json()
        except requests.exceptions.RequestException as e:
            raise FeedFetchError(f"Unable to download vulnerability feed from {self.feed_url}: {e}") from e
        except ValueError as e:
            raise FeedFetchError(f"Vulnerability feed from {self.feed_url} is not valid JSON: {e}") from e

        if not isinstance(feed, dict):
            raise FeedFetchError(f"Vulnerability feed from {self.feed_url} is not a JSON object")

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            write_json_atomic(self.snapshot_path, feed, fsync=False)
        except OSError as e:
            raise FeedFetchError(f"Unable to write vulnerability cache {self.snapshot_path}: {e}") from e

        logger.debug("Cached %d feed entries at %s", len(feed), self.snapshot_path)
        return self.snapshot_path

    def load(self, path: Path | None = None) -> dict:
        """Read a snapshot written by refresh()."""
        path = path or self.snapshot_path
        try:
            with open(path, "r", encoding="utf-8") as f:
                snapshot = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise FeedFetchError(f"Vulnerability cache {path} is unreadable: {e}") from e
        if not isinstance(snapshot, dict):
            raise FeedFetchError(f"Vulnerability cache {path} is not a JSON object")
        return snapshot
