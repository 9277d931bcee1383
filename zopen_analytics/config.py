"""Process-wide settings for zopen-analytics.

Built once at process start (``Settings.from_env``) and passed explicitly into
every component. Nothing below this module reads the environment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

# This is the server that is collecting zopen usage stats
DEFAULT_STATS_URL = "http://163.74.88.212:3000"
STATS_PATH = "/statistics"

DEFAULT_FEED_URL = (
    "https://raw.githubusercontent.com/zopencommunity/meta/main/docs/api/"
    "zopen_vulnerability.json"
)

TELEMETRY_TIMEOUT_SECONDS = 5
FEED_TIMEOUT_SECONDS = 30

CONFIG_RELPATH = os.path.join("etc", "zopen", "config.json")
CACHE_RELPATH = os.path.join("var", "cache", "zopen")
ANALYTICS_LOG_NAME = "analytics.log"

# Remediation commands named in fatal error messages
REINIT_COMMAND = "zopen init --re-init"
REFRESH_ANALYTICS_COMMAND = "zopen init --refresh-analytics"


@dataclass(frozen=True)
class Settings:
    rootfs: Path
    config_path: Path
    analytics_json: Path | None = None
    log_dir: Path | None = None
    install_root: Path | None = None
    cache_dir: Path | None = None
    stats_url: str = DEFAULT_STATS_URL
    feed_url: str = DEFAULT_FEED_URL
    in_build: bool = False

    @property
    def statistics_endpoint(self) -> str:
        return self.stats_url.rstrip("/") + STATS_PATH

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from the ``ZOPEN_*`` variables zopen exports."""
        env = os.environ if environ is None else environ

        rootfs = Path(env.get("ZOPEN_ROOTFS") or "/")
        return cls(
            rootfs=rootfs,
            config_path=rootfs / CONFIG_RELPATH,
            analytics_json=_optional_path(env.get("ZOPEN_ANALYTICS_JSON")),
            log_dir=_optional_path(env.get("ZOPEN_LOG_PATH")),
            install_root=_optional_path(env.get("ZOPEN_PKGINSTALL")),
            cache_dir=_optional_path(env.get("ZOPEN_CACHE_DIR")) or rootfs / CACHE_RELPATH,
            stats_url=env.get("ZOPEN_STATS_URL") or DEFAULT_STATS_URL,
            feed_url=env.get("ZOPEN_CVE_FEED_URL") or DEFAULT_FEED_URL,
            # zopen build exports ZOPEN_IN_ZOPEN_BUILD when it installs deps
            in_build=bool(env.get("ZOPEN_IN_ZOPEN_BUILD")),
        )


def _optional_path(value: str | None) -> Path | None:
    if not value:
        return None
    return Path(value)
