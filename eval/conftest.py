"""Shared fixtures: a throwaway zopen root file system under tmp_path."""
import json

import pytest

from zopen_analytics.config import Settings


PROFILE_UUID = "3f2b9c1e-8d4a-4e6b-9a7c-1d2e3f4a5b6c"


class FakeReporter:
    """Stands in for RemoteReporter; records envelopes instead of POSTing."""

    def __init__(self, result=True):
        self.result = result
        self.sent = []

    def send(self, envelope):
        self.sent.append(envelope)
        return self.result


def write_config(settings, is_collecting=True):
    settings.config_path.parent.mkdir(parents=True, exist_ok=True)
    settings.config_path.write_text(json.dumps({"is_collecting_stats": is_collecting}))


def write_ledger(path, profile=PROFILE_UUID, installs=None, removes=None):
    path.write_text(json.dumps({
        "profile": profile,
        "installs": installs or [],
        "removes": removes or [],
    }))


@pytest.fixture
def settings(tmp_path):
    """Settings for a rootfs with collection on and an empty ledger."""
    rootfs = tmp_path / "zopen"
    s = Settings(
        rootfs=rootfs,
        config_path=rootfs / "etc" / "zopen" / "config.json",
        analytics_json=rootfs / "var" / "lib" / "zopen" / "analytics.json",
        log_dir=rootfs / "var" / "log",
        install_root=rootfs / "usr" / "local" / "zopen",
        cache_dir=rootfs / "var" / "cache" / "zopen",
        stats_url="http://stats.invalid:3000",
        feed_url="http://feed.invalid/zopen_vulnerability.json",
    )
    write_config(s)
    s.analytics_json.parent.mkdir(parents=True, exist_ok=True)
    write_ledger(s.analytics_json)
    return s


@pytest.fixture
def zopen_env(settings, monkeypatch):
    """Export the ZOPEN_* variables matching ``settings`` for CLI tests."""
    monkeypatch.setenv("ZOPEN_ROOTFS", str(settings.rootfs))
    monkeypatch.setenv("ZOPEN_ANALYTICS_JSON", str(settings.analytics_json))
    monkeypatch.setenv("ZOPEN_PKGINSTALL", str(settings.install_root))
    monkeypatch.setenv("ZOPEN_CACHE_DIR", str(settings.cache_dir))
    monkeypatch.setenv("ZOPEN_STATS_URL", settings.stats_url)
    monkeypatch.setenv("ZOPEN_CVE_FEED_URL", settings.feed_url)
    monkeypatch.delenv("ZOPEN_LOG_PATH", raising=False)
    monkeypatch.delenv("ZOPEN_IN_ZOPEN_BUILD", raising=False)
    return settings
