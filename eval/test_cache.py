"""Tests for VulnerabilityCache: full refresh, atomic overwrite, fatal failures."""
import json
import os
import stat
import unittest.mock as mock

import pytest
import requests

from zopen_analytics.audit.cache import SNAPSHOT_NAME, VulnerabilityCache
from zopen_analytics.errors import FeedFetchError

FEED_URL = "http://feed.invalid/zopen_vulnerability.json"
FEED = {"git": {"git-2.43": {"CVEs": [{"severity": "HIGH", "id": "CVE-1", "details": ""}]}}}


def _response(payload=None, status_error=None, json_error=None):
    resp = mock.Mock()
    resp.raise_for_status.side_effect = status_error
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload
    return resp


def test_refresh_writes_snapshot(tmp_path):
    cache = VulnerabilityCache(tmp_path / "cache", FEED_URL)
    with mock.patch("requests.get", return_value=_response(FEED)) as get:
        path = cache.refresh()

    get.assert_called_once_with(FEED_URL, timeout=cache.timeout)
    assert path == tmp_path / "cache" / SNAPSHOT_NAME
    assert cache.load(path) == FEED


def test_refresh_always_overwrites(tmp_path):
    cache = VulnerabilityCache(tmp_path, FEED_URL)
    (tmp_path / SNAPSHOT_NAME).write_text(json.dumps({"stale": {}}))

    with mock.patch("requests.get", return_value=_response({"fresh": {}})):
        cache.refresh()

    assert cache.load() == {"fresh": {}}
    assert [p.name for p in tmp_path.iterdir()] == [SNAPSHOT_NAME]


@pytest.mark.parametrize("response_or_error", [
    requests.exceptions.ConnectionError("unreachable"),
    requests.exceptions.Timeout("slow"),
    _response(status_error=requests.exceptions.HTTPError("404 Not Found")),
    _response(json_error=ValueError("Expecting value")),
    _response(["not", "an", "object"]),
])
def test_fetch_failures_are_fatal(tmp_path, response_or_error):
    cache = VulnerabilityCache(tmp_path, FEED_URL)
    if isinstance(response_or_error, Exception):
        patcher = mock.patch("requests.get", side_effect=response_or_error)
    else:
        patcher = mock.patch("requests.get", return_value=response_or_error)

    with patcher:
        with pytest.raises(FeedFetchError):
            cache.refresh()
    assert not (tmp_path / SNAPSHOT_NAME).exists()


def test_load_corrupt_snapshot(tmp_path):
    (tmp_path / SNAPSHOT_NAME).write_text("{cut off")
    with pytest.raises(FeedFetchError):
        VulnerabilityCache(tmp_path, FEED_URL).load()


def test_refresh_keeps_snapshot_mode(tmp_path):
    snapshot = tmp_path / SNAPSHOT_NAME
    snapshot.write_text("{}")
    os.chmod(snapshot, 0o644)

    with mock.patch("requests.get", return_value=_response(FEED)):
        VulnerabilityCache(tmp_path, FEED_URL).refresh()
    assert stat.S_IMODE(os.stat(snapshot).st_mode) == 0o644
