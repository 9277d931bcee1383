"""Tests for RemoteReporter: one POST, ack parsing, failures swallowed."""
import http.client
import json
import unittest.mock as mock
import urllib.error

import pytest

from zopen_analytics.telemetry.share import RemoteReporter, build_envelope

ENDPOINT = "http://stats.invalid:3000/statistics"


def _response(body):
    resp = mock.MagicMock()
    resp.read.return_value = body.encode("utf-8")
    resp.__enter__.return_value = resp
    return resp


def test_send_posts_json_and_accepts_success():
    envelope = build_envelope("removals", {"uuid": "u", "packagename": 'a"b\nc'})
    with mock.patch("urllib.request.urlopen",
                    return_value=_response('{"success": true}')) as urlopen:
        assert RemoteReporter(ENDPOINT).send(envelope) is True

    req = urlopen.call_args[0][0]
    assert req.full_url == ENDPOINT
    assert req.get_method() == "POST"
    assert req.get_header("Content-type") == "application/json"
    assert json.loads(req.data.decode("utf-8")) == envelope
    assert urlopen.call_count == 1


@pytest.mark.parametrize("body", ['{"success": false}', "{}", "not json", '"success"'])
def test_unacknowledged_send_returns_false(body, caplog):
    with mock.patch("urllib.request.urlopen", return_value=_response(body)):
        with caplog.at_level("ERROR"):
            assert RemoteReporter(ENDPOINT).send(build_envelope("profile", {})) is False
    assert any(r.levelname == "ERROR" for r in caplog.records)


@pytest.mark.parametrize("error", [
    urllib.error.URLError("connection refused"),
    TimeoutError("timed out"),
    ConnectionResetError(),
    http.client.BadStatusLine("GARBAGE"),
    http.client.IncompleteRead(b""),
])
def test_transport_errors_never_raise(error):
    with mock.patch("urllib.request.urlopen", side_effect=error) as urlopen:
        assert RemoteReporter(ENDPOINT).send(build_envelope("installs", {})) is False
    # no retry
    assert urlopen.call_count == 1


def test_unknown_envelope_type_rejected():
    with pytest.raises(ValueError):
        build_envelope("errors", {})
