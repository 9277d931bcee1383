"""Telemetry subsystem.

Local durability comes first: every event is committed to the analytics
ledger before anything is sent. The only network call in this package is
share.RemoteReporter.send(), a one-way POST whose failure is logged and
dropped. Nothing here retries, and nothing here may fail an install or
remove because the collector is unreachable.
"""
from zopen_analytics.telemetry.consent import is_collecting
from zopen_analytics.telemetry.hooks import Analytics
from zopen_analytics.telemetry.ledger import AnalyticsStateStore
from zopen_analytics.telemetry.share import RemoteReporter, build_envelope

__all__ = [
    "Analytics",
    "AnalyticsStateStore",
    "RemoteReporter",
    "build_envelope",
    "is_collecting",
]
