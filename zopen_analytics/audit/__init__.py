"""Vulnerability audit of installed zopen packages."""
from zopen_analytics.audit.cache import VulnerabilityCache
from zopen_analytics.audit.correlate import audit, correlate
from zopen_analytics.audit.inventory import list_active_packages

__all__ = ["VulnerabilityCache", "audit", "correlate", "list_active_packages"]
