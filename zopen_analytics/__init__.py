"""zopen-analytics: usage telemetry and vulnerability audit for zopen."""

__version__ = "0.4.0"
