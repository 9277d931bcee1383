"""zopen-analytics exception hierarchy."""
from __future__ import annotations


class ZopenError(Exception):
    """Base exception for all zopen-analytics errors."""


class ConfigCorruptError(ZopenError):
    """Raised when config.json or the analytics ledger is missing or unreadable.

    Never recovered in place: the operator has to run ``remediation``.
    """

    def __init__(self, message: str, remediation: str = "") -> None:
        super().__init__(message)
        self.remediation = remediation

    def __str__(self) -> str:
        msg = super().__str__()
        if self.remediation:
            return f"{msg}. {self.remediation}"
        return msg


class NetworkError(ZopenError):
    """Raised when a remote endpoint cannot be reached."""


class FeedFetchError(NetworkError):
    """Raised when the vulnerability feed cannot be fetched or parsed."""
