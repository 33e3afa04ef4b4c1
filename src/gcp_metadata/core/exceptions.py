"""
gcp_metadata exception hierarchy.

All library exceptions inherit from MetadataError, so callers can catch every
metadata failure at once while still telling configuration mistakes apart
from network trouble or an impostor server.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gcp_metadata.transport import MetadataResponse


class MetadataError(Exception):
    """Base exception class for all gcp_metadata errors."""


class ConfigurationError(MetadataError):
    """Raised for invalid caller options. Never reaches the network."""


class ProtocolError(MetadataError):
    """Raised when a completed response violates the metadata contract."""


class NetworkError(MetadataError):
    """Raised for connection-level failures (no HTTP response received)."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class MetadataTimeoutError(NetworkError):
    """Raised when the metadata server did not answer within the timeout."""

    def __init__(self, message: str, code: str | None = "ETIMEDOUT"):
        super().__init__(message, code=code)


class HTTPStatusError(MetadataError):
    """Raised for a non-success HTTP status from the metadata server."""

    def __init__(self, message: str, status: int, response: MetadataResponse | None = None):
        super().__init__(message)
        self.status = status
        self.response = response


class MetadataLookupWarning(UserWarning):
    """Issued when metadata server detection fails in an unexpected way."""
