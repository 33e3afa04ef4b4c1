"""
Cached GCP residency and the request timeout it implies.

Detecting residency touches the filesystem and network interfaces, so the
answer is computed once and cached for the process. Callers can force it
with set_gcp_residency(True/False) or recompute with set_gcp_residency(None).
"""

from __future__ import annotations

from gcp_metadata.core.env import detect_gcp_residency

# Milliseconds. On GCP the server always answers, so there is no need to give up.
DEFAULT_REQUEST_TIMEOUT = 3000

gcp_residency_cache: bool | None = None


def set_gcp_residency(value: bool | None = None) -> None:
    """
    Set the detected GCP residency.

    Useful for forcing metadata server detection behavior.
    Pass None to autodetect the environment (default behavior).
    """
    global gcp_residency_cache
    gcp_residency_cache = value if value is not None else detect_gcp_residency()


def get_gcp_residency() -> bool:
    """Return the cached residency, detecting it on first use."""
    global gcp_residency_cache
    if gcp_residency_cache is None:
        gcp_residency_cache = detect_gcp_residency()
    return gcp_residency_cache


def request_timeout() -> int:
    """
    Obtain the timeout for requests to the metadata server.

    Returns:
        0 (no timeout) when running on GCP, otherwise
        :data:`DEFAULT_REQUEST_TIMEOUT` milliseconds.
    """
    return 0 if get_gcp_residency() else DEFAULT_REQUEST_TIMEOUT


def reset_gcp_residency() -> None:
    """Forget the cached residency without detecting it (useful for testing)."""
    global gcp_residency_cache
    gcp_residency_cache = None
