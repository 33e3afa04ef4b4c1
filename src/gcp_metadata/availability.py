"""
Metadata server availability check.

is_available() answers "is there a metadata server here?" with a plain bool
and never raises. Several client libraries starting at once tend to ask the
same question, so the probe runs once per process and every caller awaits
that single task until reset_is_available_cache() is called.
"""

from __future__ import annotations

import asyncio
import warnings

from loguru import logger

from gcp_metadata.core.config import MetadataConfig, get_config
from gcp_metadata.core.exceptions import HTTPStatusError, MetadataLookupWarning, MetadataTimeoutError
from gcp_metadata.metadata import metadata_accessor

# Network errors that simply mean "no metadata server on this network"
EXPECTED_ERROR_CODES = frozenset(
    {
        "EHOSTDOWN",
        "EHOSTUNREACH",
        "ENETUNREACH",
        "ENOENT",
        "ENOTFOUND",
        "ECONNREFUSED",
    }
)

_cached_is_available: asyncio.Task[bool] | None = None


def classify_detection_error(err: Exception, debug: bool = False) -> bool:
    """
    Turn a failed probe into a verdict (always False).

    Unexpected failures also issue a :class:`MetadataLookupWarning` so a
    misconfiguration does not pass silently.
    """
    if debug:
        logger.info(f"Metadata server detection failed: {err!r}")

    if isinstance(err, MetadataTimeoutError):
        # On GCP the metadata server answers within milliseconds
        return False
    if isinstance(err, HTTPStatusError) and err.status == 404:
        return False

    code = getattr(err, "code", None)
    if code not in EXPECTED_ERROR_CODES:
        warnings.warn(
            f"received unexpected error = {err} code = {code or 'UNKNOWN'}",
            MetadataLookupWarning,
            stacklevel=2,
        )
    return False


async def _probe(config: MetadataConfig) -> bool:
    try:
        await metadata_accessor(
            "instance",
            no_response_retries=config.detect_retries,
            # A pinned address means we are likely off GCP; the DNS name would only mislead.
            fast_fail=not config.host,
            config=config,
        )
    except Exception as err:
        return classify_detection_error(err, debug=config.debug)
    return True


async def is_available(config: MetadataConfig | None = None) -> bool:
    """
    Determine if the metadata server is currently available.

    The first call starts the probe; later calls share its result. *config*
    only matters for the call that starts a probe.
    """
    global _cached_is_available
    loop = asyncio.get_running_loop()
    task = _cached_is_available
    stale = task is not None and (task.cancelled() or (not task.done() and task.get_loop() is not loop))
    if task is None or stale:
        task = loop.create_task(_probe(config or get_config()), name="metadata-is-available")
        _cached_is_available = task
    # One impatient caller must not cancel the probe for everyone else
    return await asyncio.shield(task)


def reset_is_available_cache() -> None:
    """Reset the memoized is_available() lookup."""
    global _cached_is_available
    _cached_is_available = None
