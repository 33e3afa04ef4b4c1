"""
Dual-path race against the metadata server.

The same request is sent to the IP address and to the DNS name at once:

1. DNS is slow in some GCP environments, so whichever path answers first
   detects the runtime environment faster.
2. Off GCP the IP is often tarpitted, so waiting on it alone is slow.

Both paths report into a single future. A success settles it immediately,
whenever it happens. A failure only settles it once the sibling has failed
too, and then the primary path's error is the one surfaced. The losing path
is not cancelled; it finishes in the background and its outcome is retrieved
and dropped.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Callable, Coroutine
from typing import Any

from loguru import logger

from gcp_metadata import transport
from gcp_metadata.core.exceptions import NetworkError
from gcp_metadata.transport import MetadataRequest, MetadataResponse

Sender = Callable[[MetadataRequest], Coroutine[Any, Any, MetadataResponse]]

PRIMARY = "primary"
SECONDARY = "secondary"

# Strong references so background paths are not garbage collected mid-flight
_background_paths: set[asyncio.Task] = set()


def secondary_request(request: MetadataRequest, primary_base: str, secondary_base: str) -> MetadataRequest:
    """Return *request* re-targeted from *primary_base* to *secondary_base*."""
    if not request.url.startswith(primary_base):
        raise ValueError(f"{request.url} is not under {primary_base}")
    return dataclasses.replace(request, url=secondary_base + request.url[len(primary_base) :])


async def fast_fail_request(
    request: MetadataRequest,
    primary_base: str,
    secondary_base: str,
    send: Sender | None = None,
) -> MetadataResponse:
    """
    Race *request* against two base addresses and return the first success.

    Args:
        request: Request whose URL starts with *primary_base*.
        primary_base: Base URL the request already targets.
        secondary_base: Base URL for the second path.
        send: Coroutine function performing one request. Defaults to
            :func:`gcp_metadata.transport.arequest`.

    Raises:
        The primary path's error when both paths fail.
    """
    send = send or transport.arequest
    loop = asyncio.get_running_loop()
    outcome: asyncio.Future[MetadataResponse] = loop.create_future()
    failures: dict[str, BaseException] = {}

    def settle(label: str, task: asyncio.Task) -> None:
        _background_paths.discard(task)
        if task.cancelled():
            error: BaseException | None = NetworkError(f"{label} metadata request was cancelled")
        else:
            error = task.exception()

        if outcome.done():
            return
        if not failures:
            logger.bind(path=label).debug(f"Metadata race: finished first ({'ok' if error is None else error!r})")
        if error is None:
            outcome.set_result(task.result())
            return
        failures[label] = error
        if len(failures) == 2:
            outcome.set_exception(failures[PRIMARY])

    requests = {
        PRIMARY: request,
        SECONDARY: secondary_request(request, primary_base, secondary_base),
    }
    for label, path_request in requests.items():
        task = loop.create_task(send(path_request), name=f"metadata-race-{label}")
        _background_paths.add(task)
        task.add_done_callback(lambda t, label=label: settle(label, t))

    return await outcome
