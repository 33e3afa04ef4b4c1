"""
HTTP transport for the metadata server.

Thin wrapper around urllib with the metadata server's needs: a GET with
headers, query params, a millisecond timeout (0 = wait forever) and a bounded
number of retries for requests that never got a response. Failures come back
as typed errors so callers can tell a timeout from a refused connection from
an HTTP status.
"""

from __future__ import annotations

import asyncio
import errno
import http.client
import socket
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field

from loguru import logger

from gcp_metadata.core.exceptions import HTTPStatusError, MetadataTimeoutError, NetworkError


@dataclass(frozen=True)
class MetadataRequest:
    """A single GET against the metadata server."""

    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] | None = None
    timeout: int = 0
    """Milliseconds; 0 disables the timeout."""

    no_response_retries: int = 0


@dataclass(frozen=True)
class MetadataResponse:
    status: int
    headers: Mapping[str, str]
    """Lower-cased header names."""

    text: str = ""

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


def build_url(request: MetadataRequest) -> str:
    """Return the request URL with its query string attached."""
    if not request.params:
        return request.url
    query = urllib.parse.urlencode(dict(request.params), doseq=True)
    separator = "&" if "?" in request.url else "?"
    return f"{request.url}{separator}{query}"


def _retry_delay(attempt: int) -> float:
    """Exponential backoff in seconds: 0.5, 1.5, 3.5, ..."""
    return ((2**attempt) - 1) / 2


def _classify_network_error(reason: object, url: str) -> NetworkError:
    if isinstance(reason, TimeoutError) or getattr(reason, "errno", None) == errno.ETIMEDOUT:
        return MetadataTimeoutError(f"Request to {url} timed out")
    if isinstance(reason, socket.gaierror):
        code = "EAI_AGAIN" if reason.errno == getattr(socket, "EAI_AGAIN", None) else "ENOTFOUND"
        return NetworkError(f"Could not resolve host for {url}: {reason}", code=code)
    err_no = getattr(reason, "errno", None)
    code = errno.errorcode.get(err_no) if isinstance(err_no, int) else None
    return NetworkError(f"Request to {url} failed: {reason}", code=code)


def _send_once(request: MetadataRequest) -> MetadataResponse:
    url = build_url(request)
    req = urllib.request.Request(url=url, method="GET", headers=dict(request.headers))
    timeout = request.timeout / 1000 if request.timeout else None
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
            return MetadataResponse(
                status=resp.status,
                headers={k.lower(): v for k, v in resp.headers.items()},
                text=raw.decode("utf-8", errors="replace"),
            )
    except urllib.error.HTTPError as e:
        body = e.read().decode("utf-8", errors="replace") if e.fp is not None else ""
        headers = {k.lower(): v for k, v in e.headers.items()} if e.headers else {}
        response = MetadataResponse(status=e.code, headers=headers, text=body)
        raise HTTPStatusError(f"Request failed with status code {e.code}", status=e.code, response=response) from e
    except urllib.error.URLError as e:
        raise _classify_network_error(e.reason, url) from e
    except OSError as e:
        # Raised while reading the body (resets, read timeouts)
        raise _classify_network_error(e, url) from e
    except http.client.HTTPException as e:
        # Something other than an HTTP server answered, or the URL is malformed
        raise NetworkError(f"Invalid HTTP response from {url}: {e!r}") from e


def send_request(request: MetadataRequest) -> MetadataResponse:
    """
    Perform a blocking GET, retrying requests that got no response.

    HTTP status errors are never retried: the server answered.

    Raises:
        HTTPStatusError: non-2xx status.
        MetadataTimeoutError: no answer within ``request.timeout``.
        NetworkError: connection-level failure, ``code`` holds the errno name.
    """
    attempt = 0
    while True:
        try:
            return _send_once(request)
        except NetworkError as e:
            if attempt >= request.no_response_retries:
                raise
            attempt += 1
            delay = _retry_delay(attempt)
            logger.debug(
                f"No response from {request.url} ({e.code or 'unknown'}), "
                f"retry {attempt}/{request.no_response_retries} in {delay:.1f}s"
            )
            time.sleep(delay)


async def arequest(request: MetadataRequest) -> MetadataResponse:
    """Run :func:`send_request` in the event loop's default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, send_request, request)
