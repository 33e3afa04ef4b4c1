"""Shared test fixtures for gcp_metadata."""

from __future__ import annotations

import asyncio

import pytest

from gcp_metadata import availability, residency, transport
from gcp_metadata.core import config
from gcp_metadata.core.config import HEADER_NAME, HEADER_VALUE
from gcp_metadata.transport import MetadataRequest, MetadataResponse

_ENV_VARS = ("GCE_METADATA_IP", "GCE_METADATA_HOST", "DETECT_GCP_RETRIES", "DEBUG_AUTH")

PRIMARY_HOST = "169.254.169.254"
SECONDARY_HOST = "metadata.google.internal."


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """Start every test with no env overrides, no cached verdict, residency forced off."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    config.reset_config()
    availability.reset_is_available_cache()
    residency.gcp_residency_cache = False
    yield
    config.reset_config()
    availability.reset_is_available_cache()
    residency.reset_gcp_residency()


def ok_response(text: str = "{}", flavor: str | None = HEADER_VALUE) -> MetadataResponse:
    headers = {HEADER_NAME.lower(): flavor} if flavor is not None else {}
    return MetadataResponse(status=200, headers=headers, text=text)


class FakeTransport:
    """Stands in for transport.arequest, keyed by the request's host.

    Each route is a response, an exception to raise, or a callable taking the
    request. An optional delay (seconds) runs first. Unrouted hosts never answer.
    """

    def __init__(self):
        self.routes: dict[str, tuple[float, object]] = {}
        self.calls: list[MetadataRequest] = []

    def route(self, host: str, outcome, delay: float = 0.0) -> None:
        self.routes[host] = (delay, outcome)

    async def __call__(self, request: MetadataRequest) -> MetadataResponse:
        self.calls.append(request)
        for host, (delay, outcome) in self.routes.items():
            if f"//{host}/" in request.url:
                await asyncio.sleep(delay)
                if isinstance(outcome, BaseException):
                    raise outcome
                if callable(outcome):
                    return outcome(request)
                return outcome
        await asyncio.Event().wait()
        raise AssertionError("unreachable")

    def hosts_called(self) -> list[str]:
        return [req.url.split("/")[2] for req in self.calls]


@pytest.fixture
def fake_transport(monkeypatch) -> FakeTransport:
    fake = FakeTransport()
    monkeypatch.setattr(transport, "arequest", fake)
    return fake


@pytest.fixture
def make_response():
    return ok_response
