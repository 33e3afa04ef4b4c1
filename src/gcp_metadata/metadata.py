"""
Instance and project metadata accessors.

    await instance()                                   # whole instance tree
    await instance("hostname")                         # a single property
    await project({"property": "attributes", "params": {"recursive": "true"}})

Responses must carry ``Metadata-Flavor: Google``. JSON bodies are decoded
(integers keep full precision, long decimals become ``Decimal``); anything
else, including bare ``NaN`` or ``Infinity``, is returned as raw text.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Union

from gcp_metadata import race, transport
from gcp_metadata.core.config import (
    HEADER_NAME,
    HEADER_VALUE,
    HEADERS,
    SECONDARY_HOST_ADDRESS,
    MetadataConfig,
    get_base_url,
    get_config,
)
from gcp_metadata.core.exceptions import ConfigurationError, HTTPStatusError, ProtocolError
from gcp_metadata.residency import request_timeout
from gcp_metadata.transport import MetadataRequest, MetadataResponse

Options = Union[str, Mapping[str, Any], None]

VALID_OPTIONS = ("params", "property", "headers")

# Retries for regular lookups; detection uses MetadataConfig.detect_retries
DEFAULT_NO_RESPONSE_RETRIES = 3


def validate(options: Mapping[str, Any]) -> None:
    """Reject option keys the accessor does not understand."""
    for key in options:
        if key in VALID_OPTIONS:
            continue
        if key == "qs":
            raise ConfigurationError("'qs' is not a valid configuration option. Please use 'params' instead.")
        raise ConfigurationError(f"'{key}' is not a valid configuration option.")


def _normalize_options(options: Options) -> Mapping[str, Any]:
    if options is None:
        return {}
    if isinstance(options, str):
        return {"property": options}
    if not isinstance(options, Mapping):
        raise ConfigurationError(f"options must be a property name or a mapping, got {type(options).__name__}")
    return options


def build_request(
    type_: str,
    options: Options = None,
    *,
    no_response_retries: int = DEFAULT_NO_RESPONSE_RETRIES,
    config: MetadataConfig | None = None,
) -> MetadataRequest:
    """Validate *options* and build the request for ``{base}/{type_}[/{property}]``."""
    opts = _normalize_options(options)
    validate(opts)
    prop = opts.get("property")
    suffix = f"/{prop}" if prop else ""
    return MetadataRequest(
        url=f"{get_base_url(config=config)}/{type_}{suffix}",
        headers={**HEADERS, **(opts.get("headers") or {})},
        params=opts.get("params"),
        timeout=request_timeout(),
        no_response_retries=no_response_retries,
    )


# Beyond this many characters a float literal no longer round-trips through a double
FLOAT_PRECISION_DIGITS = 15


def _parse_float(literal: str) -> float | Decimal:
    return Decimal(literal) if len(literal) > FLOAT_PRECISION_DIGITS else float(literal)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_response(res: MetadataResponse) -> Any:
    """Check the flavor header and decode the body."""
    if res.header(HEADER_NAME) != HEADER_VALUE:
        raise ProtocolError(f"Invalid response from metadata service: incorrect {HEADER_NAME} header.")
    if not res.text:
        raise ProtocolError("Invalid response from the metadata service")
    try:
        return json.loads(res.text, parse_float=_parse_float, parse_constant=_reject_constant)
    except ValueError:
        return res.text


async def metadata_accessor(
    type_: str,
    options: Options = None,
    *,
    no_response_retries: int = DEFAULT_NO_RESPONSE_RETRIES,
    fast_fail: bool = False,
    config: MetadataConfig | None = None,
) -> Any:
    """
    Fetch ``type_`` (``instance`` or ``project``) from the metadata server.

    Args:
        type_: Top-level metadata resource.
        options: Property name, or a mapping with ``params``, ``property``
            and ``headers``.
        no_response_retries: Retries for requests that got no response.
        fast_fail: Race the IP address against the DNS name.
        config: Defaults to :func:`get_config`.

    Raises:
        ConfigurationError: invalid options, before any network call.
        ProtocolError: missing/incorrect flavor header or empty body.
        HTTPStatusError: non-success status, message prefixed accordingly.
        NetworkError: connection failure or timeout.
    """
    config = config or get_config()
    request = build_request(type_, options, no_response_retries=no_response_retries, config=config)
    try:
        if fast_fail:
            res = await race.fast_fail_request(
                request,
                get_base_url(config=config),
                get_base_url(SECONDARY_HOST_ADDRESS),
            )
        else:
            res = await transport.arequest(request)
    except HTTPStatusError as err:
        if err.status != 200:
            err.args = (f"Unsuccessful response status code. {err.args[0]}", *err.args[1:])
        raise
    return parse_response(res)


async def instance(options: Options = None, *, config: MetadataConfig | None = None) -> Any:
    """Obtain metadata for the current GCE instance."""
    return await metadata_accessor("instance", options, config=config)


async def project(options: Options = None, *, config: MetadataConfig | None = None) -> Any:
    """Obtain metadata for the current GCP project."""
    return await metadata_accessor("project", options, config=config)
