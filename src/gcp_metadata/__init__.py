"""Google Cloud metadata server client with fast environment detection."""

__version__ = "0.1.0"

from gcp_metadata.availability import is_available, reset_is_available_cache
from gcp_metadata.core.config import (
    BASE_PATH,
    HEADER_NAME,
    HEADER_VALUE,
    HEADERS,
    HOST_ADDRESS,
    SECONDARY_HOST_ADDRESS,
    MetadataConfig,
    get_base_url,
    get_config,
    reset_config,
)
from gcp_metadata.core.env import detect_gcp_residency
from gcp_metadata.core.exceptions import (
    ConfigurationError,
    HTTPStatusError,
    MetadataError,
    MetadataLookupWarning,
    MetadataTimeoutError,
    NetworkError,
    ProtocolError,
)
from gcp_metadata.metadata import instance, project
from gcp_metadata.residency import request_timeout, set_gcp_residency

__all__ = [
    "BASE_PATH",
    "HEADERS",
    "HEADER_NAME",
    "HEADER_VALUE",
    "HOST_ADDRESS",
    "SECONDARY_HOST_ADDRESS",
    "ConfigurationError",
    "HTTPStatusError",
    "MetadataConfig",
    "MetadataError",
    "MetadataLookupWarning",
    "MetadataTimeoutError",
    "NetworkError",
    "ProtocolError",
    "__version__",
    "detect_gcp_residency",
    "get_base_url",
    "get_config",
    "instance",
    "is_available",
    "project",
    "request_timeout",
    "reset_config",
    "reset_is_available_cache",
    "set_gcp_residency",
]
