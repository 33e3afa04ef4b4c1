"""
Configuration for the metadata client.

Environment variables are read once, at the boundary, into a MetadataConfig:
    GCE_METADATA_IP / GCE_METADATA_HOST   base address override (IP wins)
    DETECT_GCP_RETRIES                    no-response retries for is_available()
    DEBUG_AUTH                            log absorbed detection errors

Core logic takes a MetadataConfig argument and never reads os.environ itself,
so tests can pass a config instead of mutating the environment.

Usage:
    config = get_config()                       # from the environment
    config = MetadataConfig(host="localhost:8080")

    get_base_url(config=config)  # 'http://localhost:8080/computeMetadata/v1'
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urljoin

from loguru import logger

BASE_PATH = "/computeMetadata/v1"
HOST_ADDRESS = "http://169.254.169.254"
SECONDARY_HOST_ADDRESS = "http://metadata.google.internal."

HEADER_NAME = "Metadata-Flavor"
HEADER_VALUE = "Google"
HEADERS: Mapping[str, str] = {HEADER_NAME: HEADER_VALUE}

_SCHEME_RE = re.compile(r"^https?://")


@dataclass(frozen=True)
class MetadataConfig:
    """Settings that steer where and how the metadata server is queried."""

    host: str | None = None
    """Base address override. When set, detection probes only this address."""

    detect_retries: int = 0
    """No-response retries for the availability probe."""

    debug: bool = False
    """Log errors absorbed by is_available()."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> MetadataConfig:
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ
        host = env.get("GCE_METADATA_IP") or env.get("GCE_METADATA_HOST") or None

        retries = 0
        raw_retries = env.get("DETECT_GCP_RETRIES")
        if raw_retries:
            try:
                retries = int(raw_retries)
            except ValueError:
                logger.warning(f"Ignoring non-integer DETECT_GCP_RETRIES={raw_retries!r}")
            else:
                if retries < 0:
                    logger.warning(f"Ignoring negative DETECT_GCP_RETRIES={raw_retries!r}")
                    retries = 0

        return cls(host=host, detect_retries=retries, debug=bool(env.get("DEBUG_AUTH")))


def get_base_url(base_url: str | None = None, config: MetadataConfig | None = None) -> str:
    """
    Resolve the metadata API root.

    Args:
        base_url: Explicit address; wins over everything else.
        config: Source of the host override. Defaults to get_config().

    Returns:
        The base URL, e.g. ``http://169.254.169.254/computeMetadata/v1``.
    """
    if not base_url:
        config = config or get_config()
        base_url = config.host or HOST_ADDRESS
    if not _SCHEME_RE.match(base_url):
        base_url = f"http://{base_url}"
    return urljoin(base_url, BASE_PATH)


# Module-level singleton
_config_instance: MetadataConfig | None = None


def get_config() -> MetadataConfig:
    """Get or create the global MetadataConfig built from the environment."""
    global _config_instance
    if _config_instance is None:
        _config_instance = MetadataConfig.from_env()
    return _config_instance


def reset_config() -> None:
    """Reset the global config so the environment is read again (useful for testing)."""
    global _config_instance
    _config_instance = None
