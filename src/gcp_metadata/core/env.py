"""
GCP residency detection.

Decides whether this process runs on Google Cloud (Cloud Run, Cloud Functions,
or a Compute Engine VM) from local signals only: environment variables, the
DMI BIOS files on Linux, and the network interfaces' hardware addresses.
No network calls are made.
"""

from __future__ import annotations

import os
import platform
import re

import psutil

GCE_LINUX_BIOS_PATHS = {
    "bios_date": "/sys/class/dmi/id/bios_date",
    "bios_vendor": "/sys/class/dmi/id/bios_vendor",
}

# Google's OUI; psutil renders it with ':' on POSIX and '-' on Windows.
_GCE_MAC_ADDRESS_REGEX = re.compile(r"^42[:-]01", re.IGNORECASE)

_SERVERLESS_MARKERS = ("CLOUD_RUN_JOB", "FUNCTION_NAME", "K_SERVICE")


def is_google_cloud_serverless() -> bool:
    """
    Check if running on Cloud Run (services or jobs) or Cloud Functions.

    Checks for CLOUD_RUN_JOB, FUNCTION_NAME and K_SERVICE environment variables.
    """
    return any(os.environ.get(var) for var in _SERVERLESS_MARKERS)


def is_google_compute_engine_linux() -> bool:
    """Check the DMI BIOS vendor on a Linux Compute Engine VM."""
    if platform.system() != "Linux":
        return False
    try:
        # bios_date missing means there is no DMI data to trust at all
        os.stat(GCE_LINUX_BIOS_PATHS["bios_date"])
        with open(GCE_LINUX_BIOS_PATHS["bios_vendor"], encoding="utf-8") as f:
            vendor = f.read()
    except OSError:
        return False
    return "Google" in vendor


def is_google_compute_engine_mac_address() -> bool:
    """Check whether any network interface carries a Google-assigned MAC."""
    for addrs in psutil.net_if_addrs().values():
        for addr in addrs:
            if addr.family == psutil.AF_LINK and _GCE_MAC_ADDRESS_REGEX.match(addr.address or ""):
                return True
    return False


def is_google_compute_engine() -> bool:
    return is_google_compute_engine_linux() or is_google_compute_engine_mac_address()


def detect_gcp_residency() -> bool:
    """Return True if this process appears to run on Google Cloud."""
    return is_google_cloud_serverless() or is_google_compute_engine()
