"""gcp-metadata detect / residency — environment checks."""

from __future__ import annotations

import asyncio
import sys

import click


@click.command()
def detect() -> None:
    """Check whether a metadata server is reachable. Exits 1 when it is not."""
    from gcp_metadata.availability import is_available

    if asyncio.run(is_available()):
        click.echo("available")
    else:
        click.echo("unavailable")
        sys.exit(1)


@click.command()
def residency() -> None:
    """Show whether this host looks like Google Cloud, without any network call."""
    from gcp_metadata.residency import get_gcp_residency, request_timeout

    on_gcp = get_gcp_residency()
    click.echo(f"gcp: {'yes' if on_gcp else 'no'}")
    timeout = request_timeout()
    click.echo(f"request timeout: {f'{timeout} ms' if timeout else 'none'}")
