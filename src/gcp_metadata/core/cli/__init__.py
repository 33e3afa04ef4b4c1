"""gcp-metadata CLI — fetch metadata and check for a metadata server."""

import click

from gcp_metadata import __version__


@click.group()
@click.version_option(version=__version__, package_name="gcp-metadata")
@click.option("--debug", is_flag=True, help="Log probe and request details to stderr.")
def main(debug: bool) -> None:
    """Query the Google Cloud metadata server."""
    if debug:
        from gcp_metadata.core.utils.logging import setup_logging

        setup_logging(level="DEBUG")


# Register subcommands
from .detect_cmd import detect, residency
from .fetch_cmd import instance, project

main.add_command(instance)
main.add_command(project)
main.add_command(detect)
main.add_command(residency)
