"""gcp-metadata instance / project — print a metadata value."""

from __future__ import annotations

import asyncio
import json

import click


def _parse_params(values: tuple[str, ...]) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--param")
        params[key] = value
    return params


def _fetch(type_: str, prop: str | None, params: tuple[str, ...]) -> None:
    from gcp_metadata.core.exceptions import MetadataError
    from gcp_metadata.metadata import metadata_accessor

    options: dict = {}
    if prop:
        options["property"] = prop
    if params:
        options["params"] = _parse_params(params)

    try:
        value = asyncio.run(metadata_accessor(type_, options))
    except MetadataError as e:
        raise click.ClickException(str(e)) from e

    if isinstance(value, str):
        click.echo(value)
    else:
        click.echo(json.dumps(value, indent=2, default=str))


@click.command()
@click.argument("prop", required=False)
@click.option("--param", "params", multiple=True, metavar="KEY=VALUE", help="Query parameter, repeatable.")
def instance(prop: str | None, params: tuple[str, ...]) -> None:
    """Print instance metadata, optionally a single PROP such as 'hostname'."""
    _fetch("instance", prop, params)


@click.command()
@click.argument("prop", required=False)
@click.option("--param", "params", multiple=True, metavar="KEY=VALUE", help="Query parameter, repeatable.")
def project(prop: str | None, params: tuple[str, ...]) -> None:
    """Print project metadata, optionally a single PROP such as 'project-id'."""
    _fetch("project", prop, params)
