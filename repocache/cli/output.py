"""Rendering of command results on stdout."""

import json

import click
import yaml

FORMATS = ("yaml", "json", "json-compact")

format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(FORMATS),
    default="yaml",
    show_default=True,
    help="Output format.",
)


def render(data, output_format: str = "yaml") -> str:
    if output_format == "json":
        return json.dumps(data, indent=2)
    if output_format == "json-compact":
        return json.dumps(data, separators=(",", ":"))
    return yaml.safe_dump(
        data, explicit_start=True, sort_keys=False, default_flow_style=False
    ).rstrip("\n")


def emit(data, output_format: str = "yaml") -> None:
    click.echo(render(data, output_format))
