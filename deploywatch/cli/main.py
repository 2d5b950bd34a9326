"""deploywatch command-line interface."""

from __future__ import annotations

import asyncio
from typing import Any

import click
import yaml

from deploywatch.diff.canonical import canonicalize_spec
from deploywatch.diff.detector import ChangeDetector
from deploywatch.models.resources import HealthStatus, ResourceSnapshot, SyncStatus


def _load_spec(stream: Any) -> dict[str, Any]:
    """Read a YAML/JSON Application (or bare spec) and return its canonical spec."""
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as exc:
        raise click.BadParameter(f"{stream.name}: not valid YAML/JSON ({exc})") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise click.BadParameter(f"{stream.name}: expected a mapping at the top level")
    if isinstance(data.get("spec"), dict) and "kind" in data:
        data = data["spec"]
    return canonicalize_spec(data)


@click.version_option(package_name="deploywatch", prog_name="deploywatch")
@click.group(name="deploywatch")
def cli() -> None:
    """Watch Argo CD Applications and post one Slack message per deployment."""


@cli.command()
def run() -> None:
    """Start the operator (same as ``python -m deploywatch``)."""
    from deploywatch.app import main

    asyncio.run(main())


@cli.command()
@click.argument("old", type=click.File("r"))
@click.argument("new", type=click.File("r"))
@click.option("-c", "--context", "context_lines", type=click.IntRange(0, 20), default=3, show_default=True)
def diff(old: Any, new: Any, context_lines: int) -> None:
    """Print the change summary a notification would show for OLD -> NEW."""
    detector = ChangeDetector(context_lines=context_lines)
    before = ResourceSnapshot(health=HealthStatus.N_A, sync=SyncStatus.N_A, spec=_load_spec(old))
    after = ResourceSnapshot(health=HealthStatus.N_A, sync=SyncStatus.N_A, spec=_load_spec(new))

    changes = detector.change_set(before, after)
    if not changes:
        click.echo("No changes.")
        return
    click.echo(detector.render_changes(before, after, changes))
