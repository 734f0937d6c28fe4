"""Reporter commands for bweb-log CLI.

Enable, disable and configure reporters of a running server.
"""

from __future__ import annotations

__all__ = ["disable", "enable", "options", "parse_assignment", "set_options"]

import json
from typing import Any

import click

from bweb_log.cli.api_client import ClientSettings, api_request
from bweb_log.constants import MANAGEMENT_PATH


def parse_assignment(assignment: str) -> tuple[str, Any]:
    """Parse ``KEY=VALUE``; the value is JSON when it parses, else a string.

    Raises:
        click.BadParameter: If there is no ``=`` or the key is empty.
    """
    key, sep, raw = assignment.partition("=")
    key = key.strip()
    if not sep or not key:
        raise click.BadParameter(f"Expected KEY=VALUE, got {assignment!r}")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key, value


def _toggle(settings: ClientSettings, reporter_id: str, enabled: bool) -> None:
    data = api_request(
        "PUT",
        MANAGEMENT_PATH,
        settings=settings,
        json_data={"id": reporter_id, "enabled": enabled},
    )
    state = data.get("reporters", {}).get(reporter_id)
    label = "enabled" if state else "disabled"
    click.echo(f"Reporter {reporter_id} {label}.")


def _echo_options(data: dict[str, Any], as_json: bool) -> None:
    reporter_options: dict[str, Any] = data.get("options", {})
    if as_json:
        click.echo(json.dumps({"options": reporter_options}, indent=2))
        return
    if not reporter_options:
        click.echo("No options.")
        return
    for key, value in sorted(reporter_options.items()):
        click.echo(f"  {key:20} {json.dumps(value)}")


@click.command()
@click.argument("reporter_id")
@click.pass_obj
def enable(settings: ClientSettings, reporter_id: str) -> None:
    """Enable a reporter (no-op if already enabled)."""
    _toggle(settings, reporter_id, True)


@click.command()
@click.argument("reporter_id")
@click.pass_obj
def disable(settings: ClientSettings, reporter_id: str) -> None:
    """Disable a reporter (no-op if already disabled)."""
    _toggle(settings, reporter_id, False)


@click.command()
@click.argument("reporter_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def options(settings: ClientSettings, reporter_id: str, as_json: bool) -> None:
    """Show the runtime options of an enabled reporter."""
    data = api_request("GET", f"{MANAGEMENT_PATH}/{reporter_id}", settings=settings)
    _echo_options(data, as_json)


@click.command("set")
@click.argument("reporter_id")
@click.argument("assignments", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def set_options(settings: ClientSettings, reporter_id: str, assignments: tuple[str, ...], as_json: bool) -> None:
    """Update runtime options of an enabled reporter.

    Values are parsed as JSON, falling back to plain strings.

    Examples:
        bweb-log set file response=true
        bweb-log set console level=DEBUG
    """
    update = dict(parse_assignment(assignment) for assignment in assignments)
    data = api_request("PUT", f"{MANAGEMENT_PATH}/{reporter_id}", settings=settings, json_data=update)
    _echo_options(data, as_json)
