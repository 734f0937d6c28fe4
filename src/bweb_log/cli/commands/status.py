"""Status command for bweb-log CLI.

Shows the reporters of a running server and whether each is enabled.
"""

from __future__ import annotations

__all__ = ["status"]

import json

import click

from bweb_log.cli.api_client import ClientSettings, api_request
from bweb_log.constants import MANAGEMENT_PATH


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def status(settings: ClientSettings, as_json: bool) -> None:
    """Show reporters and whether they are enabled.

    Examples:
        bweb-log status
        bweb-log --url http://127.0.0.1:12039 status --json
    """
    data = api_request("GET", MANAGEMENT_PATH, settings=settings)
    reporters: dict[str, bool] = data.get("reporters", {})

    if as_json:
        click.echo(json.dumps({"reporters": reporters}, indent=2))
        return

    if not reporters:
        click.echo("No reporters registered.")
        return

    click.echo(click.style("Reporters:", fg="cyan", bold=True))
    click.echo()
    for reporter_id, enabled in sorted(reporters.items()):
        if enabled:
            state = click.style("enabled", fg="green")
        else:
            state = click.style("disabled", fg="yellow")
        click.echo(f"  {reporter_id:20} {state}")
    click.echo()
    click.echo(f"{sum(reporters.values())}/{len(reporters)} reporters enabled")
