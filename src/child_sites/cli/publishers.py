"""CLI: child-sites publishers"""

import json

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _get_settings():
    from child_sites.cli.main import _get_settings
    return _get_settings()


def _get_toolkit():
    from child_sites.cli.main import _get_toolkit
    return _get_toolkit()


def _run(coro):
    from child_sites.cli.main import _run
    return _run(coro)


@click.command("publishers")
@click.option("--refresh", is_flag=True, help="Fetch child publishers from Ad Manager")
@click.option("--json-output", "--json", is_flag=True)
def publishers_cmd(refresh, json_output):
    """List child publishers of the configured network."""
    settings = _get_settings()
    publishers = settings.child_publishers

    if refresh or publishers is None:
        async def _refresh():
            toolkit = _get_toolkit()
            try:
                with console.status("Fetching child publishers..."):
                    return await toolkit.refresh_child_publishers(settings)
            finally:
                await toolkit.close()

        publishers = _run(_refresh())

    if json_output:
        click.echo(json.dumps({code: p.model_dump() for code, p in publishers.items()}, indent=2))
        return
    table = Table(title=f"Child Publishers ({len(publishers)} total)")
    table.add_column("Child Network Code", style="bold")
    table.add_column("Company ID")
    table.add_column("Name")
    for code, p in sorted(publishers.items()):
        table.add_row(code, p.id, p.name)
    console.print(table)
