"""
Child Sites Toolkit CLI: `child-sites` command.

Commands:
  child-sites import <query>           Import child sites into a CSV sheet
  child-sites publishers               List (or refresh) cached child publishers
  child-sites settings <cmd>           Network code, API version, access token
"""

import asyncio
import logging
from pathlib import Path

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install child-sites-toolkit[cli]")

from child_sites import __version__
from child_sites.client import ChildSitesToolkit
from child_sites.errors import SettingsError
from child_sites.settings import DEFAULT_CONFIG_FILE, UserSettings

console = Console()
CONFIG_FILE: Path = DEFAULT_CONFIG_FILE


def _get_settings() -> UserSettings:
    return UserSettings(CONFIG_FILE)


def _get_toolkit() -> ChildSitesToolkit:
    try:
        return ChildSitesToolkit.from_settings(_get_settings())
    except SettingsError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def main(log_level: str):
    """Child Sites Toolkit: export Ad Manager child sites."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# Register subcommands from separate modules
from child_sites.cli.imports import import_cmd
from child_sites.cli.publishers import publishers_cmd
from child_sites.cli.settings import settings

main.add_command(import_cmd)
main.add_command(publishers_cmd)
main.add_command(settings)


if __name__ == "__main__":
    main()
