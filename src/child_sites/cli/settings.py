"""CLI: child-sites settings show|network-code|api-version|access-token"""

import json
from typing import Callable, Optional

import click
from rich.console import Console

from child_sites.errors import SettingsError
from child_sites.settings import UserSettings

console = Console()


def _get_settings() -> UserSettings:
    from child_sites.cli.main import _get_settings
    return _get_settings()


def _prompt_until_valid(label: str, value: Optional[str], apply: Callable[[str], None]) -> str:
    """Apply ``value`` (prompting when missing), re-prompting after invalid input."""
    while True:
        if value is None:
            value = click.prompt(label)
        try:
            apply(value)
            return value.strip()
        except SettingsError as e:
            console.print(f"[red]{e}[/red]")
            value = None


@click.group()
def settings():
    """User settings."""


@settings.command("show")
@click.option("--json-output", "--json", is_flag=True)
def settings_show(json_output):
    """Show current settings."""
    s = _get_settings()
    if json_output:
        data = s.as_dict()
        if data.get("accessToken"):
            data["accessToken"] = "***"
        click.echo(json.dumps(data, indent=2))
        return
    publishers = s.child_publishers or {}
    console.print(f"Network Code: {s.network_code or 'Not set'}")
    console.print(f"Ad Manager API Version: {s.api_version}")
    console.print(f"Base URL: {s.base_url}")
    console.print(f"Access Token: {'set' if s.access_token else 'Not set'}")
    console.print(f"Cached Child Publishers: {len(publishers)}")


@settings.command("network-code")
@click.argument("value", required=False)
def settings_network_code(value):
    """Set the Ad Manager network code."""
    s = _get_settings()

    def apply(v: str) -> None:
        s.network_code = v

    saved = _prompt_until_valid("Network Code", value, apply)
    console.print(f"[green]Network code set to {saved}[/green]")


@settings.command("api-version")
@click.argument("value", required=False)
def settings_api_version(value):
    """Set the Ad Manager API version (e.g. v202411)."""
    s = _get_settings()

    def apply(v: str) -> None:
        s.api_version = v

    saved = _prompt_until_valid("API Version", value, apply)
    console.print(f"[green]API version set to {saved}[/green]")


@settings.command("access-token")
def settings_access_token():
    """Store an OAuth access token for the API gateway."""
    token = click.prompt("Access token", hide_input=True)
    _get_settings().access_token = token
    console.print("[green]Access token saved.[/green]")
