"""CLI: child-sites import"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn

from child_sites.coordinator import ProgressSnapshot
from child_sites.models.session import ImportState
from child_sites.models.statement import Statement
from child_sites.planner import DEFAULT_MAX_RESULTS, DEFAULT_PAGE_SIZE

console = Console()


def _get_toolkit():
    from child_sites.cli.main import _get_toolkit
    return _get_toolkit()


def _run(coro):
    from child_sites.cli.main import _run
    return _run(coro)


class RichProgressView:
    """Progress panel: bar, sites loaded, total results and elapsed time."""

    def __init__(self, console: Console):
        self._console = console
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            TextColumn("{task.fields[percent]:>5.1f}%"),
            TextColumn("Sites Loaded: {task.completed}"),
            TextColumn("Total Results: {task.fields[total_label]}"),
            TextColumn("Elapsed Time: {task.fields[elapsed]}"),
            console=console,
        )
        self._task: Optional[TaskID] = None

    def start(self) -> None:
        if self._task is not None:
            return
        self._progress.start()
        self._task = self._progress.add_task(
            "Importing sites", total=None, percent=0.0, total_label="Loading...", elapsed="0:00",
        )

    def render(self, snapshot: ProgressSnapshot) -> None:
        if self._task is None:
            return
        self._progress.update(
            self._task,
            completed=snapshot.retrieved,
            total=snapshot.total_results,
            percent=snapshot.percent,
            total_label=snapshot.total_results if snapshot.total_results is not None else "",
            elapsed=snapshot.elapsed,
        )

    def show_error(self, message: str) -> None:
        if self._task is not None:
            self._progress.update(self._task, total_label="")
        self.stop()
        self._console.print(Panel(message, title="Import failed", border_style="red"))

    def stop(self) -> None:
        self._progress.stop()


class ClickDialog:
    """Confirmation prompt that opens the progress view once accepted."""

    def __init__(self, view: RichProgressView, assume_yes: bool = False):
        self._view = view
        self._assume_yes = assume_yes
        self.closed = False

    def confirm(self, title: str, message: str) -> bool:
        if not self._assume_yes:
            console.print(f"[bold]{title}[/bold]\n{message}")
            if not click.confirm("Continue?", default=False):
                return False
        self._view.start()
        return True

    def close(self) -> None:
        self.closed = True
        self._view.stop()


def _parse_values(values_json: Optional[str]) -> Optional[list[dict]]:
    if values_json is None:
        return None
    try:
        values = json.loads(values_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--values")
    if not isinstance(values, list):
        raise click.BadParameter("must be a JSON list of bind values", param_hint="--values")
    return values


@click.command("import")
@click.argument("query")
@click.option("--values", "values_json", default=None, help="PQL bind values as a JSON list")
@click.option("--page-size", default=DEFAULT_PAGE_SIZE, show_default=True, type=click.IntRange(min=1))
@click.option("--max-results", default=DEFAULT_MAX_RESULTS, show_default=True, type=click.IntRange(min=1))
@click.option("--out", "out_dir", default=".", type=click.Path(file_okay=False, path_type=Path))
@click.option("-y", "--yes", is_flag=True, help="Skip the data visibility confirmation")
def import_cmd(query, values_json, page_size, max_results, out_dir, yes):
    """Import child sites matching a PQL filter (e.g. "WHERE approvalStatus = 'APPROVED'")."""
    statement = Statement(query=query, values=_parse_values(values_json))
    toolkit = _get_toolkit()
    view = RichProgressView(console)
    dialog = ClickDialog(view, assume_yes=yes)

    async def _import():
        try:
            return await toolkit.coordinator(view, dialog).run(statement, page_size, max_results)
        finally:
            view.stop()
            await toolkit.close()

    session = _run(_import())
    if session is None:
        console.print("[yellow]Import cancelled.[/yellow]")
        return
    if session.state != ImportState.FINISHED:
        raise SystemExit(1)
    path = toolkit.workbook.export_csv(session.destination, out_dir)
    console.print(f"[green]Imported {session.retrieved} sites into {session.destination!r}: {path}[/green]")
