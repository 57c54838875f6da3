"""
Progress/completion coordinator for one child sites import.

State machine: IDLE -> ACTIVE -> FINISHED | CANCELLED. A one-second ticker
renders progress while ACTIVE; completion finalizes the destination sheet and
closes the dialog, any failure renders the error and deletes the sheet.
"""

import asyncio
import contextlib
import logging
from typing import Any, Optional, Protocol, Sequence

from pydantic import BaseModel

from child_sites.commands import CommandDispatcher
from child_sites.driver import BatchFetchDriver
from child_sites.errors import ChildSitesError, FetchFailure, NoResultsError
from child_sites.models.session import ImportSession, ImportState
from child_sites.models.statement import Page, Statement
from child_sites.planner import DEFAULT_MAX_RESULTS, DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)

IMPORT_TITLE = "Import Child Sites"
IMPORT_WARNING = (
    "Please be aware that imported data will be visible to anyone with access "
    "to the exported file regardless of whether or not they have access to the "
    "data within Google Ad Manager. Do you wish to continue?"
)


def format_elapsed(seconds: int) -> str:
    """Render elapsed seconds as m:ss."""
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def progress_percent(retrieved: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return retrieved / total * 100


class ProgressSnapshot(BaseModel):
    state: ImportState
    retrieved: int
    total_results: Optional[int] = None  # None while unknown or after a failure
    percent: float = 0.0
    elapsed: str = "0:00"


def snapshot(session: ImportSession) -> ProgressSnapshot:
    total = session.total_results if session.state in (ImportState.ACTIVE, ImportState.FINISHED) else None
    return ProgressSnapshot(
        state=session.state,
        retrieved=session.retrieved,
        total_results=total,
        percent=progress_percent(session.retrieved, session.total_results),
        elapsed=format_elapsed(session.elapsed_seconds),
    )


class ProgressView(Protocol):
    def render(self, snapshot: ProgressSnapshot) -> None: ...

    def show_error(self, message: str) -> None: ...


class DialogHost(Protocol):
    def confirm(self, title: str, message: str) -> bool: ...

    def close(self) -> None: ...


class ImportCoordinator:
    def __init__(
        self,
        dispatcher: CommandDispatcher,
        view: ProgressView,
        dialog: DialogHost,
        driver: Optional[BatchFetchDriver] = None,
        tick_interval: float = 1.0,
    ):
        self._dispatcher = dispatcher
        self._view = view
        self._dialog = dialog
        self._driver = driver or BatchFetchDriver()
        self._tick_interval = tick_interval

    async def run(
        self,
        statement: Statement,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> Optional[ImportSession]:
        """Confirm with the user and run one import to a terminal state.

        Returns None when the user declines, otherwise the finished or
        cancelled session.
        """
        if not self._dialog.confirm(IMPORT_TITLE, IMPORT_WARNING):
            logger.info("Import declined by user")
            return None

        session = ImportSession()
        ticker = asyncio.create_task(self._tick_loop(session))
        try:
            await self._run_session(session, statement, page_size, max_results)
        finally:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
        return session

    def tick(self, session: ImportSession) -> None:
        """Advance elapsed time by one second and re-render. No-op unless ACTIVE."""
        if not session.is_active:
            return
        session.elapsed_seconds += 1
        self._view.render(snapshot(session))

    async def _tick_loop(self, session: ImportSession) -> None:
        while not session.is_terminal:
            await asyncio.sleep(self._tick_interval)
            self.tick(session)

    async def _run_session(
        self, session: ImportSession, statement: Statement, page_size: int, max_results: int,
    ) -> None:
        try:
            plan = await self._dispatcher.start_import(session.import_id, statement, page_size, max_results)
        except ChildSitesError as e:
            # Pre-flight failure: nothing was created, so nothing to clean up.
            logger.error("Import %s could not start: %s", session.import_id, e)
            session.state = ImportState.CANCELLED
            session.error = str(e)
            self._view.show_error(str(e))
            return

        session.destination = session.import_id
        session.total_results = plan.total_results
        if plan.total_results <= 0:
            await self._cancel(session, NoResultsError())
            return

        session.state = ImportState.ACTIVE
        self._view.render(snapshot(session))

        async def fetch(page: Page) -> Sequence[Any]:
            return (await self._dispatcher.fetch_page(page)).results

        def sink(page: Page, sites: Sequence[Any]) -> None:
            self._dispatcher.write_page(session.import_id, page, sites)

        try:
            await self._driver.drive(session, plan.pages, fetch, sink)
        except FetchFailure as e:
            await self._cancel(session, e)
            return

        try:
            session.destination = await self._dispatcher.finish(session.import_id)
        except Exception as e:
            logger.exception("Import %s could not be finalized", session.import_id)
            await self._cancel(session, e)
            return

        session.state = ImportState.FINISHED
        self._view.render(snapshot(session))
        self._dialog.close()

    async def _cancel(self, session: ImportSession, error: BaseException) -> None:
        session.state = ImportState.CANCELLED
        session.error = str(error)
        self._view.show_error(str(error))
        if session.cleaned_up:
            return
        session.cleaned_up = True
        try:
            await self._dispatcher.cancel(session.import_id)
        except ChildSitesError as e:
            logger.error("Import %s cleanup failed: %s", session.import_id, e)
