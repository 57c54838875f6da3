"""
Batch fetch driver: runs the planned pages with at most MAX_CONCURRENT fetches in flight.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Sequence

from child_sites.errors import FetchFailure
from child_sites.models.session import ImportSession
from child_sites.models.statement import Page

logger = logging.getLogger(__name__)

MAX_CONCURRENT = 30

FetchFn = Callable[[Page], Awaitable[Sequence[Any]]]
SinkFn = Callable[[Page, Sequence[Any]], None]


def _discard_result(task: "asyncio.Task[Any]") -> None:
    # Results of fetches still in flight after an abort are dropped.
    if not task.cancelled():
        task.exception()


class BatchFetchDriver:
    def __init__(self) -> None:
        self.peak_in_flight = 0
        self.dispatched = 0

    def _fill(self, session: ImportSession, in_flight: dict["asyncio.Task[Any]", Page], fetch: FetchFn) -> None:
        while session.in_flight < MAX_CONCURRENT and session.pending:
            page = session.pending.popleft()
            in_flight[asyncio.ensure_future(fetch(page))] = page
            session.in_flight += 1
            self.dispatched += 1
            self.peak_in_flight = max(self.peak_in_flight, session.in_flight)

    @staticmethod
    def _detach(session: ImportSession, in_flight: dict["asyncio.Task[Any]", Page]) -> None:
        for task in in_flight:
            task.add_done_callback(_discard_result)
        in_flight.clear()
        session.in_flight = 0

    async def drive(self, session: ImportSession, pages: Iterable[Page], fetch: FetchFn, sink: SinkFn) -> None:
        """Fetch every page and hand its records to ``sink`` at the page's offset.

        Returns once the retrieved count reaches ``session.total_results`` (or
        every page has completed). The first failing fetch or sink write
        clears the queue, marks the session failed and raises FetchFailure;
        fetches already in flight finish in the background and are ignored.
        """
        session.pending.extend(pages)
        in_flight: dict[asyncio.Task[Any], Page] = {}
        try:
            while True:
                self._fill(session, in_flight, fetch)
                if not in_flight:
                    if session.retrieved != session.total_results:
                        logger.warning(
                            "Import %s: all pages loaded with %d of %d expected sites",
                            session.import_id, session.retrieved, session.total_results,
                        )
                    return
                done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
                for task in sorted(done, key=lambda t: in_flight[t].offset):
                    page = in_flight.pop(task)
                    session.in_flight -= 1
                    try:
                        records = task.result()
                        session.retrieved += len(records)
                        sink(page, records)
                    except Exception as e:
                        logger.error("Import %s: page at offset %d failed: %s", session.import_id, page.offset, e)
                        session.pending.clear()
                        session.failed = True
                        session.error = str(e)
                        self._detach(session, in_flight)
                        raise FetchFailure(str(e), offset=page.offset) from e
                    if session.retrieved == session.total_results:
                        session.pending.clear()
                        self._detach(session, in_flight)
                        return
        except asyncio.CancelledError:
            for task in in_flight:
                task.cancel()
            self._detach(session, in_flight)
            raise
