"""BatchFetchDriver: concurrency cap, ordering, completion and abort behaviour."""

import asyncio

import pytest

from child_sites.driver import MAX_CONCURRENT, BatchFetchDriver
from child_sites.errors import FetchFailure
from child_sites.models.session import ImportSession
from child_sites.models.statement import Page


def make_pages(count: int, size: int = 10) -> list[Page]:
    return [Page(query="q", limit=size, offset=i * size) for i in range(count)]


def make_session(total: int) -> ImportSession:
    session = ImportSession()
    session.total_results = total
    return session


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_never_exceeds_cap_and_fetches_each_page_once(self):
        pages = make_pages(100)
        session = make_session(1000)
        current = 0
        peak = 0
        fetched: list[int] = []

        async def fetch(page):
            nonlocal current, peak
            current += 1
            peak = max(peak, current)
            assert session.in_flight <= MAX_CONCURRENT
            fetched.append(page.offset)
            await asyncio.sleep(0.001)
            current -= 1
            return [object()] * page.limit

        driver = BatchFetchDriver()
        await driver.drive(session, pages, fetch, lambda page, records: None)

        assert peak == MAX_CONCURRENT
        assert driver.peak_in_flight == MAX_CONCURRENT
        assert driver.dispatched == 100
        assert sorted(fetched) == [p.offset for p in pages]
        assert len(set(fetched)) == 100
        assert session.retrieved == 1000
        assert session.in_flight == 0

    @pytest.mark.asyncio
    async def test_dispatches_in_offset_order(self):
        pages = make_pages(45)
        session = make_session(450)
        started: list[int] = []

        async def fetch(page):
            started.append(page.offset)
            await asyncio.sleep(0)
            return [1] * page.limit

        await BatchFetchDriver().drive(session, pages, fetch, lambda page, records: None)
        assert started == [p.offset for p in pages]


class TestCompletion:
    @pytest.mark.asyncio
    async def test_out_of_order_completion_writes_at_page_offsets(self):
        pages = [Page(query="q", limit=100, offset=0), Page(query="q", limit=100, offset=100)]
        session = make_session(150)
        second_done = asyncio.Event()
        writes: list[tuple[int, int]] = []

        async def fetch(page):
            if page.offset == 0:
                await second_done.wait()
                await asyncio.sleep(0.01)
                return ["a"] * 100
            second_done.set()
            return ["b"] * 50

        def sink(page, records):
            writes.append((page.offset, len(records)))

        await BatchFetchDriver().drive(session, pages, fetch, sink)

        assert writes == [(100, 50), (0, 100)]
        assert session.retrieved == 150

    @pytest.mark.asyncio
    async def test_returns_when_pages_run_out_short(self):
        session = make_session(30)

        async def fetch(page):
            return [1] * 5

        await BatchFetchDriver().drive(session, make_pages(3), fetch, lambda page, records: None)
        assert session.retrieved == 15
        assert not session.failed


class TestFailure:
    @pytest.mark.asyncio
    async def test_failure_stops_scheduling_and_discards_in_flight(self):
        pages = make_pages(40)
        session = make_session(400)
        release = asyncio.Event()
        fetched: list[int] = []
        writes: list[int] = []

        async def fetch(page):
            fetched.append(page.offset)
            if page.offset == 10:
                raise RuntimeError("server fault")
            await release.wait()
            return [1] * page.limit

        driver = BatchFetchDriver()
        with pytest.raises(FetchFailure) as exc_info:
            await driver.drive(session, pages, fetch, lambda page, records: writes.append(page.offset))

        assert exc_info.value.offset == 10
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert session.failed
        assert session.error == "server fault"
        assert len(session.pending) == 0
        assert driver.dispatched == MAX_CONCURRENT

        release.set()
        for _ in range(5):
            await asyncio.sleep(0)
        assert writes == []
        assert len(fetched) == MAX_CONCURRENT

    @pytest.mark.asyncio
    async def test_sink_failure_aborts(self):
        session = make_session(20)

        async def fetch(page):
            return [1] * page.limit

        def sink(page, records):
            raise ValueError("sheet gone")

        with pytest.raises(FetchFailure, match="sheet gone"):
            await BatchFetchDriver().drive(session, make_pages(2), fetch, sink)
        assert session.failed
