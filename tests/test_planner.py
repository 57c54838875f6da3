"""QueryPlanner: validation, count probe, page generation and the result cap."""

import math

import pytest

from child_sites.errors import NoResultsError, TransientRemoteFault, ValidationError
from child_sites.models.statement import Statement
from child_sites.planner import QueryPlanner

from conftest import FakeSiteService


class TestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [
        "SELECT * FROM sites LIMIT 100",
        "SELECT * FROM sites OFFSET 100",
        "WHERE url LIKE '%x%' limit 5",
        "WHERE id > 1 Offset 3",
    ])
    async def test_rejects_pagination_without_remote_calls(self, query):
        service = FakeSiteService()
        with pytest.raises(ValidationError, match="Limit and offset are not supported"):
            await QueryPlanner(service).plan(Statement(query=query))
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_rejects_non_positive_page_size(self):
        service = FakeSiteService()
        with pytest.raises(ValidationError):
            await QueryPlanner(service).plan(Statement(query="query"), page_size=0)
        assert service.calls == []


class TestPlan:
    @pytest.mark.asyncio
    async def test_builds_pages_for_250_results(self):
        service = FakeSiteService(total=250)
        values = [{"key": "status", "value": {"value": "APPROVED"}}]
        plan = await QueryPlanner(service).plan(Statement(query="query", values=values), page_size=100)

        assert plan.total_results == 250
        assert [p.offset for p in plan.pages] == [0, 100, 200]
        assert all(p.limit == 100 for p in plan.pages)
        assert [p.to_statement().query for p in plan.pages] == [
            "query LIMIT 100 OFFSET 0",
            "query LIMIT 100 OFFSET 100",
            "query LIMIT 100 OFFSET 200",
        ]
        assert all(p.to_statement().values == values for p in plan.pages)

    @pytest.mark.asyncio
    async def test_count_probe_appends_limit_1(self):
        service = FakeSiteService(total=5)
        values = [{"key": "k", "value": {"value": "v"}}]
        await QueryPlanner(service).plan(Statement(query="WHERE a = :k", values=values))

        assert len(service.calls) == 1
        operation, probe = service.calls[0]
        assert operation == "getSitesByStatement"
        assert probe.query == "WHERE a = :k LIMIT 1"
        assert probe.values == values

    @pytest.mark.asyncio
    async def test_caps_total_at_max_results(self):
        service = FakeSiteService(total=100_000_000)
        plan = await QueryPlanner(service).plan(Statement(query="query"), page_size=100, max_results=100_000)

        assert plan.total_results == 100_000
        assert len(plan.pages) == math.ceil(100_000 / 100)
        assert plan.pages[-1].offset == 99_900

    @pytest.mark.asyncio
    async def test_cap_shortens_last_page(self):
        service = FakeSiteService(total=1000)
        plan = await QueryPlanner(service).plan(Statement(query="query"), page_size=100, max_results=250)

        assert plan.total_results == 250
        assert [(p.offset, p.limit) for p in plan.pages] == [(0, 100), (100, 100), (200, 50)]
        assert plan.pages[-1].to_statement().query == "query LIMIT 50 OFFSET 200"

    @pytest.mark.asyncio
    async def test_uncapped_last_page_keeps_page_size(self):
        plan = await QueryPlanner(FakeSiteService(total=250)).plan(Statement(query="query"), page_size=100)
        assert plan.pages[-1].limit == 100

    @pytest.mark.asyncio
    async def test_plan_is_idempotent(self):
        service = FakeSiteService(total=1234)
        planner = QueryPlanner(service)
        first = await planner.plan(Statement(query="query"), page_size=50)
        second = await planner.plan(Statement(query="query"), page_size=50)
        assert first == second

    @pytest.mark.asyncio
    async def test_zero_results_is_rejected(self):
        service = FakeSiteService(total=0)
        with pytest.raises(NoResultsError, match="No sites found"):
            await QueryPlanner(service).plan(Statement(query="query"))

    @pytest.mark.asyncio
    async def test_probe_fault_is_not_retried(self):
        class FaultyService(FakeSiteService):
            async def perform_operation(self, operation, statement):
                self.calls.append((operation, statement))
                raise TransientRemoteFault("server fault")

        service = FaultyService()
        with pytest.raises(TransientRemoteFault):
            await QueryPlanner(service).plan(Statement(query="query"))
        assert len(service.calls) == 1
