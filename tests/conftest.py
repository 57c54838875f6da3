"""Shared fakes: an in-memory SiteService/CompanyService and an HTTP gateway handler."""

import asyncio
import json
import re
from typing import Any, Optional

import httpx
import pytest

from child_sites.errors import TransientRemoteFault
from child_sites.models.statement import Statement

LIMIT_RE = re.compile(r"LIMIT (\d+)(?: OFFSET (\d+))?$")


def make_site(i: int) -> dict[str, Any]:
    return {
        "id": i,
        "url": f"site{i}.example.com",
        "childNetworkCode": "123",
        "approvalStatus": "APPROVED",
        "code": f"code-{i}",
        "approvalStatusDateTime": {
            "date": {"year": 2024, "month": 5, "day": 1},
            "hour": 9, "minute": 30, "second": 0, "timeZoneId": "UTC",
        },
    }


def sites_page(query: str, total: int) -> dict[str, Any]:
    m = LIMIT_RE.search(query)
    limit = int(m.group(1)) if m else total
    offset = int(m.group(2) or 0) if m else 0
    end = min(offset + limit, total)
    return {
        "totalResultSetSize": total,
        "startIndex": offset,
        "results": [make_site(i) for i in range(offset, end)],
    }


class FakeSiteService:
    """getSitesByStatement over ``total`` generated sites.

    ``failures`` maps a page offset to how many times it fails before
    succeeding (-1 = always). ``delays`` maps offsets to seconds to sleep.
    """

    def __init__(
        self,
        total: int = 250,
        failures: Optional[dict[int, int]] = None,
        delays: Optional[dict[int, float]] = None,
        error: type = TransientRemoteFault,
    ):
        self.total = total
        self.failures = dict(failures or {})
        self.delays = dict(delays or {})
        self.error = error
        self.calls: list[tuple[str, Statement]] = []

    def offsets_called(self) -> list[int]:
        offsets = []
        for _, st in self.calls:
            m = LIMIT_RE.search(st.query)
            if m and m.group(2) is not None:
                offsets.append(int(m.group(2)))
        return offsets

    async def perform_operation(self, operation: str, statement: Statement) -> dict[str, Any]:
        self.calls.append((operation, statement))
        page = sites_page(statement.query, self.total)
        offset = page["startIndex"]
        if offset in self.delays:
            await asyncio.sleep(self.delays[offset])
        remaining = self.failures.get(offset, 0)
        if remaining != 0 and " OFFSET " in statement.query:
            if remaining > 0:
                self.failures[offset] = remaining - 1
            raise self.error(f"server fault at offset {offset}")
        return page


class FakeCompanyService:
    def __init__(self, results: list[dict[str, Any]]):
        self.results = results
        self.calls: list[tuple[str, Statement]] = []

    async def perform_operation(self, operation: str, statement: Statement) -> dict[str, Any]:
        self.calls.append((operation, statement))
        return {"totalResultSetSize": len(self.results), "startIndex": 0, "results": self.results}


def gateway_handler(total: int, requests: Optional[list[httpx.Request]] = None):
    """httpx.MockTransport handler serving SiteService.getSitesByStatement."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        body = json.loads(request.content)
        query = body["filterStatement"]["query"]
        return httpx.Response(200, json={"rval": sites_page(query, total)})

    return handler


@pytest.fixture
def site_service() -> FakeSiteService:
    return FakeSiteService()
