"""
Query planner: splits a filter statement into LIMIT/OFFSET pages.
"""

import logging

from child_sites.errors import NoResultsError, ValidationError
from child_sites.models.site import SitesPage
from child_sites.models.statement import ImportPlan, Page, Statement
from child_sites.services import AdManagerService

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_RESULTS = 100_000
GET_SITES_BY_STATEMENT = "getSitesByStatement"


class QueryPlanner:
    def __init__(self, site_service: AdManagerService):
        self._site_service = site_service

    async def count(self, statement: Statement) -> int:
        """Probe the full result set size with a LIMIT 1 copy of the statement.

        Not retried: a TransientRemoteFault surfaces to the caller as-is.
        """
        probe = Statement(query=f"{statement.query} LIMIT 1", values=statement.values)
        raw = await self._site_service.perform_operation(GET_SITES_BY_STATEMENT, probe)
        return SitesPage.model_validate(raw).totalResultSetSize

    async def plan(
        self,
        statement: Statement,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> ImportPlan:
        if statement.has_pagination():
            raise ValidationError("Limit and offset are not supported")
        if page_size <= 0 or max_results <= 0:
            raise ValidationError(
                "Page size and max results must be positive",
                details={"page_size": page_size, "max_results": max_results},
            )

        true_size = await self.count(statement)
        if true_size == 0:
            raise NoResultsError()
        total_results = min(true_size, max_results)
        if true_size > max_results:
            logger.warning("Result set of %d capped at %d", true_size, max_results)

        pages = [
            Page(query=statement.query, values=statement.values, limit=page_size, offset=offset)
            for offset in range(0, total_results, page_size)
        ]
        if true_size > total_results:
            # The last page must not read past the cap.
            last = pages[-1]
            pages[-1] = last.model_copy(update={"limit": total_results - last.offset})
        return ImportPlan(pages=pages, total_results=total_results)
