"""
Data handler: the import entry points backed by the Ad Manager services and the workbook.
"""

import logging
from datetime import datetime
from typing import Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from child_sites.errors import ChildSitesError, TransientRemoteFault
from child_sites.models.site import SITE_HEADERS, ChildPublisher, Site, SitesPage, site_to_row
from child_sites.models.statement import ImportPlan, Page, Statement
from child_sites.planner import (
    DEFAULT_MAX_RESULTS,
    DEFAULT_PAGE_SIZE,
    GET_SITES_BY_STATEMENT,
    QueryPlanner,
)
from child_sites.services import AdManagerService
from child_sites.sheets import Workbook

logger = logging.getLogger(__name__)

GET_COMPANIES_BY_STATEMENT = "getCompaniesByStatement"
CHILD_PUBLISHER_QUERY = "WHERE type = 'CHILD_PUBLISHER'"
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF = 0.5

# Row 1 of every import sheet holds SITE_HEADERS.
HEADER_ROWS = 1


class DataHandler:
    def __init__(
        self,
        site_service: AdManagerService,
        workbook: Workbook,
        company_service: Optional[AdManagerService] = None,
        planner: Optional[QueryPlanner] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
    ):
        self._site_service = site_service
        self._company_service = company_service
        self._planner = planner or QueryPlanner(site_service)
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self.workbook = workbook

    def _create_sheet(self, import_id: str) -> None:
        self.workbook.create_sheet(import_id, hidden=True)
        self.workbook.insert_values(import_id, [list(SITE_HEADERS)], row=1)

    async def start_sites_import(
        self,
        import_id: str,
        statement: Statement,
        batch_size: int = DEFAULT_PAGE_SIZE,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> ImportPlan:
        """Plan the import, then create its hidden destination sheet.

        Planning errors (ValidationError, NoResultsError, faults from the
        count probe) propagate before any sheet exists.
        """
        plan = await self._planner.plan(statement, page_size=batch_size, max_results=max_results)
        self._create_sheet(import_id)
        logger.info(
            "Import %s started: %d results in %d pages", import_id, plan.total_results, len(plan.pages),
        )
        return plan

    async def fetch_page(self, page: Page, retries: Optional[int] = None) -> SitesPage:
        """Fetch one page, retrying transient server faults up to ``retries`` times."""
        attempts = (self._max_retries if retries is None else retries) + 1
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            retry=retry_if_exception_type(TransientRemoteFault),
            wait=wait_exponential(multiplier=self._retry_backoff, max=10),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                raw = await self._site_service.perform_operation(GET_SITES_BY_STATEMENT, page.to_statement())
        return SitesPage.model_validate(raw)

    def add_sites_to_sheet(self, import_id: str, sites: list[Site], offset: int) -> None:
        if not sites:
            return
        rows = [site_to_row(site) for site in sites]
        self.workbook.insert_values(import_id, rows, row=offset + HEADER_ROWS + 1)

    async def get_sites(self, import_id: str, page: Page, retries: Optional[int] = None) -> int:
        """Fetch one page into the import sheet and return how many sites it held."""
        sites_page = await self.fetch_page(page, retries=retries)
        self.add_sites_to_sheet(import_id, sites_page.results, sites_page.startIndex)
        return len(sites_page.results)

    def finish_sites_import(self, import_id: str) -> str:
        """Rename the import sheet to a dated title and reveal it. Returns the new name."""
        self.workbook.get_sheet(import_id)
        base = f"Sites - {datetime.now():%Y-%m-%d %H:%M:%S}"
        name, n = base, 1
        while name in self.workbook:
            n += 1
            name = f"{base} ({n})"
        self.workbook.rename_sheet(import_id, name)
        self.workbook.activate_sheet(name)
        logger.info("Import %s finished as %r", import_id, name)
        return name

    def cancel_sites_import(self, import_id: str) -> None:
        self.workbook.delete_sheet(import_id)
        logger.info("Import %s cancelled, sheet removed", import_id)

    async def fetch_child_publishers(self) -> dict[str, ChildPublisher]:
        """Fetch child publisher companies keyed by child network code."""
        if self._company_service is None:
            raise ChildSitesError("configuration_error", "DataHandler was built without a company service")
        raw = await self._company_service.perform_operation(
            GET_COMPANIES_BY_STATEMENT, Statement(query=CHILD_PUBLISHER_QUERY),
        )
        publishers: dict[str, ChildPublisher] = {}
        for company in raw.get("results") or []:
            code = (company.get("childPublisher") or {}).get("childNetworkCode")
            if not code:
                continue
            publishers[code] = ChildPublisher(id=str(company["id"]), name=company.get("name", ""), childNetworkCode=code)
        return publishers
