"""
Typed commands exposed to the import dialog layer.

Each Command maps to one DataHandler entry point; names that are not a
Command raise UnknownCommandError instead of being looked up dynamically.
"""

from enum import Enum
from typing import Any, Sequence, Union

from child_sites.data_handler import DataHandler
from child_sites.errors import UnknownCommandError
from child_sites.models.site import Site, SitesPage
from child_sites.models.statement import ImportPlan, Page, Statement
from child_sites.planner import DEFAULT_MAX_RESULTS, DEFAULT_PAGE_SIZE


class Command(str, Enum):
    START_SITES_IMPORT = "startSitesImport"
    GET_SITES = "getSites"
    FINISH_SITES_IMPORT = "finishSitesImport"
    CANCEL_SITES_IMPORT = "cancelSitesImport"


class CommandDispatcher:
    def __init__(self, data_handler: DataHandler):
        self.data_handler = data_handler

    async def start_import(
        self,
        import_id: str,
        statement: Statement,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> ImportPlan:
        return await self.data_handler.start_sites_import(import_id, statement, page_size, max_results)

    async def fetch_batch(self, import_id: str, page: Page) -> int:
        """Fetch one page and write it to the import sheet in a single call.

        For callers that step through pages one at a time. The concurrent
        import uses fetch_page and write_page so the driver decides when
        each page is written.
        """
        return await self.data_handler.get_sites(import_id, page)

    async def fetch_page(self, page: Page) -> SitesPage:
        return await self.data_handler.fetch_page(page)

    def write_page(self, import_id: str, page: Page, sites: Sequence[Site]) -> None:
        self.data_handler.add_sites_to_sheet(import_id, list(sites), page.offset)

    async def finish(self, import_id: str) -> str:
        return self.data_handler.finish_sites_import(import_id)

    async def cancel(self, import_id: str) -> None:
        self.data_handler.cancel_sites_import(import_id)

    async def call(self, name: Union[Command, str], *args: Any, **kwargs: Any) -> Any:
        try:
            command = Command(name)
        except ValueError:
            raise UnknownCommandError(str(name)) from None
        handlers = {
            Command.START_SITES_IMPORT: self.start_import,
            Command.GET_SITES: self.fetch_batch,
            Command.FINISH_SITES_IMPORT: self.finish,
            Command.CANCEL_SITES_IMPORT: self.cancel,
        }
        return await handlers[command](*args, **kwargs)
