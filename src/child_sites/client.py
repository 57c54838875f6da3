"""
ChildSitesToolkit: wires the HTTP client, Ad Manager services, workbook and
import pipeline together from explicit settings.
"""

from typing import Optional

import httpx

from child_sites.commands import CommandDispatcher
from child_sites.coordinator import DialogHost, ImportCoordinator, ProgressView
from child_sites.data_handler import DEFAULT_MAX_RETRIES, DataHandler
from child_sites.errors import SettingsError
from child_sites.models.site import ChildPublisher
from child_sites.services import COMPANY_SERVICE, SITE_SERVICE, AdManagerService
from child_sites.settings import UserSettings
from child_sites.sheets import Workbook
from child_sites.transport.http import DEFAULT_TIMEOUT_S, HttpClient


class ChildSitesToolkit:
    def __init__(
        self,
        network_code: str,
        api_version: str,
        base_url: str,
        access_token: Optional[str] = None,
        workbook: Optional[Workbook] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.http = HttpClient(
            network_code=network_code,
            api_version=api_version,
            base_url=base_url,
            token=access_token,
            timeout=timeout,
            transport=transport,
        )
        self.sites = AdManagerService(self.http, SITE_SERVICE)
        self.companies = AdManagerService(self.http, COMPANY_SERVICE)
        self.workbook = workbook or Workbook()
        self.data = DataHandler(self.sites, self.workbook, company_service=self.companies, max_retries=max_retries)
        self.commands = CommandDispatcher(self.data)

    @classmethod
    def from_settings(cls, settings: UserSettings, **kwargs) -> "ChildSitesToolkit":
        if not settings.network_code:
            raise SettingsError("Network code is not set. Run `child-sites settings network-code` first.")
        return cls(
            network_code=settings.network_code,
            api_version=settings.api_version,
            base_url=settings.base_url,
            access_token=settings.access_token,
            **kwargs,
        )

    def coordinator(self, view: ProgressView, dialog: DialogHost, tick_interval: float = 1.0) -> ImportCoordinator:
        return ImportCoordinator(self.commands, view, dialog, tick_interval=tick_interval)

    async def refresh_child_publishers(self, settings: UserSettings) -> dict[str, ChildPublisher]:
        publishers = await self.data.fetch_child_publishers()
        settings.child_publishers = publishers
        return publishers

    async def close(self) -> None:
        await self.http.close()
