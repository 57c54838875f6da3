"""
Ad Manager service wrappers (SiteService, CompanyService).
"""

from __future__ import annotations

from typing import Any, Optional, Union

from child_sites.models.statement import Statement
from child_sites.transport.http import HttpClient

SITE_SERVICE = "SiteService"
COMPANY_SERVICE = "CompanyService"


class AdManagerService:
    def __init__(self, http: HttpClient, service_name: str):
        self._http = http
        self.service_name = service_name

    async def perform_operation(
        self, operation: str, statement: Optional[Union[Statement, dict[str, Any]]] = None,
    ) -> dict[str, Any]:
        """Run a *ByStatement operation and return the raw result page."""
        if isinstance(statement, Statement):
            statement = statement.model_dump(exclude_none=True)
        return await self._http.post_operation(
            self.service_name, operation, {"filterStatement": statement or {}},
        )

    def __repr__(self) -> str:
        return f"AdManagerService({self.service_name!r})"
