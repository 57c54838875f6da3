"""
REST HTTP client for the Ad Manager API gateway.

Operations are posted as ``POST /{api_version}/{service}/{operation}`` with the
network code in a header; responses wrap their payload as ``{"rval": ...}``.
"""

from typing import Any, Optional

import httpx

from child_sites.errors import ChildSitesError, TransientRemoteFault

DEFAULT_BASE_URL = "https://admanager.googleapis.com/apis/ads/publisher"
DEFAULT_TIMEOUT_S = 30.0

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class HttpClient:
    def __init__(
        self,
        network_code: str,
        api_version: str,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._network_code = network_code
        self._api_version = api_version
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "child-sites-toolkit/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def api_version(self) -> str:
        return self._api_version

    def set_token(self, token: str) -> None:
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "X-Network-Code": self._network_code,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _unwrap(json_data: Any) -> Any:
        """Unwrap the operation response: { "rval": <actual_data> }"""
        if isinstance(json_data, dict) and "rval" in json_data:
            return json_data["rval"]
        return json_data

    async def post_operation(self, service: str, operation: str, body: Optional[dict[str, Any]] = None) -> Any:
        path = f"/{self._api_version}/{service}/{operation}"
        try:
            resp = await self._client.post(path, json=body, headers=self._headers())
        except httpx.TimeoutException as e:
            raise TransientRemoteFault(f"Timed out calling {service}.{operation}: {e}")
        except httpx.TransportError as e:
            raise TransientRemoteFault(f"Transport error calling {service}.{operation}: {e}")
        if resp.status_code in RETRYABLE_STATUS_CODES:
            raise TransientRemoteFault(
                f"HTTP {resp.status_code}: {resp.text[:200]}",
                details={"status_code": resp.status_code},
            )
        if resp.status_code >= 400:
            raise ChildSitesError(
                "http_error",
                f"HTTP {resp.status_code}: {resp.text[:200]}",
                {"status_code": resp.status_code},
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ChildSitesError(
                "invalid_response",
                f"Invalid JSON from {service}.{operation}: {resp.text[:200]}",
                {"status_code": resp.status_code},
            ) from e
        return self._unwrap(data)

    async def close(self) -> None:
        await self._client.aclose()
