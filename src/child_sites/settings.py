"""
Per-user settings persisted as JSON: network code, API version, access token
and the cached child publisher directory.
"""

import json
import re
from pathlib import Path
from typing import Any, Optional

from child_sites.errors import SettingsError
from child_sites.models.site import ChildPublisher
from child_sites.transport.http import DEFAULT_BASE_URL

DEFAULT_CONFIG_FILE = Path.home() / ".child-sites" / "config.json"
DEFAULT_API_VERSION = "v202411"

NETWORK_CODE_PATTERN = re.compile(r"^[0-9]+$")
API_VERSION_PATTERN = re.compile(r"^v\d{6}$")

NETWORK_CODE_KEY = "networkCode"
API_VERSION_KEY = "apiVersion"
CHILD_PUBLISHERS_KEY = "childPublishers"
ACCESS_TOKEN_KEY = "accessToken"
BASE_URL_KEY = "baseUrl"


class UserSettings:
    def __init__(self, path: Path = DEFAULT_CONFIG_FILE):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            return json.loads(self.path.read_text())
        except (FileNotFoundError, json.JSONDecodeError):
            return {}

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))

    def _set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def as_dict(self) -> dict[str, Any]:
        return self._load()

    @property
    def network_code(self) -> Optional[str]:
        return self._load().get(NETWORK_CODE_KEY)

    @network_code.setter
    def network_code(self, value: str) -> None:
        value = value.strip()
        if not NETWORK_CODE_PATTERN.match(value):
            raise SettingsError(f"Invalid network code: {value}")
        self._set(NETWORK_CODE_KEY, value)

    @property
    def api_version(self) -> str:
        return self._load().get(API_VERSION_KEY) or DEFAULT_API_VERSION

    @api_version.setter
    def api_version(self, value: str) -> None:
        value = value.strip()
        if not API_VERSION_PATTERN.match(value):
            raise SettingsError(f"Invalid API version: {value}")
        self._set(API_VERSION_KEY, value)

    @property
    def access_token(self) -> Optional[str]:
        return self._load().get(ACCESS_TOKEN_KEY)

    @access_token.setter
    def access_token(self, value: str) -> None:
        self._set(ACCESS_TOKEN_KEY, value.strip())

    @property
    def base_url(self) -> str:
        return self._load().get(BASE_URL_KEY) or DEFAULT_BASE_URL

    @base_url.setter
    def base_url(self, value: str) -> None:
        self._set(BASE_URL_KEY, value.strip())

    @property
    def child_publishers(self) -> Optional[dict[str, ChildPublisher]]:
        raw = self._load().get(CHILD_PUBLISHERS_KEY)
        if not raw:
            return None
        return {code: ChildPublisher.model_validate(p) for code, p in raw.items()}

    @child_publishers.setter
    def child_publishers(self, publishers: dict[str, ChildPublisher]) -> None:
        self._set(CHILD_PUBLISHERS_KEY, {code: p.model_dump() for code, p in publishers.items()})
