"""Client for the headless content store's HTTP query API.

Queries are GROQ strings; parameters are sent as ``$name=<json>`` query
arguments and the response's ``result`` member is returned unchanged.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

import requests
import structlog

from postpage.utils.http_client import HTTPClient

log = structlog.get_logger(__name__)


class ContentStoreError(RuntimeError):
    """Raised when a query cannot be completed. Not recovered locally."""


@dataclass(frozen=True)
class ContentStoreConfig:
    project_id: str
    dataset: str
    api_version: str = "2021-10-21"
    token: str | None = None
    use_cdn: bool = False
    timeout: float = 10.0

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "ContentStoreConfig":
        return cls(
            project_id=config.get("SANITY_PROJECT_ID") or "",
            dataset=config.get("SANITY_DATASET") or "production",
            api_version=config.get("SANITY_API_VERSION") or "2021-10-21",
            token=config.get("SANITY_API_TOKEN") or None,
            use_cdn=bool(config.get("SANITY_USE_CDN", False)),
            timeout=float(config.get("CONTENT_STORE_TIMEOUT", 10.0)),
        )

    @property
    def host(self) -> str:
        api = "apicdn" if self.use_cdn else "api"
        return f"{self.project_id}.{api}.sanity.io"


class ContentStoreClient:
    def __init__(self, config: ContentStoreConfig, http: HTTPClient | None = None):
        if not config.project_id:
            raise ValueError("content store project id is not configured")
        self.config = config
        self.http = http or HTTPClient(allowed_domains=["sanity.io"], timeout=config.timeout)

    @property
    def query_url(self) -> str:
        version = self.config.api_version.lstrip("v")
        return f"https://{self.config.host}/v{version}/data/query/{self.config.dataset}"

    def _headers(self) -> dict[str, str]:
        if self.config.token:
            return {"Authorization": f"Bearer {self.config.token}"}
        return {}

    def fetch(self, query: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run a query and return its ``result``.

        Raises:
            ContentStoreError: On transport failure or a non-success response.
        """
        args: dict[str, str] = {"query": query}
        for name, value in (params or {}).items():
            args[f"${name}"] = json.dumps(value)

        try:
            resp = self.http.get(self.query_url, params=args, headers=self._headers())
        except requests.RequestException as e:
            log.error("content_store_unreachable", error=str(e))
            raise ContentStoreError(f"content store request failed: {e}") from e

        if not resp.ok:
            log.error("content_store_query_failed", status=resp.status_code)
            raise ContentStoreError(f"content store query failed with status {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise ContentStoreError("content store returned invalid JSON") from e

        return payload.get("result")
