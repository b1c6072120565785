"""Async client for the monitor REST API.

The service owns storage and runs the probes; this client only moves JSON
back and forth and turns failures into the client error taxonomy:

- transport problems (refused, reset, timed out) become ``NetworkFailure``
- error statuses and undecodable bodies become ``ServiceResponseError``

Nothing here retries. Retrying idempotent reads is the sync coordinator's
call, and commands are sent exactly once.
"""

from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config.settings import ServiceSettings
from ..domain.models import Category, CheckResult, Summary, Website
from ..domain.validation import CategoryDraft, WebsiteDraft
from ..utils.async_utils import AsyncContextManager
from ..utils.logging import get_structured_logger
from .types import NetworkFailure, ServiceResponseError

logger = get_structured_logger(__name__)

T = TypeVar("T")

_CATEGORIES = TypeAdapter(list[Category])
_WEBSITES = TypeAdapter(list[Website])
_CHECKS = TypeAdapter(list[CheckResult])
_SUMMARY = TypeAdapter(Summary)
_CATEGORY = TypeAdapter(Category)
_WEBSITE = TypeAdapter(Website)


class MonitorServiceClient(AsyncContextManager):
    """Reads the four dashboard collections and sends the three commands."""

    def __init__(
        self,
        settings: ServiceSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self._client = http_client
        self._owns_client = http_client is None

    async def setup(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=self.settings.timeout,
                headers={"Accept": "application/json"},
            )
            self._owns_client = True
            logger.debug("HTTP client opened", base_url=self.settings.base_url)

    async def cleanup(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP client closed")

    # Reads

    async def list_categories(self) -> list[Category]:
        response = await self._request("GET", self._path("categories"))
        return self._decode(response, _CATEGORIES)

    async def list_websites(self) -> list[Website]:
        response = await self._request("GET", self._path("websites"))
        return self._decode(response, _WEBSITES)

    async def get_summary(self) -> Summary:
        response = await self._request("GET", self._path("summary"))
        return self._decode(response, _SUMMARY)

    async def list_latest_checks(self, limit: Optional[int] = None) -> list[CheckResult]:
        """Most recent checks across all websites, newest first."""
        response = await self._request(
            "GET",
            self._path("checks", "latest"),
            params={"limit": limit or self.settings.latest_checks_limit},
        )
        return self._decode(response, _CHECKS)

    # Commands

    async def create_category(self, draft: CategoryDraft) -> Category:
        response = await self._request(
            "POST", self._path("categories"), json=draft.to_payload()
        )
        return self._decode(response, _CATEGORY)

    async def create_website(self, draft: WebsiteDraft) -> Website:
        response = await self._request(
            "POST", self._path("websites"), json=draft.to_payload()
        )
        return self._decode(response, _WEBSITE)

    async def run_check(self, website_id: str) -> None:
        """Ask the probing engine to check a website now.

        Returns once the probe has run. The reply body is not used: the new
        check result is observed through the next read of the latest checks.
        """
        await self._request(
            "POST",
            self._path("check", website_id),
            timeout=self.settings.check_timeout,
        )

    # Plumbing

    def _path(self, *parts: str) -> str:
        segments = "/".join(quote(part, safe="") for part in parts)
        return f"{self.settings.api_prefix}/{segments}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("MonitorServiceClient must be used as async context manager")

        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TransportError as e:
            logger.warning("Request failed", method=method, path=path, error=repr(e))
            raise NetworkFailure(
                f"{method} {path} could not reach the service: {e!r}", url=path
            ) from e

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(
                "Service returned an error",
                method=method,
                path=path,
                status_code=response.status_code,
                detail=detail,
            )
            raise ServiceResponseError(
                f"{method} {path} returned {response.status_code}: {detail}",
                status_code=response.status_code,
                body=response.text,
                url=path,
            )

        logger.debug("Request completed", method=method, path=path, status_code=response.status_code)
        return response

    def _decode(self, response: httpx.Response, adapter: TypeAdapter[T]) -> T:
        try:
            return adapter.validate_python(response.json())
        except (ValueError, ValidationError) as e:
            # json decode errors are ValueError subclasses
            raise ServiceResponseError(
                f"Unexpected response body from {response.request.url.path}: {str(e)}",
                status_code=response.status_code,
                body=response.text,
                url=str(response.request.url),
            ) from e


def _error_detail(response: httpx.Response) -> str:
    """FastAPI puts the reason under "detail"; fall back to the raw text."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(data, dict) and "detail" in data:
        return str(data["detail"])
    return response.text[:200]
