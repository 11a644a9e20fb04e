"""Client adapter for the HR platform's OData v2 service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Iterable, List, Optional, Union

import httpx

from . import odata
from .config import Settings
from .telemetry import record_upstream_call

logger = logging.getLogger(__name__)

FORMAT_PREVIEW_CHARS = 500
ERROR_PREVIEW_CHARS = 800
JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class UpstreamOk:
    status: int
    payload: Any

    @property
    def results(self) -> List[Dict[str, Any]]:
        return odata.results(self.payload)

    @property
    def entity(self) -> Optional[Dict[str, Any]]:
        return odata.entity(self.payload)

    def first(self) -> Optional[Dict[str, Any]]:
        items = self.results
        return items[0] if items else None


@dataclass(frozen=True)
class UpstreamFormatError:
    """Upstream answered with something other than JSON (expired token, login page, XML)."""

    status: int
    content_type: str
    preview: str


@dataclass(frozen=True)
class UpstreamStatusError:
    status: int
    body: Any


UpstreamResult = Union[UpstreamOk, UpstreamFormatError, UpstreamStatusError]


class UpstreamClient:
    """Issues OData calls and classifies every response into an ``UpstreamResult``.

    Transport failures (timeouts, connection errors) and undecodable JSON bodies
    are raised to the caller unchanged.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self._client = client or httpx.AsyncClient(transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    def url(self, path: str) -> str:
        return f"{self.settings.service_root}/{path}"

    def _params(self, *, json_format: bool) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if json_format:
            params["$format"] = "json"
        if self.settings.company_id:
            params["company"] = self.settings.company_id
        return params

    def _headers(self, *, locale: Optional[str] = None) -> Dict[str, str]:
        headers = {"Accept": JSON_CONTENT_TYPE}
        if self.settings.bearer_token:
            headers["Authorization"] = f"Bearer {self.settings.bearer_token}"
        if self.settings.company_id:
            headers["Company-Id"] = self.settings.company_id
        if locale:
            headers["Accept-Language"] = locale
        return headers

    def _timeout(self, seconds: Optional[float]) -> httpx.Timeout:
        return httpx.Timeout(seconds if seconds is not None else self.settings.upstream_timeout_seconds)

    async def query(
        self,
        entity: str,
        *,
        where: str,
        select: Iterable[str],
        timeout: Optional[float] = None,
    ) -> UpstreamResult:
        params = self._params(json_format=True)
        params["$filter"] = where
        params["$select"] = odata.select_clause(select)
        return await self._send(
            "GET",
            entity,
            self.url(entity),
            params=params,
            headers=self._headers(),
            timeout=timeout,
            require_json=True,
        )

    async def create(
        self,
        entity: str,
        body: Dict[str, Any],
        *,
        locale: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> UpstreamResult:
        headers = self._headers(locale=locale)
        headers["Content-Type"] = JSON_CONTENT_TYPE
        return await self._send(
            "POST",
            entity,
            self.url(entity),
            params=self._params(json_format=True),
            headers=headers,
            json=body,
            timeout=timeout,
            require_json=False,
        )

    async def merge(
        self,
        entity: str,
        key: str,
        body: Dict[str, Any],
        *,
        locale: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> UpstreamResult:
        """Partially update ``entity(key)`` with MERGE semantics tunnelled over POST.

        ``If-Match: *`` overwrites regardless of the stored ETag.
        """
        headers = self._headers(locale=locale)
        headers.update(
            {
                "Content-Type": JSON_CONTENT_TYPE,
                "X-HTTP-Method": "MERGE",
                "If-Match": "*",
            }
        )
        return await self._send(
            "POST",
            entity,
            self.url(odata.entity_key_path(entity, key)),
            params=self._params(json_format=False),
            headers=headers,
            json=body,
            timeout=timeout,
            require_json=False,
        )

    async def _send(
        self,
        method: str,
        entity: str,
        url: str,
        *,
        params: Dict[str, str],
        headers: Dict[str, str],
        json: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        require_json: bool,
    ) -> UpstreamResult:
        started = perf_counter()
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                headers=headers,
                json=json,
                timeout=self._timeout(timeout),
            )
        except httpx.HTTPError as exc:
            record_upstream_call(method, entity, started, error=exc)
            raise

        content_type = response.headers.get("content-type", "")
        record_upstream_call(method, entity, started, status=response.status_code, content_type=content_type)
        return classify_response(response, require_json=require_json)


def classify_response(response: httpx.Response, *, require_json: bool) -> UpstreamResult:
    content_type = response.headers.get("content-type", "")
    is_json = JSON_CONTENT_TYPE in content_type.lower()

    if require_json and not is_json:
        return UpstreamFormatError(
            status=response.status_code,
            content_type=content_type,
            preview=response.text[:FORMAT_PREVIEW_CHARS],
        )

    if not 200 <= response.status_code < 300:
        if is_json:
            body: Any = response.json()
        else:
            body = {"raw": response.text[:ERROR_PREVIEW_CHARS]}
        logger.warning("Upstream returned %s for %s %s", response.status_code, response.request.method, response.request.url.path)
        return UpstreamStatusError(status=response.status_code, body=body)

    if not is_json or not response.content:
        return UpstreamOk(status=response.status_code, payload=None)
    return UpstreamOk(status=response.status_code, payload=response.json())


__all__ = [
    "UpstreamClient",
    "UpstreamFormatError",
    "UpstreamOk",
    "UpstreamResult",
    "UpstreamStatusError",
    "classify_response",
]
