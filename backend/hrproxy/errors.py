"""HTTP error payloads for client, upstream and unexpected failures."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import httpx
from fastapi import status

from .upstream import UpstreamFormatError, UpstreamResult, UpstreamStatusError

logger = logging.getLogger(__name__)


class ProxyError(Exception):
    """Raised by route handlers; rendered verbatim as ``JSONResponse(payload, status_code)``."""

    def __init__(self, status_code: int, payload: Dict[str, Any]) -> None:
        super().__init__(payload.get("error", "proxy error"))
        self.status_code = status_code
        self.payload = payload


def bad_request(message: str, details: Optional[Any] = None) -> ProxyError:
    payload: Dict[str, Any] = {"error": message}
    if details is not None:
        payload["details"] = details
    return ProxyError(status.HTTP_400_BAD_REQUEST, payload)


def not_found(message: str) -> ProxyError:
    return ProxyError(status.HTTP_404_NOT_FOUND, {"error": message})


def unexpected(message: str, exc: BaseException) -> ProxyError:
    return ProxyError(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"error": message, "details": str(exc) or type(exc).__name__},
    )


@contextmanager
def translate_failures(message: str) -> Iterator[None]:
    """Turn transport errors and undecodable upstream bodies into a 500 ``ProxyError``."""
    try:
        yield
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("%s", message)
        raise unexpected(message, exc) from exc


def upstream_failure(
    result: UpstreamResult,
    *,
    format_message: str = "SuccessFactors returned non-JSON (likely token expired or wrong headers)",
    status_message: str = "SuccessFactors error",
) -> ProxyError:
    """Translate a non-``UpstreamOk`` result into the matching ``ProxyError``."""
    if isinstance(result, UpstreamFormatError):
        return ProxyError(
            result.status or status.HTTP_502_BAD_GATEWAY,
            {
                "error": format_message,
                "status": result.status,
                "contentType": result.content_type,
                "bodyPreview": result.preview,
            },
        )
    if isinstance(result, UpstreamStatusError):
        return ProxyError(
            result.status or status.HTTP_502_BAD_GATEWAY,
            {"error": status_message, "status": result.status, "details": result.body},
        )
    raise TypeError(f"Not an upstream failure: {result!r}")


__all__ = [
    "ProxyError",
    "bad_request",
    "not_found",
    "translate_failures",
    "unexpected",
    "upstream_failure",
]
