from __future__ import annotations

import asyncio
from typing import List

import httpx
import pytest

from conftest import make_settings
from hrproxy.errors import upstream_failure
from hrproxy.telemetry import TelemetryEvent, clear_listeners, register_listener
from hrproxy.upstream import (
    UpstreamClient,
    UpstreamFormatError,
    UpstreamOk,
    UpstreamStatusError,
    classify_response,
)

REQUEST = httpx.Request("GET", "https://hr.example.test/odata/v2/User")


def test_classify_requires_json_for_reads() -> None:
    response = httpx.Response(302, html="<html>login</html>", request=REQUEST)
    result = classify_response(response, require_json=True)
    assert isinstance(result, UpstreamFormatError)
    assert result.status == 302
    assert result.preview == "<html>login</html>"


def test_classify_accepts_empty_write_success() -> None:
    result = classify_response(httpx.Response(204, request=REQUEST), require_json=False)
    assert result == UpstreamOk(status=204, payload=None)


def test_classify_status_error_keeps_json_body() -> None:
    body = {"error": {"code": "x"}}
    result = classify_response(httpx.Response(403, json=body, request=REQUEST), require_json=True)
    assert result == UpstreamStatusError(status=403, body=body)


def test_format_error_without_status_maps_to_bad_gateway() -> None:
    error = upstream_failure(UpstreamFormatError(status=0, content_type="", preview=""))
    assert error.status_code == 502
    assert error.payload["status"] == 0


def test_upstream_failure_rejects_success() -> None:
    with pytest.raises(TypeError):
        upstream_failure(UpstreamOk(status=200, payload=None))


def test_query_headers_without_token_or_company() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"d": {"results": []}})

    settings = make_settings(SF_BEARER_TOKEN=None, BASE_URL="https://hr.example.test/", ODATA_PATH="odata/v2/")
    client = UpstreamClient(settings, transport=httpx.MockTransport(handler))

    result = asyncio.run(client.query("User", where="userId eq 'a'", select=["userId", "username"]))

    assert isinstance(result, UpstreamOk)
    (request,) = seen
    assert str(request.url).startswith("https://hr.example.test/odata/v2/User?")
    assert "Authorization" not in request.headers
    assert "Company-Id" not in request.headers
    assert "company" not in request.url.params
    assert request.url.params["$select"] == "userId,username"


def test_upstream_calls_emit_telemetry() -> None:
    events: List[TelemetryEvent] = []
    register_listener(events.append)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            raise httpx.ConnectTimeout("slow", request=request)
        return httpx.Response(200, json={"d": {"results": []}})

    client = UpstreamClient(make_settings(), transport=httpx.MockTransport(handler))

    async def exercise() -> None:
        await client.query("User", where="userId eq 'a'", select=["userId"])
        with pytest.raises(httpx.ConnectTimeout):
            await client.create("cust_TriviaScore", {"externalCode": "a"})
        await client.aclose()

    try:
        asyncio.run(exercise())
    finally:
        clear_listeners()

    assert [event.name for event in events] == ["upstream_request", "upstream_request_failed"]
    assert events[0].payload["status"] == 200
    assert events[0].payload["entity"] == "User"
    assert events[1].payload["error"] == "ConnectTimeout"
