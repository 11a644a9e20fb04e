from __future__ import annotations

import os
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("BASE_URL", "https://hr.example.test")
os.environ.setdefault("SF_BEARER_TOKEN", "test-token")

from hrproxy.config import Settings  # noqa: E402
from hrproxy.dependencies import get_upstream  # noqa: E402
from hrproxy.main import app  # noqa: E402
from hrproxy.upstream import UpstreamClient  # noqa: E402

Handler = Callable[[httpx.Request], httpx.Response]


def odata_results(*items: Dict[str, Any], status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json={"d": {"results": list(items)}})


def odata_entity(item: Dict[str, Any], status_code: int = 201) -> httpx.Response:
    return httpx.Response(status_code, json={"d": item})


def entity_of(request: httpx.Request) -> str:
    return request.url.path.rsplit("/", 1)[-1]


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "BASE_URL": "https://hr.example.test",
        "SF_BEARER_TOKEN": "test-token",
        "SCORE_ENTITY": "cust_TriviaScore",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def proxy() -> Callable[..., Tuple[TestClient, List[httpx.Request]]]:
    """Return a factory wiring the app to an in-memory OData backend.

    The factory takes a request handler plus optional ``Settings`` overrides and
    returns the test client and the list of outbound requests it recorded.
    """

    def _make(handler: Optional[Handler] = None, **overrides: Any) -> Tuple[TestClient, List[httpx.Request]]:
        calls: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if handler is None:
                raise AssertionError(f"Unexpected upstream call: {request.method} {request.url}")
            return handler(request)

        upstream = UpstreamClient(make_settings(**overrides), transport=httpx.MockTransport(_record))
        app.dependency_overrides[get_upstream] = lambda: upstream
        return TestClient(app), calls

    yield _make
    app.dependency_overrides.clear()
