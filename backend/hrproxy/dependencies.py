"""FastAPI dependency providers shared by the routers."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends

from .config import Settings, get_settings
from .upstream import UpstreamClient

_upstream: Optional[UpstreamClient] = None


def get_upstream(settings: Settings = Depends(get_settings)) -> UpstreamClient:
    global _upstream
    if _upstream is None:
        _upstream = UpstreamClient(settings)
    return _upstream


async def close_upstream() -> None:
    global _upstream
    if _upstream is not None:
        await _upstream.aclose()
        _upstream = None
