"""Structured events for calls made against the upstream OData service."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from threading import RLock
from time import perf_counter
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("hrproxy.telemetry")


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]


_listeners: List[Callable[[TelemetryEvent], None]] = []
_lock = RLock()


def register_listener(listener: Callable[[TelemetryEvent], None]) -> None:
    """Register an in-process listener (used in tests)."""
    with _lock:
        _listeners.append(listener)


def clear_listeners() -> None:
    with _lock:
        _listeners.clear()


def emit_event(name: str, **fields: Any) -> None:
    """Fan an event out to listeners, then log it as a single JSON line."""
    event = TelemetryEvent(name=name, payload=dict(fields))

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **event.payload}, default=str))


def record_upstream_call(
    method: str,
    entity: str,
    started: float,
    *,
    status: Optional[int] = None,
    content_type: Optional[str] = None,
    error: Optional[BaseException] = None,
) -> None:
    """Emit ``upstream_request`` (or ``upstream_request_failed``) for one outbound call."""
    latency_ms = round((perf_counter() - started) * 1000, 1)
    if error is not None:
        emit_event(
            "upstream_request_failed",
            method=method,
            entity=entity,
            error=type(error).__name__,
            latency_ms=latency_ms,
        )
        return
    emit_event(
        "upstream_request",
        method=method,
        entity=entity,
        status=status,
        content_type=content_type,
        latency_ms=latency_ms,
    )


__all__ = [
    "TelemetryEvent",
    "clear_listeners",
    "emit_event",
    "record_upstream_call",
    "register_listener",
]
