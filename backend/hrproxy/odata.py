"""OData v2 query helpers: filter literals, key paths and response envelopes."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

USER_ENTITY = "User"

# OData v2 JSON encodes dates as "/Date(1700000000000)/" or "/Date(1700000000000+0000)/".
_EPOCH_MILLIS = re.compile(r"\d{10,}")

# Sub-delimiters left literal inside a quoted key segment.
_KEY_SAFE_CHARS = "!~*'()"


def quote_literal(value: Any) -> str:
    """Render ``value`` as a single-quoted OData string literal, doubling embedded quotes."""
    return "'" + str(value).replace("'", "''") + "'"


def eq_filter(field: str, value: Any) -> str:
    return f"{field} eq {quote_literal(value)}"


def any_of(clauses: Iterable[Tuple[str, Any]]) -> str:
    """Join ``field eq 'value'`` clauses with ``or``.

    Duplicate (field, value) pairs are collapsed, keeping the first occurrence.
    """
    seen = set()
    parts: List[str] = []
    for field, value in clauses:
        marker = (field, str(value))
        if marker in seen:
            continue
        seen.add(marker)
        parts.append(eq_filter(field, value))
    if not parts:
        raise ValueError("At least one filter clause is required.")
    return " or ".join(parts)


def entity_key_path(entity: str, key: Any) -> str:
    """Return ``Entity('key')`` with the quoted key percent-encoded for the URL path."""
    escaped = str(key).replace("'", "''")
    return f"{entity}('{quote(escaped, safe=_KEY_SAFE_CHARS)}')"


def select_clause(fields: Iterable[str]) -> str:
    return ",".join(fields)


def date_millis(value: Any) -> int:
    """Extract epoch milliseconds from an OData date wrapper; 0 when none is present."""
    if value is None:
        return 0
    match = _EPOCH_MILLIS.search(str(value))
    if match is None:
        return 0
    return int(match.group(0))


def results(payload: Any) -> List[Dict[str, Any]]:
    """Return ``d.results`` from a collection response, or an empty list."""
    if not isinstance(payload, dict):
        return []
    envelope = payload.get("d")
    if isinstance(envelope, dict):
        items = envelope.get("results")
        if isinstance(items, list):
            return [item for item in items if isinstance(item, dict)]
    return []


def entity(payload: Any) -> Optional[Dict[str, Any]]:
    """Return the ``d`` object of a single-entity response (e.g. a create echo)."""
    if not isinstance(payload, dict):
        return None
    envelope = payload.get("d")
    if isinstance(envelope, dict):
        return envelope
    return None


__all__ = [
    "USER_ENTITY",
    "any_of",
    "date_millis",
    "entity",
    "entity_key_path",
    "eq_filter",
    "quote_literal",
    "results",
    "select_clause",
]
