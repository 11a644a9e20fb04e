"""Identifier resolution: username to candidate keys, and disjunctive lookups over them."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

import httpx

from .odata import USER_ENTITY, any_of
from .upstream import UpstreamClient, UpstreamOk, UpstreamResult

logger = logging.getLogger(__name__)


async def find_by_candidates(
    upstream: UpstreamClient,
    entity: str,
    fields: Sequence[str],
    candidates: Sequence[str],
    select: Iterable[str],
    *,
    timeout: Optional[float] = None,
) -> UpstreamResult:
    """Query ``entity`` for rows where any of ``fields`` equals any candidate."""
    clauses = [(field, value) for value in candidates for field in fields]
    return await upstream.query(entity, where=any_of(clauses), select=select, timeout=timeout)


async def candidate_keys(upstream: UpstreamClient, username: str) -> List[str]:
    """Return ``[userId, username]`` for a username, degrading to ``[username]``.

    The User lookup is best-effort: transport errors and upstream failures are
    logged and the username alone is returned.
    """
    keys = [username]
    try:
        result = await find_by_candidates(
            upstream,
            USER_ENTITY,
            ["username"],
            [username],
            ["userId"],
            timeout=upstream.settings.lookup_timeout_seconds,
        )
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("userId lookup for %r failed, falling back to username: %s", username, exc)
        return keys

    if not isinstance(result, UpstreamOk):
        logger.warning("userId lookup for %r returned %s, falling back to username", username, type(result).__name__)
        return keys

    match = result.first()
    user_id = match.get("userId") if match else None
    if user_id and str(user_id) != username:
        keys.insert(0, str(user_id))
    return keys


__all__ = ["candidate_keys", "find_by_candidates"]
