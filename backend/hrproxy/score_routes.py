"""Score endpoints over the configured score entity, keyed by ``externalCode``."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Body, Depends, Query

from .dependencies import get_upstream
from .errors import bad_request, not_found, translate_failures, upstream_failure
from .identity import candidate_keys, find_by_candidates
from .models import (
    NAME_FIELD,
    SCORE_FIELD,
    STREAK_FIELD,
    CreatedResponse,
    ScoreCreateRequest,
    ScoreLookupResponse,
    ScoreRecord,
    ScoreUpdateResponse,
    UpdateRequest,
    score_select_fields,
    score_updatable_fields,
    touches_localized_name,
)
from .odata import USER_ENTITY
from .score_selection import pick_best
from .upstream import UpstreamClient, UpstreamOk


router = APIRouter(prefix="/api/score", tags=["score"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ScoreLookupResponse)
async def get_score(
    username: Optional[str] = Query(default=None),
    upstream: UpstreamClient = Depends(get_upstream),
) -> ScoreLookupResponse:
    if not username:
        raise bad_request("username is required")
    settings = upstream.settings

    with translate_failures("Failed to query score"):
        keys = await candidate_keys(upstream, username)
        result = await find_by_candidates(
            upstream,
            settings.score_entity,
            ["externalCode"],
            keys,
            score_select_fields(settings.score_streak_enabled),
        )
        if not isinstance(result, UpstreamOk):
            raise upstream_failure(result)
        records = result.results
        best = pick_best(records)
        if best is None:
            return ScoreLookupResponse(found=False, score=None)
        if len(records) > 1:
            logger.info("Picked %s of %d score records for %r", best.get("externalCode"), len(records), username)
        return ScoreLookupResponse(found=True, score=ScoreRecord.from_odata(best))


@router.put("", response_model=ScoreUpdateResponse)
async def update_score(
    payload: Optional[UpdateRequest] = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream),
) -> ScoreUpdateResponse:
    settings = upstream.settings
    username, fields = (payload or UpdateRequest()).validated(
        score_updatable_fields(settings.score_streak_enabled)
    )

    with translate_failures("Failed to update score"):
        keys = await candidate_keys(upstream, username)
        lookup = await find_by_candidates(upstream, settings.score_entity, ["externalCode"], keys, ["externalCode"])
        if not isinstance(lookup, UpstreamOk):
            raise upstream_failure(lookup, status_message="lookup failed")
        match = lookup.first()
        external_code = match.get("externalCode") if match else None
        if not external_code:
            raise not_found("score record not found")

        locale = settings.default_locale if touches_localized_name(fields) else None
        result = await upstream.merge(settings.score_entity, str(external_code), fields, locale=locale)
    if not isinstance(result, UpstreamOk):
        raise upstream_failure(result, status_message="update failed")
    return ScoreUpdateResponse(external_code=str(external_code), updated=list(fields))


async def _validated_external_code(upstream: UpstreamClient, code: str) -> str:
    """Map ``code`` onto the matching User's preferred identifier.

    Raises a 400 when the User query succeeds without a match. When the query
    itself fails the caller's code is used unchanged.
    """
    settings = upstream.settings
    try:
        result = await find_by_candidates(
            upstream,
            USER_ENTITY,
            ["userId", "username"],
            [code],
            ["userId", "username"],
            timeout=settings.lookup_timeout_seconds,
        )
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("externalCode validation for %r failed, creating anyway: %s", code, exc)
        return code
    if not isinstance(result, UpstreamOk):
        logger.warning("externalCode validation for %r returned %s, creating anyway", code, type(result).__name__)
        return code

    match = result.first()
    if match is None:
        raise bad_request(
            "Invalid externalCode",
            "externalCode must match an existing User userId or username",
        )
    preferred = settings.external_code_source
    fallback = "username" if preferred == "userId" else "userId"
    return str(match.get(preferred) or match.get(fallback) or code)


@router.post("", response_model=CreatedResponse)
async def create_score(
    payload: Optional[ScoreCreateRequest] = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream),
) -> CreatedResponse:
    request = payload or ScoreCreateRequest()
    code = request.external_code or request.username
    if not code:
        raise bad_request("externalCode or username is required")
    settings = upstream.settings

    with translate_failures("Failed to create score"):
        external_code = await _validated_external_code(upstream, code)
        candidates: Dict[str, Any] = {
            "externalCode": external_code,
            NAME_FIELD: request.external_name,
            SCORE_FIELD: request.score,
        }
        if settings.score_streak_enabled:
            candidates[STREAK_FIELD] = request.streak
        body = {key: value for key, value in candidates.items() if value is not None}

        locale = settings.default_locale if touches_localized_name(body) else None
        result = await upstream.create(settings.score_entity, body, locale=locale)
    if not isinstance(result, UpstreamOk):
        raise upstream_failure(result, status_message="create failed")
    logger.info("Created score record %s", external_code)
    return CreatedResponse(created=result.entity)
