"""User endpoints: lookup, creation and partial update against the OData ``User`` entity."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from .dependencies import get_upstream
from .errors import bad_request, not_found, translate_failures, upstream_failure
from .identity import find_by_candidates
from .models import (
    USER_CREATABLE_FIELDS,
    USER_SELECT_FIELDS,
    USER_UPDATABLE_FIELDS,
    CreatedResponse,
    UpdateRequest,
    UserLookupResponse,
    UserRecord,
    UserUpdateResponse,
    allowed_subset,
)
from .odata import USER_ENTITY
from .upstream import UpstreamClient, UpstreamOk


router = APIRouter(prefix="/api/user", tags=["user"])
logger = logging.getLogger(__name__)


@router.get("", response_model=UserLookupResponse)
async def get_user(
    username: Optional[str] = Query(default=None),
    userid: Optional[str] = Query(default=None),
    upstream: UpstreamClient = Depends(get_upstream),
) -> UserLookupResponse:
    if userid:
        field, value = "userId", userid
    elif username:
        field, value = "username", username
    else:
        raise bad_request("username or userid is required")

    with translate_failures("Failed to query SuccessFactors"):
        result = await find_by_candidates(upstream, USER_ENTITY, [field], [value], USER_SELECT_FIELDS)
        if not isinstance(result, UpstreamOk):
            raise upstream_failure(result)
        match = result.first()
        if match is None:
            return UserLookupResponse(found=False, user=None)
        return UserLookupResponse(found=True, user=UserRecord.from_odata(match))


@router.post("", response_model=CreatedResponse)
async def create_user(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream),
) -> CreatedResponse:
    body = payload or {}
    username = body.get("username")
    if not username:
        raise bad_request("username is required")

    fields = allowed_subset(body, USER_CREATABLE_FIELDS)
    fields["username"] = str(username)
    fields["userId"] = str(body.get("userId") or username)

    with translate_failures("Failed to create user"):
        result = await upstream.create(USER_ENTITY, fields)
    if not isinstance(result, UpstreamOk):
        raise upstream_failure(result, status_message="create failed")
    logger.info("Created user %s", fields["userId"])
    return CreatedResponse(created=result.entity)


@router.put("", response_model=UserUpdateResponse)
async def update_user(
    payload: Optional[UpdateRequest] = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream),
) -> UserUpdateResponse:
    username, fields = (payload or UpdateRequest()).validated(USER_UPDATABLE_FIELDS)

    with translate_failures("Failed to update user"):
        lookup = await find_by_candidates(
            upstream,
            USER_ENTITY,
            ["username"],
            [username],
            ["userId"],
            timeout=upstream.settings.lookup_timeout_seconds,
        )
        if not isinstance(lookup, UpstreamOk):
            raise upstream_failure(
                lookup,
                format_message="SuccessFactors returned non-JSON during lookup",
                status_message="lookup failed",
            )
        match = lookup.first()
        user_id = match.get("userId") if match else None
        if not user_id:
            raise not_found("user not found")

        result = await upstream.merge(USER_ENTITY, str(user_id), fields)
    if not isinstance(result, UpstreamOk):
        raise upstream_failure(result, status_message="update failed")
    return UserUpdateResponse(user_id=str(user_id), updated=list(fields))
