"""Pydantic projections of upstream records and the proxy's request/response payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import bad_request

USER_SELECT_FIELDS = [
    "userId",
    "username",
    "displayName",
    "defaultFullName",
    "email",
    "status",
    "division",
    "department",
    "location",
    "timeZone",
    "defaultLocale",
    "lastModifiedDateTime",
    "lastModifiedWithTZ",
    "assignmentUUID",
]

USER_UPDATABLE_FIELDS = frozenset(
    {
        "displayName",
        "defaultFullName",
        "email",
        "status",
        "division",
        "department",
        "location",
        "timeZone",
        "defaultLocale",
    }
)

# Readable fields minus audit stamps; identifiers are force-set by the handler.
USER_CREATABLE_FIELDS = USER_UPDATABLE_FIELDS | {"assignmentUUID"}

SCORE_FIELD = "cust_Score"
STREAK_FIELD = "cust_Streak"
NAME_FIELD = "externalName"
RECORD_STATUS_FIELD = "mdfSystemRecordStatus"


def score_select_fields(streak_enabled: bool) -> List[str]:
    fields = ["externalCode", NAME_FIELD, SCORE_FIELD]
    if streak_enabled:
        fields.append(STREAK_FIELD)
    fields.extend(
        [
            RECORD_STATUS_FIELD,
            "createdBy",
            "createdDateTime",
            "lastModifiedBy",
            "lastModifiedDateTime",
        ]
    )
    return fields


def score_updatable_fields(streak_enabled: bool) -> frozenset:
    fields = {SCORE_FIELD, NAME_FIELD, RECORD_STATUS_FIELD}
    if streak_enabled:
        fields.add(STREAK_FIELD)
    return frozenset(fields)


def allowed_subset(values: Dict[str, Any], allowed: frozenset) -> Dict[str, Any]:
    """Keep only allow-listed keys, preserving the caller's order."""
    return {key: value for key, value in values.items() if key in allowed}


def touches_localized_name(fields: Dict[str, Any]) -> bool:
    return any(key.startswith(NAME_FIELD) for key in fields)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class UserRecord(_Record):
    user_id: Optional[str] = Field(default=None, alias="userId")
    username: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    email: Optional[str] = None
    status: Optional[str] = None
    division: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    time_zone: Optional[str] = Field(default=None, alias="timeZone")
    default_locale: Optional[str] = Field(default=None, alias="defaultLocale")
    assignment_uuid: Optional[str] = Field(default=None, alias="assignmentUUID")
    last_modified_date_time: Optional[str] = Field(default=None, alias="lastModifiedDateTime")
    last_modified_with_tz: Optional[str] = Field(default=None, alias="lastModifiedWithTZ")

    @classmethod
    def from_odata(cls, item: Dict[str, Any]) -> "UserRecord":
        values = {key: item.get(key) for key in USER_SELECT_FIELDS if key != "defaultFullName"}
        values["displayName"] = item.get("displayName") or item.get("defaultFullName")
        return cls.model_validate(values)


class ScoreRecord(_Record):
    external_code: Optional[str] = Field(default=None, alias="externalCode")
    external_name: Optional[str] = Field(default=None, alias="externalName")
    score: Optional[Any] = Field(default=None, alias="cust_Score")
    streak: Optional[Any] = Field(default=None, alias="cust_Streak")
    record_status: Optional[str] = Field(default=None, alias="mdfSystemRecordStatus")
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    created_date_time: Optional[str] = Field(default=None, alias="createdDateTime")
    last_modified_by: Optional[str] = Field(default=None, alias="lastModifiedBy")
    last_modified_date_time: Optional[str] = Field(default=None, alias="lastModifiedDateTime")

    @classmethod
    def from_odata(cls, item: Dict[str, Any]) -> "ScoreRecord":
        return cls.model_validate({key: item.get(key) for key in score_select_fields(True)})


class UserLookupResponse(BaseModel):
    found: bool
    user: Optional[UserRecord] = None


class ScoreLookupResponse(BaseModel):
    found: bool
    score: Optional[ScoreRecord] = None


class ScoreUpdateResponse(BaseModel):
    ok: bool = True
    external_code: str = Field(..., alias="externalCode")
    updated: List[str]

    model_config = ConfigDict(populate_by_name=True)


class UserUpdateResponse(BaseModel):
    ok: bool = True
    user_id: str = Field(..., alias="userId")
    updated: List[str]

    model_config = ConfigDict(populate_by_name=True)


class CreatedResponse(BaseModel):
    ok: bool = True
    created: Optional[Dict[str, Any]] = None


class UpdateRequest(BaseModel):
    """``{username, updates}`` body shared by the PUT endpoints."""

    username: Optional[str] = None
    updates: Optional[Any] = None

    def validated(self, allowed: frozenset) -> Tuple[str, Dict[str, Any]]:
        if not self.username:
            raise bad_request("username is required")
        if not isinstance(self.updates, dict):
            raise bad_request("updates object is required")
        fields = allowed_subset(self.updates, allowed)
        if not fields:
            raise bad_request("no allowed fields in updates")
        return self.username, fields


class ScoreCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    external_code: Optional[str] = Field(default=None, alias="externalCode")
    username: Optional[str] = None
    external_name: Optional[str] = Field(default=None, alias="externalName")
    score: Optional[Any] = Field(default=None, alias="cust_Score")
    streak: Optional[Any] = Field(default=None, alias="cust_Streak")


__all__ = [
    "CreatedResponse",
    "NAME_FIELD",
    "RECORD_STATUS_FIELD",
    "SCORE_FIELD",
    "STREAK_FIELD",
    "ScoreCreateRequest",
    "ScoreLookupResponse",
    "ScoreRecord",
    "ScoreUpdateResponse",
    "USER_CREATABLE_FIELDS",
    "USER_SELECT_FIELDS",
    "USER_UPDATABLE_FIELDS",
    "UpdateRequest",
    "UserLookupResponse",
    "UserRecord",
    "UserUpdateResponse",
    "allowed_subset",
    "score_select_fields",
    "score_updatable_fields",
    "touches_localized_name",
]
