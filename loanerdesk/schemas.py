"""
Request body models for the JSON API.

Every endpoint that accepts a body validates it with one of these
pydantic models.  Field names are snake_case in Python and camelCase
on the wire; unknown keys are rejected.
"""

import pydantic
from flask import request
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from loanerdesk.constants import CHECKOUT_REASONS, DEVICE_TYPES, REPAIR_DEVICE_TYPES
from loanerdesk.errors import ValidationError


def _check_model(value: str) -> str:
    if value not in DEVICE_TYPES:
        raise ValueError(f"must be one of {', '.join(DEVICE_TYPES)}")
    return value


class RequestModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )


# -- Auth ------------------------------------------------------------------


class LoginRequest(RequestModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# -- Devices ---------------------------------------------------------------


class DeviceCreate(RequestModel):
    asset_tag: str = Field(min_length=1, max_length=100)
    model: str
    school_id: str = Field(min_length=1)
    serial: str | None = None

    @field_validator("model")
    @classmethod
    def _known_model(cls, value: str) -> str:
        return _check_model(value)


class BulkDeviceCreate(RequestModel):
    asset_tags: list[str] = Field(min_length=1)
    model: str
    school_id: str = Field(min_length=1)

    @field_validator("asset_tags")
    @classmethod
    def _clean_tags(cls, value: list[str]) -> list[str]:
        # Drop blanks and repeated scans, keeping scan order.
        seen = []
        for tag in (t.strip() for t in value):
            if tag and tag not in seen:
                seen.append(tag)
        if not seen:
            raise ValueError("at least one asset tag is required")
        return seen

    @field_validator("model")
    @classmethod
    def _known_model(cls, value: str) -> str:
        return _check_model(value)


class CheckoutRequest(RequestModel):
    user_name: str = Field(min_length=1)
    reason: str
    homeroom_teacher: str | None = None
    # Only used to auto-register an unknown tag.
    school_id: str | None = None
    model: str | None = None

    @field_validator("reason")
    @classmethod
    def _known_reason(cls, value: str) -> str:
        if value not in CHECKOUT_REASONS:
            raise ValueError(f"must be one of {', '.join(CHECKOUT_REASONS)}")
        return value

    @field_validator("homeroom_teacher")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        return value or None


class CheckinRequest(RequestModel):
    school_id: str | None = None
    model: str | None = None


# -- Repairs ---------------------------------------------------------------


class RepairTicketCreate(RequestModel):
    school_id: str = Field(min_length=1)
    device_type: str
    full_name: str
    issue_type: str
    device_barcode: str
    notes: str | None = None
    is_staff: bool = False

    @field_validator("device_type")
    @classmethod
    def _known_device_type(cls, value: str) -> str:
        if value not in REPAIR_DEVICE_TYPES:
            raise ValueError(f"must be one of {', '.join(REPAIR_DEVICE_TYPES)}")
        return value


# -- Schools ---------------------------------------------------------------


class SchoolUpdate(RequestModel):
    name: str | None = Field(default=None, min_length=1)
    allow_new_devices: bool | None = None
    logo_url: str | None = None
    address: str | None = None
    contact: str | None = None


class LogoUpdate(RequestModel):
    logo_url: str | None = None


# -- Users -----------------------------------------------------------------


class UserCreate(RequestModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=200, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str
    is_admin: bool = False


class UserUpdate(RequestModel):
    is_active: bool | None = None
    is_admin: bool | None = None


class PasswordReset(RequestModel):
    password: str


# -- Loading ---------------------------------------------------------------


def load_request(schema: type[RequestModel], allow_empty: bool = False):
    """
    Validate the current request's JSON body against ``schema``.

    Args:
        schema:      The request model class.
        allow_empty: Treat a missing body as ``{}`` (for endpoints whose
                     fields are all optional).

    Returns:
        A populated ``schema`` instance.

    Raises:
        ValidationError: If the body is missing, not an object, or fails
                         validation.  The message names the first bad
                         field by its wire name.
    """
    data = request.get_json(silent=True)
    if data is None and allow_empty:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        if error["type"] == "missing":
            raise ValidationError(f"Missing required field: {field}") from exc
        if error["type"] == "extra_forbidden":
            raise ValidationError(f"Unknown field: {field}") from exc
        raise ValidationError(f"{field}: {error['msg']}") from exc


def fields_set(model: RequestModel) -> dict:
    """Return only the fields the client sent, keyed by wire name."""
    return model.model_dump(by_alias=True, exclude_unset=True)
