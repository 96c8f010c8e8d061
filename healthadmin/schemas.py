"""
Request schemas for the JSON API.

Bodies are validated with pydantic.  Fields use snake_case in Python and
accept camelCase from clients (``contactPersonEmail``), as well as the
snake_case name.  ``parse_body`` and ``parse_query`` turn pydantic's
``ValidationError`` into ``ValidationFailed`` with a field-level list::

    [{"field": "email", "message": "value is not a valid email address"}]
"""

import re
from typing import Any, TypeVar

from flask import request
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from healthadmin.errors import ValidationFailed
from healthadmin.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT
from healthadmin.roles import OrganizationType, Role
from healthadmin.security import MAX_PASSWORD_BYTES

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ApiSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


def _blank_to_none(value: Any) -> Any:
    return None if value == "" else value


def _check_password_complexity(value: str) -> str:
    for pattern, label in (
        (r"[a-z]", "lowercase letter"),
        (r"[A-Z]", "uppercase letter"),
        (r"[0-9]", "number"),
        (r"[^a-zA-Z0-9]", "special character"),
    ):
        if not re.search(pattern, value):
            raise ValueError(f"Password must contain at least one {label}")
    return value


def _check_password_length(value: str | None) -> str | None:
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded"
        )
    return value


# -- Auth ------------------------------------------------------------------


class RegisterUserRequest(ApiSchema):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str | None = Field(default=None, max_length=100)

    @field_validator("full_name", mode="before")
    @classmethod
    def blank_name_to_none(cls, value):
        return _blank_to_none(value)

    @field_validator("password")
    @classmethod
    def password_length(cls, value):
        return _check_password_length(value)


class LoginRequest(ApiSchema):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshTokenRequest(ApiSchema):
    refresh_token: str = Field(min_length=1)


class ForgotPasswordRequest(ApiSchema):
    email: EmailStr


class ResetPasswordRequest(ApiSchema):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=8)
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def password_complexity(cls, value):
        return _check_password_complexity(_check_password_length(value))

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


# -- Organizations ---------------------------------------------------------


class OrganizationRegistrationRequest(ApiSchema):
    name: str = Field(min_length=2, max_length=255)
    type: OrganizationType
    license_number: str | None = Field(default=None, max_length=100)
    address: str | None = Field(default=None, max_length=500)
    contact_person_name: str = Field(min_length=2, max_length=100)
    contact_person_email: EmailStr
    contact_person_mobile: str | None = Field(default=None, max_length=20)

    @field_validator(
        "license_number", "address", "contact_person_mobile", mode="before"
    )
    @classmethod
    def blank_optional_to_none(cls, value):
        return _blank_to_none(value)


class RejectOrganizationRequest(ApiSchema):
    rejection_reason: str | None = Field(default=None, max_length=500)

    @field_validator("rejection_reason", mode="before")
    @classmethod
    def blank_reason_to_none(cls, value):
        return _blank_to_none(value)


# -- Admin user management -------------------------------------------------


class UpdateUserStatusRequest(ApiSchema):
    is_active: bool


class UpdateUserRolesRequest(ApiSchema):
    roles: list[Role] = Field(min_length=1)


class UpdateUserRequest(ApiSchema):
    """
    Partial update.  Only fields present in the body are applied; send
    ``null`` to clear a nullable field.
    """

    email: EmailStr | None = None
    full_name: str | None = Field(default=None, max_length=100)
    roles: list[Role] | None = Field(default=None, min_length=1)
    is_active: bool | None = None
    mobile_code: str | None = Field(default=None, max_length=10)
    mobile: str | None = Field(default=None, max_length=20)
    phone_code: str | None = Field(default=None, max_length=10)
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=500)
    pin_code: str | None = Field(default=None, max_length=20)
    employee_id: str | None = Field(default=None, max_length=50)
    department: str | None = Field(default=None, max_length=100)
    organization_id: str | None = None
    staff_organization_id: str | None = None

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent, by Python name."""
        return self.model_dump(exclude_unset=True)


# -- Staff -----------------------------------------------------------------


class CreateStaffRequest(ApiSchema):
    email: EmailStr
    password: str | None = Field(default=None, min_length=8)
    full_name: str = Field(min_length=2, max_length=100)
    # Checked against the caller's allow-list by the service.
    role: str = Field(min_length=1)
    employee_id: str | None = Field(default=None, max_length=50)
    department: str | None = Field(default=None, max_length=100)

    @field_validator("password", "employee_id", "department", mode="before")
    @classmethod
    def blank_optional_to_none(cls, value):
        return _blank_to_none(value)

    @field_validator("password")
    @classmethod
    def password_length(cls, value):
        return _check_password_length(value)


class UpdateStaffStatusRequest(ApiSchema):
    is_active: bool


# -- Query strings ---------------------------------------------------------


class PageQuery(ApiSchema):
    page: int = Field(default=DEFAULT_PAGE, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)


# -- Parsing helpers -------------------------------------------------------


def _field_errors(exc: ValidationError) -> list[dict[str, str]]:
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        errors.append({"field": field, "message": message})
    return errors


def validate(schema: type[SchemaT], data: Any) -> SchemaT:
    """
    Validate ``data`` against ``schema``.

    Raises:
        ValidationFailed: With a ``[{field, message}]`` detail list.
    """
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailed(detail=_field_errors(exc)) from exc


def parse_body(schema: type[SchemaT]) -> SchemaT:
    """Validate the JSON request body.  A missing body counts as ``{}``."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationFailed(
            detail=[{"field": "body", "message": "Request body must be a JSON object."}]
        )
    return validate(schema, data)


def parse_query(schema: type[SchemaT]) -> SchemaT:
    return validate(schema, request.args.to_dict())
