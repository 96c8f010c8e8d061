"""
Typed service errors.

Services raise these instead of bare ``ValueError`` so the HTTP layer
can pick a status code from the error class alone.  Every error carries
a stable ``kind`` tag that is also sent to API clients, a human-readable
message, and an optional ``detail`` payload (e.g., field-level
validation messages).

The single error handler registered in ``create_app`` renders any
``ServiceError`` as::

    {"status": "error", "kind": "...", "message": "...", "errors": [...]}
"""

from typing import Any

from sqlalchemy.exc import IntegrityError


class ServiceError(Exception):
    """Base class for every error the service layer raises on purpose."""

    kind: str = "internal_error"
    status_code: int = 500
    default_message: str = "An unexpected internal server error occurred."

    def __init__(
        self,
        message: str | None = None,
        detail: Any = None,
        status_code: int | None = None,
    ):
        self.message = message or self.default_message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error envelope for this error."""
        body: dict[str, Any] = {
            "status": "error",
            "kind": self.kind,
            "message": self.message,
        }
        if self.detail is not None:
            body["errors"] = self.detail
        return body


# -- 400 -------------------------------------------------------------------


class ValidationFailed(ServiceError):
    """Malformed request input.  ``detail`` holds ``[{field, message}]``."""

    kind = "validation_error"
    status_code = 400
    default_message = "Validation failed."


class InvalidRole(ServiceError):
    """A role tag that does not belong to the fixed role set."""

    kind = "invalid_role"
    status_code = 400
    default_message = "Invalid role provided."


class TokenInvalid(ServiceError):
    kind = "token_invalid"
    status_code = 400
    default_message = "Invalid or expired password reset token."


class TokenExpired(ServiceError):
    kind = "token_expired"
    status_code = 400
    default_message = "This token has expired."


class TokenUsed(ServiceError):
    kind = "token_used"
    status_code = 400
    default_message = "This password reset token has already been used."


class AccountInactive(ServiceError):
    """Deactivated account.  Login reports it as 403, password reset as 400."""

    kind = "account_inactive"
    status_code = 400
    default_message = "Your account is not active. Please contact support."


# -- 401 -------------------------------------------------------------------


class AuthenticationRequired(ServiceError):
    """Missing, malformed or expired credentials."""

    kind = "authentication_error"
    status_code = 401
    default_message = "Authentication required for this action."


class InvalidCredentials(AuthenticationRequired):
    """Unknown email or wrong password.  Both cases share one message."""

    kind = "invalid_credentials"
    default_message = "Invalid credentials."


# -- 403 -------------------------------------------------------------------


class PermissionDenied(ServiceError):
    """Role mismatch or cross-tenant access."""

    kind = "authorization_error"
    status_code = 403
    default_message = "You do not have sufficient permissions to access this resource."


class RoleNotAssignable(PermissionDenied):
    """The caller's admin type may not hand out the requested role."""

    kind = "role_not_assignable"


# -- 404 -------------------------------------------------------------------


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404
    default_message = "Resource not found."


class UserNotFound(NotFound):
    kind = "user_not_found"
    default_message = "User not found."


class RelatedRecordNotFound(NotFound):
    """A foreign-key target (e.g., an organization id) does not exist."""

    kind = "related_record_not_found"
    default_message = "Could not update user due to a missing related record."


# -- 409 -------------------------------------------------------------------


class Conflict(ServiceError):
    kind = "conflict"
    status_code = 409
    default_message = "A record with this value already exists."


class DuplicateEmail(Conflict):
    kind = "duplicate_email"
    default_message = "User with this email already exists."


class DuplicateContact(Conflict):
    kind = "duplicate_contact"
    default_message = (
        "An organization with this contact email already exists "
        "or is pending verification."
    )


class AdminProvisioningConflict(Conflict):
    """Approving an organization whose contact email is already a user."""

    kind = "admin_provisioning_conflict"
    default_message = "Failed to create admin user for organization."


# -- 500 -------------------------------------------------------------------


class OrganizationConfigurationError(ServiceError):
    """An organization type with no admin role mapping."""

    kind = "configuration_error"
    default_message = "Invalid organization type for admin role assignment."


class EmailDeliveryError(ServiceError):
    kind = "email_delivery_error"
    status_code = 502
    default_message = "Failed to send email."


# -- Storage constraint helpers --------------------------------------------


def is_unique_violation(exc: IntegrityError, column: str) -> bool:
    """
    Return True if ``exc`` is a unique-constraint violation on ``column``.

    Driver messages differ (SQLite: ``UNIQUE constraint failed:
    users.email``; PostgreSQL: ``duplicate key value violates unique
    constraint "uq_users_email"``) but both name the column.
    """
    text = str(exc.orig).lower()
    is_unique = "unique" in text or "duplicate key" in text
    return is_unique and column.lower() in text
