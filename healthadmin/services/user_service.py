"""
User directory — user lookup, creation, partial update and deletion.

Owns the rules for user records: emails are stored lowercase, every
user holds at least one role, and organization links are attached only
to organizations that exist.  Also maps users to their API
representation (``to_response``), which never includes the password
hash.
"""

import logging
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from healthadmin.errors import (
    Conflict,
    DuplicateEmail,
    InvalidRole,
    RelatedRecordNotFound,
    UserNotFound,
    is_unique_violation,
)
from healthadmin.models.organization import Organization
from healthadmin.models.user import User
from healthadmin.pagination import Page, paginate
from healthadmin.roles import BASELINE_ROLE, roles_to_storage
from healthadmin.security import DEFAULT_HASH_ROUNDS, hash_password
from healthadmin.utils import normalize_email, utcnow

logger = logging.getLogger(__name__)

# Nullable scalar columns a partial update may set or clear.
_UPDATABLE_FIELDS = (
    "full_name",
    "mobile_code",
    "mobile",
    "phone_code",
    "phone",
    "address",
    "pin_code",
    "employee_id",
    "department",
)

# Optional fields accepted by ``create``; absent ones are stored as NULL.
_OPTIONAL_CREATE_FIELDS = _UPDATABLE_FIELDS + (
    "organization_id",
    "staff_organization_id",
)


def to_response(user: User | None) -> dict[str, Any] | None:
    """Return the API representation of a user (no password hash)."""
    if user is None:
        return None
    return {
        "id": user.id,
        "email": user.email.lower(),
        "full_name": user.full_name,
        "roles": [role.value for role in user.roles],
        "is_active": user.is_active,
        "is_email_verified": user.is_email_verified,
        "mobile_code": user.mobile_code,
        "mobile": user.mobile,
        "phone_code": user.phone_code,
        "phone": user.phone,
        "address": user.address,
        "pin_code": user.pin_code,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
        "organizationId": user.organization_id,
        "staffOrganizationId": user.staff_organization_id,
        "employeeId": user.employee_id,
        "department": user.department,
    }


class UserDirectory:
    """
    CRUD over ``users``.

    Args:
        session:     SQLAlchemy session (``db.session`` in the app).
        hash_rounds: bcrypt work factor for new password hashes.
    """

    def __init__(self, session: Session, hash_rounds: int = DEFAULT_HASH_ROUNDS):
        self.session = session
        self.hash_rounds = hash_rounds

    def hash_password(self, plain: str) -> str:
        return hash_password(plain, rounds=self.hash_rounds)

    # -- Lookup ------------------------------------------------------------

    def find_by_email(self, email: str) -> User | None:
        """Return a user by email address (case-insensitive)."""
        stmt = select(User).where(User.email == normalize_email(email))
        return self.session.execute(stmt).scalar_one_or_none()

    def find_by_id(self, user_id: str) -> User | None:
        """Return a user by primary key, or None if not found."""
        return self.session.get(User, user_id)

    def list_users(self, page: int = 1, limit: int = 10) -> Page:
        """Return one page of all users, newest first."""
        stmt = select(User).order_by(User.created_at.desc(), User.id)
        return paginate(self.session, stmt, page, limit)

    # -- Create ------------------------------------------------------------

    def create(self, data: Mapping[str, Any], commit: bool = True) -> User:
        """
        Create a user from ``data``.

        ``data`` must contain ``email`` and ``password_hash``.  ``roles``
        defaults to the baseline role.  With ``commit=False`` the row is
        only flushed, so a caller can make it part of a larger
        transaction.  A failed insert rolls back the whole session
        transaction.

        Raises:
            InvalidRole:    A role outside the fixed role set.
            DuplicateEmail: The storage unique constraint on email fired.
        """
        tags = roles_to_storage(data.get("roles") or [BASELINE_ROLE])
        user = User(
            email=normalize_email(data["email"]),
            password_hash=data["password_hash"],
            is_active=True,
            is_email_verified=False,
        )
        for name in _OPTIONAL_CREATE_FIELDS:
            setattr(user, name, data.get(name) or None)
        user.set_roles(tags)

        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            if is_unique_violation(exc, "email"):
                logger.info("Rejected duplicate user email %s", user.email)
                raise DuplicateEmail() from exc
            logger.error("Could not create user %s: %s", user.email, exc.orig)
            raise

        if commit:
            self.session.commit()
        logger.info("Created user %s with roles %s", user.email, tags)
        return user

    # -- Update ------------------------------------------------------------

    def update(self, user_id: str, changes: Mapping[str, Any]) -> User | None:
        """
        Apply a partial update.

        Only keys present in ``changes`` are touched; a ``None`` value
        clears a nullable field.  ``organization_id`` and
        ``staff_organization_id`` attach the user to an existing
        organization, or detach it when ``None``.

        Returns:
            The updated user, or None if ``user_id`` does not exist.

        Raises:
            RelatedRecordNotFound: An organization id that doesn't exist.
            DuplicateEmail:        The new email belongs to another user.
            InvalidRole:           A role outside the fixed role set.
        """
        user = self.find_by_id(user_id)
        if user is None:
            logger.warning("User with ID %s not found for update.", user_id)
            return None

        if not changes:
            logger.warning("No data provided for update of user ID %s.", user_id)
            return user

        # Validate everything before touching the instance.
        links = {
            link: self._resolve_organization(changes[link])
            for link in ("organization_id", "staff_organization_id")
            if link in changes
        }
        tags = None
        if changes.get("roles") is not None:
            tags = roles_to_storage(changes["roles"])
            if not tags:
                raise InvalidRole("A user must hold at least one role.")

        if changes.get("email") is not None:
            user.email = normalize_email(changes["email"])
        if tags is not None:
            user.set_roles(tags)
        if changes.get("is_active") is not None:
            user.is_active = bool(changes["is_active"])
        for name in _UPDATABLE_FIELDS:
            if name in changes:
                setattr(user, name, changes[name])
        for link, organization_id in links.items():
            setattr(user, link, organization_id)

        user.updated_at = utcnow()
        self._commit_user_changes(user)
        logger.info("Updated user %s fields %s", user_id, sorted(changes))
        return user

    def set_active(self, user_id: str, is_active: bool) -> User | None:
        """Activate or deactivate a user.  None if the user doesn't exist."""
        return self.update(user_id, {"is_active": is_active})

    def set_roles(self, user_id: str, roles: list[str]) -> User | None:
        """Replace a user's roles.  None if the user doesn't exist."""
        return self.update(user_id, {"roles": roles})

    def change_password(self, user_id: str, new_password: str) -> User:
        """
        Hash and store a new password.

        Raises:
            UserNotFound: If ``user_id`` does not exist.
        """
        user = self.find_by_id(user_id)
        if user is None:
            logger.error("Attempt to change password for non-existent user ID: %s", user_id)
            raise UserNotFound()

        user.password_hash = self.hash_password(new_password)
        user.updated_at = utcnow()
        self.session.commit()
        logger.info("Changed password for user %s", user.email)
        return user

    # -- Delete ------------------------------------------------------------

    def delete(self, user_id: str) -> User | None:
        """Hard-delete a user.  Returns the deleted record or None."""
        user = self.find_by_id(user_id)
        if user is None:
            logger.warning("User with ID %s not found for deletion.", user_id)
            return None

        self.session.delete(user)
        self.session.commit()
        logger.info("User with ID %s deleted successfully.", user_id)
        return user

    # -- Internal helpers ----------------------------------------------------

    def _resolve_organization(self, organization_id: str | None) -> str | None:
        """Return ``organization_id`` if it exists (or is None), else raise."""
        if organization_id is None:
            return None
        if self.session.get(Organization, organization_id) is None:
            raise RelatedRecordNotFound(
                f"Organization {organization_id} does not exist."
            )
        return organization_id

    def _commit_user_changes(self, user: User) -> None:
        """Commit, translating unique violations into typed errors."""
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if is_unique_violation(exc, "organization_id"):
                raise Conflict(
                    "Another user is already the admin of this organization."
                ) from exc
            if is_unique_violation(exc, "email"):
                raise DuplicateEmail() from exc
            raise
