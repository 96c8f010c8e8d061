"""
Role-scoped staff provisioning for organization admins.

One ``StaffProvisioning`` instance exists per admin type (hospital,
pharma, lab).  Each is limited to an allow-list of roles it may hand
out, and every read or write is scoped to the caller's organization:

    visible staff = users with staff_organization_id == org_id
                    AND at least one allow-listed role

A staff member outside that set is reported as missing (None), whether
it doesn't exist or belongs to another tenant.
"""

import logging
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from healthadmin.errors import DuplicateEmail, RoleNotAssignable
from healthadmin.models.user import User, UserRole
from healthadmin.pagination import Page, paginate
from healthadmin.roles import BASELINE_ROLE, Role
from healthadmin.security import generate_temporary_password
from healthadmin.services.user_service import UserDirectory

logger = logging.getLogger(__name__)

HOSPITAL_STAFF_ROLES = frozenset({Role.DOCTOR, Role.NURSE, Role.STAFF})
PHARMA_STAFF_ROLES = frozenset({Role.STAFF})
LAB_STAFF_ROLES = frozenset({Role.STAFF})


class StaffProvisioning:
    """
    Args:
        session:          SQLAlchemy session.
        users:            User directory used to create staff accounts.
        label:            Admin type, used in log lines ("hospital").
        assignable_roles: Roles this admin type may assign.
    """

    def __init__(
        self,
        session: Session,
        users: UserDirectory,
        label: str,
        assignable_roles: frozenset[Role],
    ):
        self.session = session
        self.users = users
        self.label = label
        self.assignable_roles = assignable_roles

    def _role_values(self) -> list[str]:
        return sorted(role.value for role in self.assignable_roles)

    def _scoped(self, org_id: str):
        """``select(User)`` restricted to this admin type's visible staff."""
        holds_allowed_role = (
            select(UserRole.id)
            .where(
                UserRole.user_id == User.id,
                UserRole.role.in_(self._role_values()),
            )
            .exists()
        )
        return select(User).where(
            User.staff_organization_id == org_id, holds_allowed_role
        )

    def create_staff(
        self, org_id: str, data: Mapping[str, Any]
    ) -> tuple[User, str | None]:
        """
        Create a staff member in ``org_id``.

        When ``data`` has no password one is generated; it is returned
        here and nowhere else.

        Returns:
            ``(staff, temporary_password)``; the password is None when
            the caller supplied one.

        Raises:
            RoleNotAssignable: ``data["role"]`` is outside the allow-list.
            DuplicateEmail:    The email is already registered.
        """
        role_value = getattr(data.get("role"), "value", data.get("role"))
        if role_value not in self._role_values():
            logger.warning(
                "%s admin tried to assign role %s in organization %s",
                self.label,
                role_value,
                org_id,
            )
            raise RoleNotAssignable(
                f"Role {role_value} is not assignable by a {self.label} admin. "
                f"Allowed roles: {', '.join(self._role_values())}."
            )

        if self.users.find_by_email(data["email"]) is not None:
            raise DuplicateEmail()

        temporary_password = None
        password = data.get("password")
        if not password:
            temporary_password = password = generate_temporary_password()

        staff = self.users.create(
            {
                "email": data["email"],
                "password_hash": self.users.hash_password(password),
                "full_name": data.get("full_name"),
                "roles": [role_value, BASELINE_ROLE],
                "staff_organization_id": org_id,
                "employee_id": data.get("employee_id"),
                "department": data.get("department"),
                "mobile_code": data.get("mobile_code"),
                "mobile": data.get("mobile"),
            }
        )
        logger.info(
            "%s admin created %s staff %s in organization %s",
            self.label,
            role_value,
            staff.email,
            org_id,
        )
        return staff, temporary_password

    def list_staff(self, org_id: str, page: int = 1, limit: int = 10) -> Page:
        """Visible staff of ``org_id``, newest first."""
        stmt = self._scoped(org_id).order_by(User.created_at.desc(), User.id)
        return paginate(self.session, stmt, page, limit)

    def get_staff_by_id(self, staff_id: str, org_id: str) -> User | None:
        stmt = self._scoped(org_id).where(User.id == staff_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def update_status(self, staff_id: str, org_id: str, is_active: bool) -> User | None:
        """Activate or deactivate a visible staff member; None otherwise."""
        staff = self.get_staff_by_id(staff_id, org_id)
        if staff is None:
            logger.info(
                "%s admin status change ignored: staff %s not in organization %s",
                self.label,
                staff_id,
                org_id,
            )
            return None
        return self.users.set_active(staff.id, is_active)
