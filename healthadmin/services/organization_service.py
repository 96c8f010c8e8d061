"""
Organization lifecycle — public registration and system-admin review.

State machine::

    PENDING_VERIFICATION --approve--> ACTIVE
    PENDING_VERIFICATION --reject---> REJECTED

Approve and reject only act on rows that are still pending, using a
conditional UPDATE, so a second review of the same organization is a
no-op that returns None.  Approval creates the organization admin and
activates the organization in one transaction.
"""

import logging
from typing import Any, Mapping

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from healthadmin.errors import (
    AdminProvisioningConflict,
    DuplicateContact,
    DuplicateEmail,
    EmailDeliveryError,
    OrganizationConfigurationError,
    is_unique_violation,
)
from healthadmin.models.organization import Organization
from healthadmin.pagination import Page, paginate
from healthadmin.roles import (
    ADMIN_ROLE_BY_ORGANIZATION_TYPE,
    BASELINE_ROLE,
    OrganizationStatus,
)
from healthadmin.security import generate_temporary_password
from healthadmin.services.email_service import Mailer
from healthadmin.services.user_service import UserDirectory
from healthadmin.services.user_service import to_response as user_to_response
from healthadmin.utils import normalize_email, utcnow

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Rejected by system administrator."

_PENDING = OrganizationStatus.PENDING_VERIFICATION.value


def to_response(org: Organization | None) -> dict[str, Any] | None:
    if org is None:
        return None
    admin = org.admin_user
    return {
        "id": org.id,
        "name": org.name,
        "type": org.type,
        "licenseNumber": org.license_number,
        "address": org.address,
        "contactPersonName": org.contact_person_name,
        "contactPersonEmail": org.contact_person_email,
        "contactPersonMobile": org.contact_person_mobile,
        "status": org.status,
        "rejectionReason": org.rejection_reason,
        "approvedBy": org.approved_by,
        "approvedAt": org.approved_at.isoformat() if org.approved_at else None,
        "adminUserId": admin.id if admin else None,
        "adminUser": user_to_response(admin),
        "createdAt": org.created_at.isoformat() if org.created_at else None,
        "updatedAt": org.updated_at.isoformat() if org.updated_at else None,
    }


class OrganizationLifecycle:
    """
    Args:
        session: SQLAlchemy session.
        users:   User directory used to provision the organization admin.
        mailer:  Delivers the admin's temporary password.
    """

    def __init__(self, session: Session, users: UserDirectory, mailer: Mailer):
        self.session = session
        self.users = users
        self.mailer = mailer

    def get(self, org_id: str) -> Organization | None:
        return self.session.get(Organization, org_id)

    def register(self, data: Mapping[str, Any]) -> Organization:
        """
        Create a pending organization.

        Raises:
            DuplicateContact: Another organization, in any status, already
                              uses this contact email.
        """
        contact_email = normalize_email(data["contact_person_email"])
        existing = self.session.execute(
            select(Organization.id).where(
                Organization.contact_person_email == contact_email
            )
        ).first()
        if existing is not None:
            logger.info("Organization registration refused, contact %s in use", contact_email)
            raise DuplicateContact()

        org = Organization(
            name=data["name"],
            type=data["type"],
            license_number=data.get("license_number"),
            address=data.get("address"),
            contact_person_name=data["contact_person_name"],
            contact_person_email=contact_email,
            contact_person_mobile=data.get("contact_person_mobile"),
            status=_PENDING,
        )
        self.session.add(org)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if is_unique_violation(exc, "contact_person_email"):
                raise DuplicateContact() from exc
            raise

        logger.info("Registered organization %s (%s), pending review", org.name, org.type)
        return org

    def list_pending(self, page: int = 1, limit: int = 10) -> Page:
        """Pending organizations, oldest first."""
        stmt = (
            select(Organization)
            .where(Organization.status == _PENDING)
            .order_by(Organization.created_at.asc(), Organization.id)
        )
        return paginate(self.session, stmt, page, limit)

    def approve(
        self, org_id: str, approver_id: str
    ) -> tuple[Organization, str] | None:
        """
        Activate a pending organization and provision its admin user.

        The admin's temporary password is mailed and also returned here,
        the only place it exists in clear.

        Returns:
            ``(organization, temporary_password)``, or None if the
            organization is missing or no longer pending.

        Raises:
            OrganizationConfigurationError: No admin role for the type.
            AdminProvisioningConflict:      The contact email already
                                            belongs to a user.  Nothing
                                            is changed.
        """
        org = self.session.execute(
            select(Organization).where(
                Organization.id == org_id, Organization.status == _PENDING
            )
        ).scalar_one_or_none()
        if org is None:
            logger.info("Approve skipped: organization %s missing or not pending", org_id)
            return None

        admin_role = ADMIN_ROLE_BY_ORGANIZATION_TYPE.get(org.type)
        if admin_role is None:
            logger.error("No admin role configured for organization type %s", org.type)
            raise OrganizationConfigurationError()

        contact_email = org.contact_person_email
        temporary_password = generate_temporary_password()
        try:
            admin = self.users.create(
                {
                    "email": contact_email,
                    "password_hash": self.users.hash_password(temporary_password),
                    "full_name": org.contact_person_name,
                    "roles": [admin_role, BASELINE_ROLE],
                    "organization_id": org.id,
                },
                commit=False,
            )
        except DuplicateEmail as exc:
            self.session.rollback()
            logger.warning(
                "Approve of %s failed: contact %s is already a user",
                org_id,
                contact_email,
            )
            raise AdminProvisioningConflict() from exc

        result = self.session.execute(
            update(Organization)
            .where(Organization.id == org_id, Organization.status == _PENDING)
            .values(
                status=OrganizationStatus.ACTIVE.value,
                approved_by=approver_id,
                approved_at=utcnow(),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Reviewed concurrently; drop the admin user with it.
            self.session.rollback()
            logger.info("Approve lost race for organization %s", org_id)
            return None

        self.session.commit()
        self.session.refresh(org)
        logger.info(
            "Organization %s approved by %s; admin %s created as %s",
            org_id,
            approver_id,
            admin.email,
            admin_role.value,
        )

        try:
            self.mailer.send_organization_approved(
                admin.email, org.name, temporary_password
            )
        except EmailDeliveryError:
            logger.error("Could not deliver admin credentials for organization %s", org_id)
        return org, temporary_password

    def reject(
        self, org_id: str, approver_id: str, reason: str | None = None
    ) -> Organization | None:
        """Reject a pending organization.  None if missing or not pending."""
        result = self.session.execute(
            update(Organization)
            .where(Organization.id == org_id, Organization.status == _PENDING)
            .values(
                status=OrganizationStatus.REJECTED.value,
                rejection_reason=reason or DEFAULT_REJECTION_REASON,
                approved_by=approver_id,
                approved_at=utcnow(),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.session.rollback()
            logger.info("Reject skipped: organization %s missing or not pending", org_id)
            return None

        self.session.commit()
        logger.info("Organization %s rejected by %s", org_id, approver_id)
        return self.get(org_id)
