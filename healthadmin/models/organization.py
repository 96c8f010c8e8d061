"""
Tenant model: hospitals, pharmacies and labs.

Organizations are created by public registration in
``PENDING_VERIFICATION`` and move to ``ACTIVE`` or ``REJECTED`` when a
system administrator reviews them.  ``SUSPENDED`` is only reachable by a
direct administrative update.
"""

import uuid

from healthadmin.extensions import db
from healthadmin.roles import OrganizationStatus, OrganizationType
from healthadmin.utils import utcnow


def _sql_values(members) -> str:
    return ", ".join(f"'{member.value}'" for member in members)


class Organization(db.Model):
    """
    A tenant that owns a set of staff users.

    ``type`` is fixed at creation.  The admin user is the single
    ``User`` whose ``organization_id`` points here; there is no column
    on this side of the link.
    """

    __tablename__ = "organizations"
    __table_args__ = (
        db.UniqueConstraint(
            "contact_person_email", name="uq_organizations_contact_person_email"
        ),
        db.CheckConstraint(
            f"type IN ({_sql_values(OrganizationType)})", name="ck_organizations_type"
        ),
        db.CheckConstraint(
            f"status IN ({_sql_values(OrganizationStatus)})",
            name="ck_organizations_status",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    license_number = db.Column(db.String(100), nullable=True)
    address = db.Column(db.String(500), nullable=True)
    contact_person_name = db.Column(db.String(100), nullable=False)
    contact_person_email = db.Column(db.String(255), nullable=False)
    contact_person_mobile = db.Column(db.String(20), nullable=True)
    status = db.Column(
        db.String(30),
        nullable=False,
        default=OrganizationStatus.PENDING_VERIFICATION.value,
        index=True,
    )
    rejection_reason = db.Column(db.String(500), nullable=True)
    # Set by both approve and reject: the acting system admin and time.
    approved_by = db.Column(db.String(36), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # -- Relationships -----------------------------------------------------
    admin_user = db.relationship(
        "User",
        foreign_keys="User.organization_id",
        back_populates="organization",
        uselist=False,
    )
    staff_members = db.relationship(
        "User",
        foreign_keys="User.staff_organization_id",
        back_populates="staff_organization",
        lazy="dynamic",
    )

    @property
    def admin_user_id(self) -> str | None:
        return self.admin_user.id if self.admin_user else None

    def __repr__(self) -> str:
        return f"<Organization {self.name} ({self.type}) status={self.status}>"
