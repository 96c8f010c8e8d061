"""
User identity models.

A user can be linked to organizations in two independent ways:

  - ``organization_id``: the user *administers* that organization
    (set on approval, unique per organization).
  - ``staff_organization_id``: the user is *staff* of that organization
    (set by an organization admin).

Role tags live in ``user_role``, one row per tag.  Role = what you can
do.  Organization link = whose data you can see.
"""

import uuid

from flask_login import UserMixin

from healthadmin.extensions import db
from healthadmin.roles import Role, roles_from_storage
from healthadmin.utils import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class User(UserMixin, db.Model):
    """
    Application user record.

    Inherits from ``UserMixin`` so Flask-Login can expose the user
    resolved from the bearer token as ``current_user``.  The
    ``is_active`` column shadows the mixin's property.
    """

    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(100), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_email_verified = db.Column(db.Boolean, nullable=False, default=False)
    mobile_code = db.Column(db.String(10), nullable=True)
    mobile = db.Column(db.String(20), nullable=True)
    phone_code = db.Column(db.String(10), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    address = db.Column(db.String(500), nullable=True)
    pin_code = db.Column(db.String(20), nullable=True)
    employee_id = db.Column(db.String(50), nullable=True)
    department = db.Column(db.String(100), nullable=True)
    organization_id = db.Column(
        db.String(36), db.ForeignKey("organizations.id"), nullable=True
    )
    staff_organization_id = db.Column(
        db.String(36),
        db.ForeignKey("organizations.id"),
        nullable=True,
        index=True,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.UniqueConstraint("organization_id", name="uq_users_organization_id"),
    )

    # -- Relationships -----------------------------------------------------
    role_links = db.relationship(
        "UserRole",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="UserRole.id",
    )
    organization = db.relationship(
        "Organization",
        foreign_keys=[organization_id],
        back_populates="admin_user",
    )
    staff_organization = db.relationship(
        "Organization",
        foreign_keys=[staff_organization_id],
        back_populates="staff_members",
    )
    reset_tokens = db.relationship(
        "PasswordResetToken",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    # ---- Roles -----------------------------------------------------------

    @property
    def roles(self) -> list[Role]:
        """Role members for this user; unknown stored tags are dropped."""
        return roles_from_storage(link.role for link in self.role_links)

    def set_roles(self, tags: list[str]) -> None:
        """
        Replace the user's role rows with ``tags``.

        ``tags`` must already be validated (see ``roles_to_storage``).
        Rows that are kept are not re-inserted.
        """
        existing = {link.role: link for link in self.role_links}
        self.role_links = [
            existing.get(tag) or UserRole(role=tag) for tag in dict.fromkeys(tags)
        ]

    def has_role(self, *roles: Role | str) -> bool:
        """Check if the user holds any of the given roles."""
        wanted = {getattr(r, "value", r) for r in roles}
        return any(link.role in wanted for link in self.role_links)

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class UserRole(db.Model):
    """One role tag held by a user."""

    __tablename__ = "user_role"
    __table_args__ = (
        db.UniqueConstraint("user_id", "role", name="uq_user_role_user_role"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = db.Column(db.String(50), nullable=False, index=True)

    # -- Relationships -----------------------------------------------------
    user = db.relationship("User", back_populates="role_links")

    def __repr__(self) -> str:
        return f"<UserRole user={self.user_id} role={self.role}>"
