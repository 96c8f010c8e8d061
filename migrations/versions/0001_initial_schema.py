"""Initial schema: organizations, users, user roles and reset tokens

Organizations and users reference each other: ``users.organization_id``
and ``users.staff_organization_id`` point at ``organizations``.  Role
tags live one per row in ``user_role``.  Reset tokens store only the
SHA-256 hash of the token.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("license_number", sa.String(100), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("contact_person_name", sa.String(100), nullable=False),
        sa.Column("contact_person_email", sa.String(255), nullable=False),
        sa.Column("contact_person_mobile", sa.String(20), nullable=True),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("approved_by", sa.String(36), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "contact_person_email", name="uq_organizations_contact_person_email"
        ),
        sa.CheckConstraint(
            "type IN ('HOSPITAL', 'PHARMACY', 'LAB')", name="ck_organizations_type"
        ),
        sa.CheckConstraint(
            "status IN ('PENDING_VERIFICATION', 'ACTIVE', 'REJECTED', 'SUSPENDED')",
            name="ck_organizations_status",
        ),
    )
    op.create_index("ix_organizations_status", "organizations", ["status"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "is_email_verified", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("mobile_code", sa.String(10), nullable=True),
        sa.Column("mobile", sa.String(20), nullable=True),
        sa.Column("phone_code", sa.String(10), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("pin_code", sa.String(20), nullable=True),
        sa.Column("employee_id", sa.String(50), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column(
            "organization_id",
            sa.String(36),
            sa.ForeignKey("organizations.id", name="fk_users_organization_id"),
            nullable=True,
        ),
        sa.Column(
            "staff_organization_id",
            sa.String(36),
            sa.ForeignKey("organizations.id", name="fk_users_staff_organization_id"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("organization_id", name="uq_users_organization_id"),
    )
    op.create_index(
        "ix_users_staff_organization_id", "users", ["staff_organization_id"]
    )

    op.create_table(
        "user_role",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", name="fk_user_role_user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(50), nullable=False),
        sa.UniqueConstraint("user_id", "role", name="uq_user_role_user_role"),
    )
    op.create_index("ix_user_role_user_id", "user_role", ["user_id"])
    op.create_index("ix_user_role_role", "user_role", ["role"])

    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey(
                "users.id",
                name="fk_password_reset_tokens_user_id",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "token_hash", name="uq_password_reset_tokens_token_hash"
        ),
    )
    op.create_index(
        "ix_password_reset_tokens_user_id", "password_reset_tokens", ["user_id"]
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index("ix_password_reset_tokens_user_id", table_name="password_reset_tokens")
    op.drop_table("password_reset_tokens")
    op.drop_index("ix_user_role_role", table_name="user_role")
    op.drop_index("ix_user_role_user_id", table_name="user_role")
    op.drop_table("user_role")
    op.drop_index("ix_users_staff_organization_id", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_organizations_status", table_name="organizations")
    op.drop_table("organizations")
