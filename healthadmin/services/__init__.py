"""
Service layer package.

Each service module encapsulates one domain of business logic.
Services are the only layer that interacts with models; routes
never access the database directly.

Services receive their session explicitly.  ``create_app`` builds one
``Services`` container bound to ``db.session`` and routes fetch it with
``get_services()``::

    from healthadmin.services import get_services
    approval = get_services().organizations.approve(org_id, current_user.id)
"""

from dataclasses import dataclass
from typing import Any, Mapping

from flask import current_app
from sqlalchemy.orm import Session

from healthadmin.security import TokenService
from healthadmin.services.auth_service import AuthService
from healthadmin.services.email_service import Mailer
from healthadmin.services.organization_service import OrganizationLifecycle
from healthadmin.services.password_reset_service import PasswordResetService
from healthadmin.services.staff_service import (
    HOSPITAL_STAFF_ROLES,
    LAB_STAFF_ROLES,
    PHARMA_STAFF_ROLES,
    StaffProvisioning,
)
from healthadmin.services.user_service import UserDirectory

EXTENSION_KEY = "healthadmin.services"


@dataclass
class Services:
    tokens: TokenService
    mailer: Mailer
    users: UserDirectory
    auth: AuthService
    organizations: OrganizationLifecycle
    password_reset: PasswordResetService
    hospital_staff: StaffProvisioning
    pharma_staff: StaffProvisioning
    lab_staff: StaffProvisioning


def build_services(
    session: Session, config: Mapping[str, Any], mailer: Mailer | None = None
) -> Services:
    """Wire every service to ``session`` using values from ``config``."""
    tokens = TokenService.from_config(config)
    mailer = mailer or Mailer.from_config(config)
    users = UserDirectory(session, hash_rounds=config["PASSWORD_HASH_ROUNDS"])
    return Services(
        tokens=tokens,
        mailer=mailer,
        users=users,
        auth=AuthService(users, tokens),
        organizations=OrganizationLifecycle(session, users, mailer),
        password_reset=PasswordResetService(
            session,
            users,
            mailer,
            token_bytes=config["PASSWORD_RESET_TOKEN_BYTES"],
            expires_minutes=config["PASSWORD_RESET_TOKEN_EXPIRES_MINUTES"],
        ),
        hospital_staff=StaffProvisioning(session, users, "hospital", HOSPITAL_STAFF_ROLES),
        pharma_staff=StaffProvisioning(session, users, "pharma", PHARMA_STAFF_ROLES),
        lab_staff=StaffProvisioning(session, users, "lab", LAB_STAFF_ROLES),
    )


def get_services() -> Services:
    """Return the container registered on the current app."""
    return current_app.extensions[EXTENSION_KEY]
