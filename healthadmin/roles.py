"""
Role and organization enumerations, plus the storage <-> API role mapping.

Role tags are stored as plain strings in ``user_role.role``.  Reading is
lenient (unknown tags are dropped with a warning so one bad row cannot
break a listing); writing is strict (unknown tags raise ``InvalidRole``).
"""

import enum
import logging
from typing import Iterable

from healthadmin.errors import InvalidRole

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    PATIENT = "PATIENT"
    HOSPITAL_ADMIN = "HOSPITAL_ADMIN"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    STAFF = "STAFF"
    PHARMA_ADMIN = "PHARMA_ADMIN"
    LAB_ADMIN = "LAB_ADMIN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"


# Every created user gets this role alongside any assigned one.
BASELINE_ROLE = Role.PATIENT


class OrganizationType(str, enum.Enum):
    HOSPITAL = "HOSPITAL"
    PHARMACY = "PHARMACY"
    LAB = "LAB"


class OrganizationStatus(str, enum.Enum):
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


# Admin role provisioned when an organization of each type is approved.
ADMIN_ROLE_BY_ORGANIZATION_TYPE: dict[str, Role] = {
    OrganizationType.HOSPITAL.value: Role.HOSPITAL_ADMIN,
    OrganizationType.PHARMACY.value: Role.PHARMA_ADMIN,
    OrganizationType.LAB.value: Role.LAB_ADMIN,
}


def roles_from_storage(values: Iterable[str]) -> list[Role]:
    """Map stored role tags to ``Role`` members, dropping unknown tags."""
    roles = []
    for value in values:
        try:
            roles.append(Role(value))
        except ValueError:
            logger.warning("Unmapped role found in storage: %s", value)
    return roles


def roles_to_storage(values: Iterable[str | Role]) -> list[str]:
    """
    Map API role values to stored tags, de-duplicated in order.

    Raises:
        InvalidRole: If any value is not a known role.
    """
    tags: list[str] = []
    for value in values:
        raw = value.value if isinstance(value, Role) else value
        try:
            tag = Role(raw).value
        except ValueError as exc:
            raise InvalidRole(
                f"Invalid application role: {raw} cannot be mapped to a "
                "database role."
            ) from exc
        if tag not in tags:
            tags.append(tag)
    return tags
