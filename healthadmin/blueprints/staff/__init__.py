"""
Staff blueprints — staff management for organization admins.

The same routes are mounted three times, once per admin type:

    /hospital-admin/staff   HOSPITAL_ADMIN  (DOCTOR, NURSE, STAFF)
    /pharma-admin/staff     PHARMA_ADMIN    (STAFF)
    /lab-admin/staff        LAB_ADMIN       (STAFF)

Each copy is bound to its own ``StaffProvisioning`` service and scopes
every request to the caller's organization.
"""

from flask import Blueprint

from healthadmin.roles import Role

# (blueprint name, URL prefix, gate role, services attribute)
STAFF_AREAS = (
    ("hospital_admin", "hospital-admin", Role.HOSPITAL_ADMIN, "hospital_staff"),
    ("pharma_admin", "pharma-admin", Role.PHARMA_ADMIN, "pharma_staff"),
    ("lab_admin", "lab-admin", Role.LAB_ADMIN, "lab_staff"),
)


def staff_blueprints() -> list[tuple[Blueprint, str]]:
    """Build a fresh blueprint per admin type, with its URL prefix."""
    from healthadmin.blueprints.staff.routes import (  # pylint: disable=import-outside-toplevel
        make_staff_blueprint,
    )

    return [
        (make_staff_blueprint(name, role, service_attr), prefix)
        for name, prefix, role, service_attr in STAFF_AREAS
    ]
