"""
Routes shared by the hospital, pharma and lab admin blueprints.

All routes require the blueprint's admin role and an organization on
the caller.  A staff member outside the caller's organization is
reported as not found.
"""

import logging

from flask import Blueprint
from flask_login import current_user, login_required

from healthadmin.decorators import organization_required, role_required
from healthadmin.errors import EmailDeliveryError, NotFound
from healthadmin.responses import success
from healthadmin.roles import Role
from healthadmin.schemas import (
    CreateStaffRequest,
    PageQuery,
    UpdateStaffStatusRequest,
    parse_body,
    parse_query,
)
from healthadmin.services import get_services
from healthadmin.services.user_service import to_response

logger = logging.getLogger(__name__)

STAFF_NOT_FOUND = "Staff member not found or does not belong to your organization."


def make_staff_blueprint(name: str, admin_role: Role, service_attr: str) -> Blueprint:
    """
    Build a staff blueprint gated on ``admin_role`` and backed by the
    ``Services`` attribute ``service_attr``.
    """
    bp = Blueprint(name, __name__)

    def staff_service():
        return getattr(get_services(), service_attr)

    @bp.route("/staff", methods=["POST"])
    @login_required
    @role_required(admin_role)
    @organization_required
    def create_staff():
        """
        Create a staff member.  A generated password is emailed and also
        returned once as ``temporaryPassword``.
        """
        body = parse_body(CreateStaffRequest)
        org_id = current_user.organization_id
        staff, temporary_password = staff_service().create_staff(
            org_id, body.model_dump(mode="json")
        )

        data = {"staffMember": to_response(staff)}
        if temporary_password:
            data["temporaryPassword"] = temporary_password
            organization = current_user.organization
            try:
                get_services().mailer.send_staff_welcome(
                    staff.email,
                    organization.name if organization else "your organization",
                    temporary_password,
                )
            except EmailDeliveryError:
                logger.error("Could not deliver welcome email to %s", staff.email)

        return success(data, message="Staff member created successfully.", status_code=201)

    @bp.route("/staff")
    @login_required
    @role_required(admin_role)
    @organization_required
    def list_staff():
        query = parse_query(PageQuery)
        page = staff_service().list_staff(
            current_user.organization_id, query.page, query.limit
        )
        return success([to_response(s) for s in page.items], meta=page.meta())

    @bp.route("/staff/<staff_user_id>")
    @login_required
    @role_required(admin_role)
    @organization_required
    def get_staff(staff_user_id):
        staff = staff_service().get_staff_by_id(
            staff_user_id, current_user.organization_id
        )
        if staff is None:
            raise NotFound(STAFF_NOT_FOUND)
        return success(to_response(staff))

    @bp.route("/staff/<staff_user_id>/status", methods=["PATCH"])
    @login_required
    @role_required(admin_role)
    @organization_required
    def update_staff_status(staff_user_id):
        body = parse_body(UpdateStaffStatusRequest)
        staff = staff_service().update_status(
            staff_user_id, current_user.organization_id, body.is_active
        )
        if staff is None:
            raise NotFound(STAFF_NOT_FOUND)
        state = "activated" if staff.is_active else "deactivated"
        return success(to_response(staff), message=f"Staff member {state} successfully.")

    return bp
