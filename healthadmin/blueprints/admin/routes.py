"""
Routes for the admin blueprint — user management and organization
review.

All routes require the ``SYSTEM_ADMIN`` role.
"""

from flask_login import current_user, login_required

from healthadmin.blueprints.admin import bp
from healthadmin.decorators import role_required
from healthadmin.errors import NotFound, PermissionDenied, UserNotFound
from healthadmin.responses import success
from healthadmin.roles import Role
from healthadmin.schemas import (
    PageQuery,
    RejectOrganizationRequest,
    UpdateUserRequest,
    UpdateUserRolesRequest,
    UpdateUserStatusRequest,
    parse_body,
    parse_query,
)
from healthadmin.services import get_services
from healthadmin.services.organization_service import to_response as organization_response
from healthadmin.services.user_service import to_response as user_response

ORGANIZATION_NOT_PENDING = "Organization not found or not pending verification."


# =========================================================================
# User Management
# =========================================================================


@bp.route("/users")
@login_required
@role_required(Role.SYSTEM_ADMIN)
def list_users():
    query = parse_query(PageQuery)
    page = get_services().users.list_users(query.page, query.limit)
    return success([user_response(u) for u in page.items], meta=page.meta())


@bp.route("/users/<user_id>")
@login_required
@role_required(Role.SYSTEM_ADMIN)
def get_user(user_id):
    user = get_services().users.find_by_id(user_id)
    if user is None:
        raise UserNotFound()
    return success(user_response(user))


@bp.route("/users/<user_id>", methods=["PATCH"])
@login_required
@role_required(Role.SYSTEM_ADMIN)
def update_user(user_id):
    """Partial update; fields sent as ``null`` are cleared."""
    body = parse_body(UpdateUserRequest)
    user = get_services().users.update(user_id, body.changes())
    if user is None:
        raise UserNotFound()
    return success(user_response(user), message="User updated successfully.")


@bp.route("/users/<user_id>", methods=["DELETE"])
@login_required
@role_required(Role.SYSTEM_ADMIN)
def delete_user(user_id):
    if user_id == current_user.id:
        raise PermissionDenied("You cannot delete your own account.")
    user = get_services().users.delete(user_id)
    if user is None:
        raise UserNotFound()
    return success(message="User deleted successfully.")


@bp.route("/users/<user_id>/status", methods=["PATCH"])
@login_required
@role_required(Role.SYSTEM_ADMIN)
def update_user_status(user_id):
    body = parse_body(UpdateUserStatusRequest)
    user = get_services().users.set_active(user_id, body.is_active)
    if user is None:
        raise UserNotFound()
    state = "activated" if user.is_active else "deactivated"
    return success(user_response(user), message=f"User {state} successfully.")


@bp.route("/users/<user_id>/roles", methods=["PATCH"])
@login_required
@role_required(Role.SYSTEM_ADMIN)
def update_user_roles(user_id):
    body = parse_body(UpdateUserRolesRequest)
    user = get_services().users.set_roles(user_id, body.roles)
    if user is None:
        raise UserNotFound()
    return success(user_response(user), message="User roles updated successfully.")


# =========================================================================
# Organization Review
# =========================================================================


@bp.route("/organizations/pending")
@login_required
@role_required(Role.SYSTEM_ADMIN)
def list_pending_organizations():
    """Review queue, oldest registration first."""
    query = parse_query(PageQuery)
    page = get_services().organizations.list_pending(query.page, query.limit)
    return success([organization_response(o) for o in page.items], meta=page.meta())


@bp.route("/organizations/<org_id>/approve", methods=["PATCH"])
@login_required
@role_required(Role.SYSTEM_ADMIN)
def approve_organization(org_id):
    """
    Activate a pending organization and create its admin account.  The
    admin's temporary password is emailed; it is only returned as
    ``temporaryPassword`` when outbound email is disabled.
    """
    services = get_services()
    approval = services.organizations.approve(org_id, current_user.id)
    if approval is None:
        raise NotFound(ORGANIZATION_NOT_PENDING)

    org, temporary_password = approval
    data = organization_response(org)
    if not services.mailer.enabled:
        data["temporaryPassword"] = temporary_password
    return success(data, message="Organization approved and admin user created.")


@bp.route("/organizations/<org_id>/reject", methods=["PATCH"])
@login_required
@role_required(Role.SYSTEM_ADMIN)
def reject_organization(org_id):
    body = parse_body(RejectOrganizationRequest)
    org = get_services().organizations.reject(
        org_id, current_user.id, body.rejection_reason
    )
    if org is None:
        raise NotFound(ORGANIZATION_NOT_PENDING)
    return success(organization_response(org), message="Organization rejected.")
