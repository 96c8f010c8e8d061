"""
Routes for the organization blueprint.
"""

from healthadmin.blueprints.organization import bp
from healthadmin.responses import success
from healthadmin.schemas import OrganizationRegistrationRequest, parse_body
from healthadmin.services import get_services
from healthadmin.services.organization_service import to_response


@bp.route("/register", methods=["POST"])
def register_organization():
    """
    Register an organization for review.  It stays
    ``PENDING_VERIFICATION`` until a system administrator approves it.
    """
    body = parse_body(OrganizationRegistrationRequest)
    org = get_services().organizations.register(body.model_dump(mode="json"))
    return success(
        to_response(org),
        message="Organization registration submitted. Awaiting verification.",
        status_code=201,
    )
