"""
Authorization decorators for route-level access control.

These decorators enforce role and tenant checks on blueprint routes.
They are used in combination with Flask-Login's ``@login_required``,
which resolves the user from the bearer token:

    @bp.route('/users')
    @login_required
    @role_required(Role.SYSTEM_ADMIN)
    def list_users():
        ...

    @bp.route('/staff')
    @login_required
    @role_required(Role.HOSPITAL_ADMIN)
    @organization_required
    def list_staff():
        ...
"""

import logging
from functools import wraps

from flask import request
from flask_login import current_user

from healthadmin.errors import AuthenticationRequired, PermissionDenied
from healthadmin.roles import Role

logger = logging.getLogger(__name__)


def role_required(*roles: Role):
    """
    Decorator that restricts access to users holding one of ``roles``.

    Usage::

        @role_required(Role.PHARMA_ADMIN)
        def protected_view():
            ...
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            # current_user is guaranteed authenticated by @login_required.
            if not current_user.is_authenticated:
                raise AuthenticationRequired()
            if not current_user.has_role(*roles):
                logger.warning(
                    "Access denied: user %s (%s) with roles %s "
                    "attempted %s %s (requires one of: %s)",
                    current_user.id,
                    current_user.email,
                    [role.value for role in current_user.roles],
                    request.method,
                    request.path,
                    ", ".join(role.value for role in roles),
                )
                raise PermissionDenied()
            return func(*args, **kwargs)

        return wrapper

    return decorator


def organization_required(func):
    """
    Decorator that requires the current user to administer an
    organization.  Staff routes scope every query to that organization.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthenticationRequired()
        if not current_user.organization_id:
            logger.warning(
                "Access denied: admin %s has no organization for %s %s",
                current_user.email,
                request.method,
                request.path,
            )
            raise PermissionDenied("User is not associated with an organization.")
        return func(*args, **kwargs)

    return wrapper
