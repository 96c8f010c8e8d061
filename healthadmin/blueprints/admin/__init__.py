"""
Admin blueprint — user management and organization review.
"""

from flask import Blueprint

bp = Blueprint("admin", __name__)

from healthadmin.blueprints.admin import routes  # noqa: E402, F401
