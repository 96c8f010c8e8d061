"""
Auth blueprint — registration, password login, tokens and password reset.
"""

from flask import Blueprint

bp = Blueprint("auth", __name__)

# Import routes after blueprint creation to avoid circular imports.
from healthadmin.blueprints.auth import routes  # noqa: E402, F401
