"""
Organization blueprint — public registration of hospitals, pharmacies
and labs.
"""

from flask import Blueprint

bp = Blueprint("organization", __name__)

# Import routes after blueprint creation to avoid circular imports.
from healthadmin.blueprints.organization import routes  # noqa: E402, F401
