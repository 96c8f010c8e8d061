"""
Routes for the main blueprint — health check.
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from healthadmin.blueprints.main import bp
from healthadmin.extensions import db

logger = logging.getLogger(__name__)


@bp.route("/health")
def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns 200 with ``{"status": "UP"}`` while the database answers,
    503 with ``"DOWN"`` otherwise.
    """
    try:
        db.session.execute(text("SELECT 1"))
        return {"status": "UP", "database": "UP"}, 200
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Health check could not reach the database: %s", exc)
        return {"status": "DOWN", "database": "DOWN"}, 503
