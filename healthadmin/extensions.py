"""
Flask extension instances.

Extensions are created here without binding to an application so that
the application factory can call ``init_app()`` on each one during
``create_app()``.  This avoids circular imports and follows the
standard Flask extension pattern.
"""

from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# -- Database ORM ----------------------------------------------------------
# Models subclass ``db.Model``.  Services never import this handle; they
# receive ``db.session`` through their constructor.
db = SQLAlchemy()

# -- Schema migrations (Alembic via Flask-Migrate) -------------------------
migrate = Migrate()

# -- Bearer-token authentication -------------------------------------------
# The request loader registered in ``create_app`` resolves
# ``current_user`` from the ``Authorization: Bearer`` header.
login_manager = LoginManager()
