"""
Model package — imports all models so Alembic and SQLAlchemy can
discover them automatically when ``flask db`` commands are run.

  - organization.py   -> organizations
  - user.py           -> users, user_role
  - password_reset.py -> password_reset_tokens
"""

from healthadmin.models.organization import Organization  # noqa: F401
from healthadmin.models.password_reset import PasswordResetToken  # noqa: F401
from healthadmin.models.user import User, UserRole  # noqa: F401
