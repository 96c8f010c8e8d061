"""
Password reset tokens.

Only the SHA-256 hash of a token is stored.  A token is meaningful while
``used_at`` is NULL and ``expires_at`` is in the future; issuing a new
token for a user forces every earlier unused token to expire.
"""

from healthadmin.extensions import db
from healthadmin.utils import utcnow


class PasswordResetToken(db.Model):
    """Single-use, time-limited capability to rotate one user's password."""

    __tablename__ = "password_reset_tokens"
    __table_args__ = (
        db.UniqueConstraint("token_hash", name="uq_password_reset_tokens_token_hash"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash = db.Column(db.String(64), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    used_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # -- Relationships -----------------------------------------------------
    user = db.relationship("User", back_populates="reset_tokens")

    def __repr__(self) -> str:
        return f"<PasswordResetToken user={self.user_id} used={self.used_at is not None}>"
