"""
Password reset — single-use, hashed, time-limited tokens.

Only ``hash_token(token)`` is stored.  Issuing a token expires every
earlier unused token of the same user, and consuming a token is a
conditional UPDATE on ``used_at IS NULL`` committed together with the
new password hash.
"""

import logging
from datetime import timedelta

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from healthadmin.errors import (
    AccountInactive,
    EmailDeliveryError,
    TokenExpired,
    TokenInvalid,
    TokenUsed,
    UserNotFound,
)
from healthadmin.models.password_reset import PasswordResetToken
from healthadmin.models.user import User
from healthadmin.security import generate_secure_token, hash_token
from healthadmin.services.email_service import Mailer
from healthadmin.services.user_service import UserDirectory
from healthadmin.utils import utcnow

logger = logging.getLogger(__name__)


class PasswordResetService:
    """
    Args:
        session:         SQLAlchemy session.
        users:           User directory (lookup and password hashing).
        mailer:          Delivers reset links.
        token_bytes:     Random bytes per token.
        expires_minutes: Token lifetime.
    """

    def __init__(
        self,
        session: Session,
        users: UserDirectory,
        mailer: Mailer,
        token_bytes: int = 32,
        expires_minutes: int = 60,
    ):
        self.session = session
        self.users = users
        self.mailer = mailer
        self.token_bytes = token_bytes
        self.expires_minutes = expires_minutes

    # -- Issue -------------------------------------------------------------

    def create_and_save_reset_token(self, email: str) -> tuple[str, User]:
        """
        Issue a reset token for the user with ``email``.

        Returns:
            ``(plain_token, user)``.  The plain token is not stored.

        Raises:
            UserNotFound:    No user with this email.
            AccountInactive: The user is deactivated.
        """
        user = self.users.find_by_email(email)
        if user is None:
            raise UserNotFound()
        if not user.is_active:
            raise AccountInactive()

        now = utcnow()
        self.session.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.user_id == user.id,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > now,
            )
            .values(expires_at=now)
            .execution_options(synchronize_session=False)
        )

        plain_token = generate_secure_token(self.token_bytes)
        self.session.add(
            PasswordResetToken(
                user_id=user.id,
                token_hash=hash_token(plain_token),
                expires_at=now + timedelta(minutes=self.expires_minutes),
            )
        )
        self.session.commit()
        logger.info("Issued password reset token for %s", user.email)
        return plain_token, user

    def request_reset(self, email: str) -> None:
        """
        Issue and email a reset token if ``email`` belongs to an active
        user.  The outcome is only visible in the logs.
        """
        try:
            plain_token, user = self.create_and_save_reset_token(email)
        except UserNotFound:
            logger.info("Password reset requested for unknown email %s", email)
            return
        except AccountInactive:
            logger.info("Password reset requested for inactive account %s", email)
            return

        try:
            self.mailer.send_password_reset(user.email, plain_token, self.expires_minutes)
        except EmailDeliveryError:
            logger.error("Could not deliver password reset email to %s", user.email)

    # -- Consume -----------------------------------------------------------

    def reset_password(self, plain_token: str, new_password: str) -> User:
        """
        Consume ``plain_token`` and set a new password.

        Raises:
            TokenInvalid:    No token with this hash.
            TokenUsed:       Already consumed.
            TokenExpired:    Past its expiry (the token is deleted).
            AccountInactive: The token's owner is deactivated.
        """
        token = self.session.execute(
            select(PasswordResetToken).where(
                PasswordResetToken.token_hash == hash_token(plain_token)
            )
        ).scalar_one_or_none()
        if token is None:
            logger.info("Password reset with unknown token")
            raise TokenInvalid()
        if token.used_at is not None:
            logger.info("Password reset with used token for user %s", token.user_id)
            raise TokenUsed()
        if token.expires_at <= utcnow():
            logger.info("Password reset with expired token for user %s", token.user_id)
            self.session.delete(token)
            self.session.commit()
            raise TokenExpired("Password reset token has expired.")

        user = token.user
        if not user.is_active:
            raise AccountInactive()

        result = self.session.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.id == token.id,
                PasswordResetToken.used_at.is_(None),
            )
            .values(used_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.session.rollback()
            logger.info("Password reset token for user %s consumed concurrently", user.id)
            raise TokenUsed()

        user.password_hash = self.users.hash_password(new_password)
        user.updated_at = utcnow()
        self.session.commit()
        logger.info("Password reset completed for %s", user.email)
        return user

    # -- Maintenance -------------------------------------------------------

    def purge_expired_tokens(self) -> int:
        """Delete used and expired tokens.  Returns the number removed."""
        result = self.session.execute(
            delete(PasswordResetToken)
            .where(
                or_(
                    PasswordResetToken.used_at.is_not(None),
                    PasswordResetToken.expires_at <= utcnow(),
                )
            )
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        logger.info("Purged %d password reset tokens", result.rowcount)
        return result.rowcount
