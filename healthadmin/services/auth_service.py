"""
Auth service — registration, password login and token refresh.

Login masks the difference between an unknown email and a wrong
password; the true cause is only logged.
"""

import logging
from typing import Any

from healthadmin.errors import (
    AccountInactive,
    AuthenticationRequired,
    DuplicateEmail,
    InvalidCredentials,
    TokenExpired,
    TokenInvalid,
    UserNotFound,
)
from healthadmin.models.user import User
from healthadmin.roles import BASELINE_ROLE
from healthadmin.security import REFRESH, TokenService, verify_password
from healthadmin.services.user_service import UserDirectory

logger = logging.getLogger(__name__)


def token_claims(user: User) -> dict[str, Any]:
    """Claims carried by an access token for ``user``."""
    return {
        "id": user.id,
        "email": user.email,
        "roles": user.roles,
        "organizationId": user.organization_id,
    }


class AuthService:
    def __init__(self, users: UserDirectory, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    def register(self, email: str, password: str, full_name: str | None = None) -> User:
        """
        Public sign-up.  New accounts only get the baseline role.

        Raises:
            DuplicateEmail: The email is already registered.
        """
        if self.users.find_by_email(email) is not None:
            logger.info("Registration refused, email already in use: %s", email)
            raise DuplicateEmail()

        return self.users.create(
            {
                "email": email,
                "password_hash": self.users.hash_password(password),
                "full_name": full_name,
                "roles": [BASELINE_ROLE],
            }
        )

    def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Verify credentials and issue a token pair.

        Returns:
            ``{"accessToken", "refreshToken", "user"}``.

        Raises:
            InvalidCredentials: Unknown email or wrong password.
            AccountInactive:    The account has been deactivated.
        """
        user = self.users.find_by_email(email)
        if user is None:
            logger.info("Login failed: no user with email %s", email)
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("Login failed: wrong password for %s", user.email)
            raise InvalidCredentials()
        if not user.is_active:
            logger.info("Login refused: account %s is inactive", user.email)
            raise AccountInactive(status_code=403)

        logger.info("User %s logged in", user.email)
        return {
            "accessToken": self.tokens.issue_access_token(token_claims(user)),
            "refreshToken": self.tokens.issue_refresh_token(token_claims(user)),
            "user": user,
        }

    def refresh(self, refresh_token: str) -> str:
        """
        Exchange a refresh token for a new access token.

        The user is reloaded so role and organization changes since the
        refresh token was issued are reflected.

        Raises:
            AuthenticationRequired: Bad or expired refresh token, or the
                                    user is gone or inactive.
        """
        try:
            claims = self.tokens.verify_token(refresh_token, REFRESH)
        except (TokenExpired, TokenInvalid) as exc:
            logger.info("Refresh refused: %s", exc.message)
            raise AuthenticationRequired("Invalid or expired refresh token.") from exc
        user = self.users.find_by_id(claims["id"])
        if user is None or not user.is_active:
            logger.warning("Refresh refused for user id %s", claims.get("id"))
            raise AuthenticationRequired("User not found or inactive.")
        return self.tokens.issue_access_token(token_claims(user))

    def profile(self, user_id: str) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user
