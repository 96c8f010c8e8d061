"""
Credential and token helpers: password hashing, JWT issue/verify, and
random secrets for reset tokens and temporary passwords.

Nothing here touches the database.  ``TokenService`` is stateless given
its configuration and is built once per application.
"""

import hashlib
import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import bcrypt
import jwt

from healthadmin.errors import TokenExpired, TokenInvalid

logger = logging.getLogger(__name__)

DEFAULT_HASH_ROUNDS = 10

# bcrypt only reads this many bytes of input; bcrypt 5 rejects longer ones.
MAX_PASSWORD_BYTES = 72

ACCESS = "access"
REFRESH = "refresh"


# -- Passwords -------------------------------------------------------------


def hash_password(plain: str, rounds: int = DEFAULT_HASH_ROUNDS) -> str:
    """Return a salted bcrypt hash of ``plain``."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, password_hash: str) -> bool:
    """
    Check ``plain`` against a stored bcrypt hash.  A malformed hash or
    an over-long password fails the check.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Password could not be checked against the stored hash.")
        return False


def generate_temporary_password(length: int = 14) -> str:
    """
    Return a random password with at least one lowercase letter, one
    uppercase letter, one digit and one symbol.
    """
    symbols = "!@#$%^&*"
    pools = [string.ascii_lowercase, string.ascii_uppercase, string.digits, symbols]
    alphabet = "".join(pools)

    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(alphabet) for _ in range(max(length, 8) - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


# -- Reset tokens ----------------------------------------------------------


def generate_secure_token(nbytes: int = 32) -> str:
    """Return a hex token of ``nbytes`` random bytes."""
    return secrets.token_hex(nbytes)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store reset tokens.  Tokens aren't passwords."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# -- JWT -------------------------------------------------------------------


class TokenService:
    """
    Issue and verify signed access and refresh tokens.

    Each token also carries a ``type`` claim, so even with a
    misconfiguration that reuses one secret an access token is never
    accepted where a refresh token is expected.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenService":
        """Build a service from a Flask ``app.config`` mapping."""
        return cls(
            access_secret=config["JWT_ACCESS_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=timedelta(minutes=config["JWT_ACCESS_TOKEN_EXPIRES_MINUTES"]),
            refresh_ttl=timedelta(days=config["JWT_REFRESH_TOKEN_EXPIRES_DAYS"]),
        )

    def issue_access_token(self, claims: Mapping[str, Any]) -> str:
        """
        Sign a short-lived access token.

        Args:
            claims: ``id``, ``email``, ``roles`` and optionally
                    ``organizationId``.
        """
        payload = {
            "id": claims["id"],
            "email": claims["email"],
            "roles": [getattr(r, "value", r) for r in claims.get("roles", [])],
            "organizationId": claims.get("organizationId"),
        }
        return self._encode(payload, ACCESS, self.access_secret, self.access_ttl)

    def issue_refresh_token(self, claims: Mapping[str, Any]) -> str:
        """Sign a long-lived refresh token carrying only ``id`` and ``email``."""
        payload = {"id": claims["id"], "email": claims["email"]}
        return self._encode(payload, REFRESH, self.refresh_secret, self.refresh_ttl)

    def verify_token(self, token: str, which: str = ACCESS) -> dict[str, Any]:
        """
        Decode and validate a token of the given kind.

        Raises:
            TokenExpired: The signature is valid but ``exp`` has passed.
            TokenInvalid: Malformed token, bad signature or wrong type.
        """
        if which not in (ACCESS, REFRESH):
            raise ValueError(f"Unknown token kind '{which}'.")
        secret = self.access_secret if which == ACCESS else self.refresh_secret

        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired(f"{which.capitalize()} token has expired.") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(f"{which.capitalize()} token is malformed.") from exc

        if claims.get("type") != which:
            raise TokenInvalid(f"{which.capitalize()} token is malformed.")
        return claims

    def _encode(
        self, payload: dict[str, Any], kind: str, secret: str, ttl: timedelta
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {**payload, "type": kind, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, secret, algorithm=self.algorithm)
