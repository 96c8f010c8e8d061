"""
Tests for password hashing, temporary passwords and JWT handling.
"""

import string
from datetime import timedelta

import jwt
import pytest

from healthadmin.errors import TokenExpired, TokenInvalid
from healthadmin.roles import Role
from healthadmin.security import (
    ACCESS,
    MAX_PASSWORD_BYTES,
    REFRESH,
    TokenService,
    generate_secure_token,
    generate_temporary_password,
    hash_password,
    hash_token,
    verify_password,
)


def _token_service(**overrides):
    options = {
        "access_secret": "access-secret",
        "refresh_secret": "refresh-secret",
    }
    options.update(overrides)
    return TokenService(**options)


CLAIMS = {
    "id": "user-1",
    "email": "a@b.com",
    "roles": [Role.HOSPITAL_ADMIN, Role.PATIENT],
    "organizationId": "org-1",
}


class TestPasswords:
    """bcrypt hashing and verification."""

    def test_hash_verifies_against_plain_text(self):
        hashed = hash_password("Secret!23", rounds=4)
        assert hashed != "Secret!23"
        assert verify_password("Secret!23", hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("Secret!23", rounds=4)
        assert not verify_password("secret!23", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_malformed_hash_fails_closed(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_longest_accepted_password_round_trips(self):
        password = "A1!" + "x" * (MAX_PASSWORD_BYTES - 3)
        assert verify_password(password, hash_password(password, rounds=4))

    def test_over_long_password_fails_closed(self):
        hashed = hash_password("x" * MAX_PASSWORD_BYTES, rounds=4)
        assert verify_password("x" * (MAX_PASSWORD_BYTES + 12), hashed) is False


class TestTemporaryPasswords:
    def test_contains_every_character_class(self):
        for _ in range(20):
            password = generate_temporary_password()
            assert len(password) >= 12
            assert any(c in string.ascii_lowercase for c in password)
            assert any(c in string.ascii_uppercase for c in password)
            assert any(c in string.digits for c in password)
            assert any(not c.isalnum() for c in password)

    def test_passwords_differ(self):
        assert generate_temporary_password() != generate_temporary_password()


class TestResetTokens:
    def test_token_length_follows_byte_count(self):
        assert len(generate_secure_token(32)) == 64

    def test_hash_is_stable_sha256_hex(self):
        token = generate_secure_token()
        assert hash_token(token) == hash_token(token)
        assert len(hash_token(token)) == 64
        assert hash_token(token) != token


class TestTokenService:
    """Access and refresh JWTs."""

    def test_access_token_round_trip(self):
        service = _token_service()
        claims = service.verify_token(service.issue_access_token(CLAIMS), ACCESS)
        assert claims["id"] == "user-1"
        assert claims["roles"] == ["HOSPITAL_ADMIN", "PATIENT"]
        assert claims["organizationId"] == "org-1"
        assert claims["type"] == ACCESS

    def test_refresh_token_carries_narrow_claims(self):
        service = _token_service()
        claims = service.verify_token(service.issue_refresh_token(CLAIMS), REFRESH)
        assert claims["id"] == "user-1"
        assert claims["email"] == "a@b.com"
        assert "roles" not in claims
        assert "organizationId" not in claims

    def test_refresh_token_rejected_as_access_token(self):
        service = _token_service()
        with pytest.raises(TokenInvalid):
            service.verify_token(service.issue_refresh_token(CLAIMS), ACCESS)

    def test_access_token_rejected_as_refresh_token(self):
        service = _token_service()
        with pytest.raises(TokenInvalid):
            service.verify_token(service.issue_access_token(CLAIMS), REFRESH)

    def test_type_claim_checked_even_with_shared_secret(self):
        service = _token_service(refresh_secret="access-secret")
        with pytest.raises(TokenInvalid):
            service.verify_token(service.issue_refresh_token(CLAIMS), ACCESS)

    def test_expired_token(self):
        service = _token_service(access_ttl=timedelta(seconds=-1))
        with pytest.raises(TokenExpired):
            service.verify_token(service.issue_access_token(CLAIMS), ACCESS)

    def test_bad_signature(self):
        token = _token_service(access_secret="other").issue_access_token(CLAIMS)
        with pytest.raises(TokenInvalid):
            _token_service().verify_token(token, ACCESS)

    def test_garbage_token(self):
        with pytest.raises(TokenInvalid):
            _token_service().verify_token("not.a.jwt", ACCESS)

    def test_token_without_expiry_is_invalid(self):
        token = jwt.encode({"id": "x", "type": ACCESS}, "access-secret", algorithm="HS256")
        with pytest.raises(TokenInvalid):
            _token_service().verify_token(token, ACCESS)
