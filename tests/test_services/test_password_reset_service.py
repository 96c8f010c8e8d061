"""
Tests for password reset tokens: issue, single use, expiry and
invalidation of earlier tokens.
"""

from datetime import timedelta

import pytest

from healthadmin.errors import (
    AccountInactive,
    TokenExpired,
    TokenInvalid,
    TokenUsed,
    UserNotFound,
)
from healthadmin.models.password_reset import PasswordResetToken
from healthadmin.security import hash_token, verify_password
from healthadmin.utils import utcnow

NEW_PASSWORD = "N3w!Password"


class TestIssue:
    def test_only_hash_is_stored(self, services, make_user, db_session):
        make_user("u@example.com")
        plain, _ = services.password_reset.create_and_save_reset_token("U@example.com")

        stored = db_session.query(PasswordResetToken).one()
        assert stored.token_hash == hash_token(plain)
        assert stored.token_hash != plain
        assert stored.used_at is None
        assert stored.expires_at > utcnow()

    def test_unknown_email(self, services):
        with pytest.raises(UserNotFound):
            services.password_reset.create_and_save_reset_token("nobody@example.com")

    def test_inactive_user(self, services, make_user):
        user = make_user("u@example.com")
        services.users.set_active(user.id, False)
        with pytest.raises(AccountInactive):
            services.password_reset.create_and_save_reset_token("u@example.com")

    def test_request_reset_emails_link(self, services, make_user, mailer):
        make_user("u@example.com")
        services.password_reset.request_reset("u@example.com")
        assert len(mailer.outbox) == 1
        assert mailer.outbox[0]["to"] == "u@example.com"
        assert "http://client.test/reset-password?token=" in mailer.outbox[0]["text"]

    def test_request_reset_is_silent_for_unknown_and_inactive(self, services, make_user, mailer):
        user = make_user("off@example.com")
        services.users.set_active(user.id, False)

        assert services.password_reset.request_reset("nobody@example.com") is None
        assert services.password_reset.request_reset("off@example.com") is None
        assert mailer.outbox == []


class TestConsume:
    def test_reset_rotates_password_and_marks_used(self, services, make_user, db_session):
        user = make_user("u@example.com")
        plain, _ = services.password_reset.create_and_save_reset_token("u@example.com")

        services.password_reset.reset_password(plain, NEW_PASSWORD)

        assert verify_password(NEW_PASSWORD, services.users.find_by_id(user.id).password_hash)
        assert db_session.query(PasswordResetToken).one().used_at is not None

    def test_second_use_fails(self, services, make_user):
        make_user("u@example.com")
        plain, _ = services.password_reset.create_and_save_reset_token("u@example.com")
        services.password_reset.reset_password(plain, NEW_PASSWORD)

        with pytest.raises(TokenUsed):
            services.password_reset.reset_password(plain, "An0ther!Password")

    def test_unknown_token(self, services):
        with pytest.raises(TokenInvalid):
            services.password_reset.reset_password("deadbeef", NEW_PASSWORD)

    def test_expired_token_fails_and_is_deleted(self, services, make_user, db_session):
        make_user("u@example.com")
        plain, _ = services.password_reset.create_and_save_reset_token("u@example.com")
        token = db_session.query(PasswordResetToken).one()
        token.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        with pytest.raises(TokenExpired):
            services.password_reset.reset_password(plain, NEW_PASSWORD)
        assert db_session.query(PasswordResetToken).count() == 0

    def test_second_request_invalidates_first(self, services, make_user):
        make_user("u@example.com")
        first, _ = services.password_reset.create_and_save_reset_token("u@example.com")
        second, _ = services.password_reset.create_and_save_reset_token("u@example.com")

        with pytest.raises(TokenExpired):
            services.password_reset.reset_password(first, NEW_PASSWORD)
        services.password_reset.reset_password(second, NEW_PASSWORD)

    def test_owner_deactivated_after_issue(self, services, make_user):
        user = make_user("u@example.com")
        plain, _ = services.password_reset.create_and_save_reset_token("u@example.com")
        services.users.set_active(user.id, False)

        with pytest.raises(AccountInactive):
            services.password_reset.reset_password(plain, NEW_PASSWORD)


class TestPurge:
    def test_purge_removes_used_and_expired_only(self, services, make_user, db_session):
        make_user("a@example.com")
        make_user("b@example.com")
        make_user("c@example.com")
        used, _ = services.password_reset.create_and_save_reset_token("a@example.com")
        services.password_reset.reset_password(used, NEW_PASSWORD)
        services.password_reset.create_and_save_reset_token("b@example.com")
        live, _ = services.password_reset.create_and_save_reset_token("c@example.com")

        expired = (
            db_session.query(PasswordResetToken)
            .filter(PasswordResetToken.token_hash != hash_token(live))
            .filter(PasswordResetToken.used_at.is_(None))
            .one()
        )
        expired.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert services.password_reset.purge_expired_tokens() == 2
        remaining = db_session.query(PasswordResetToken).one()
        assert remaining.token_hash == hash_token(live)
