"""
Tests for registration, login and token refresh.
"""

import pytest

from healthadmin.errors import (
    AccountInactive,
    AuthenticationRequired,
    DuplicateEmail,
    InvalidCredentials,
)
from healthadmin.roles import Role
from healthadmin.security import ACCESS, REFRESH


class TestRegister:
    def test_registered_user_gets_baseline_role_only(self, services):
        user = services.auth.register("Patient@Example.com", "Passw0rd!", "Pat")
        assert user.email == "patient@example.com"
        assert user.roles == [Role.PATIENT]
        assert user.is_active is True
        assert user.is_email_verified is False

    def test_register_duplicate(self, services):
        services.auth.register("p@example.com", "Passw0rd!")
        with pytest.raises(DuplicateEmail):
            services.auth.register("P@example.com", "Passw0rd!")


class TestLogin:
    def test_login_returns_token_pair(self, services, make_user, user_password):
        user = make_user("doc@example.com", roles=[Role.DOCTOR, Role.PATIENT])
        result = services.auth.login("DOC@example.com", user_password)

        access = services.tokens.verify_token(result["accessToken"], ACCESS)
        refresh = services.tokens.verify_token(result["refreshToken"], REFRESH)
        assert access["id"] == user.id
        assert access["roles"] == ["DOCTOR", "PATIENT"]
        assert refresh["id"] == user.id
        assert result["user"].id == user.id

    def test_unknown_email_and_wrong_password_look_the_same(self, services, make_user, user_password):
        make_user("doc@example.com")
        with pytest.raises(InvalidCredentials) as unknown:
            services.auth.login("nobody@example.com", user_password)
        with pytest.raises(InvalidCredentials) as wrong:
            services.auth.login("doc@example.com", "wrong-password")
        assert unknown.value.message == wrong.value.message

    def test_inactive_account(self, services, make_user, user_password):
        user = make_user("off@example.com")
        services.users.set_active(user.id, False)
        with pytest.raises(AccountInactive):
            services.auth.login("off@example.com", user_password)


class TestRefresh:
    def test_refresh_issues_access_token_with_current_roles(self, services, make_user, user_password):
        user = make_user("r@example.com")
        refresh_token = services.auth.login("r@example.com", user_password)["refreshToken"]
        services.users.set_roles(user.id, ["NURSE", "PATIENT"])

        claims = services.tokens.verify_token(services.auth.refresh(refresh_token), ACCESS)
        assert claims["roles"] == ["NURSE", "PATIENT"]

    def test_refresh_rejects_access_token(self, services, make_user, user_password):
        make_user("r@example.com")
        access_token = services.auth.login("r@example.com", user_password)["accessToken"]
        with pytest.raises(AuthenticationRequired):
            services.auth.refresh(access_token)

    def test_refresh_for_deactivated_user(self, services, make_user, user_password):
        user = make_user("r@example.com")
        refresh_token = services.auth.login("r@example.com", user_password)["refreshToken"]
        services.users.set_active(user.id, False)
        with pytest.raises(AuthenticationRequired):
            services.auth.refresh(refresh_token)

    def test_refresh_for_deleted_user(self, services, make_user, user_password):
        user = make_user("r@example.com")
        refresh_token = services.auth.login("r@example.com", user_password)["refreshToken"]
        services.users.delete(user.id)
        with pytest.raises(AuthenticationRequired):
            services.auth.refresh(refresh_token)
