"""
Tests for the admin blueprint: user management and organization review.
"""

import pytest

from healthadmin.roles import Role
from healthadmin.security import verify_password

API = "/api/v1/admin"


@pytest.fixture()
def admin_headers(system_admin, auth_headers):
    return auth_headers(system_admin)


class TestAccessControl:
    def test_requires_token(self, client):
        assert client.get(f"{API}/users").status_code == 401

    def test_requires_system_admin(self, client, make_user, auth_headers):
        doctor = make_user("doc@example.com", roles=[Role.DOCTOR])
        response = client.get(f"{API}/users", headers=auth_headers(doctor))
        assert response.status_code == 403
        assert response.get_json()["kind"] == "authorization_error"


class TestUserManagement:
    def test_list_users_with_meta(self, client, make_user, admin_headers):
        make_user("a@example.com")
        make_user("b@example.com")
        response = client.get(f"{API}/users?page=1&limit=2", headers=admin_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert len(body["data"]) == 2
        assert body["meta"] == {"total": 3, "page": 1, "limit": 2, "totalPages": 2}

    def test_limit_above_maximum_is_rejected(self, client, admin_headers):
        response = client.get(f"{API}/users?limit=500", headers=admin_headers)
        assert response.status_code == 400

    def test_get_user_and_missing_user(self, client, make_user, admin_headers):
        user = make_user("a@example.com")
        assert client.get(f"{API}/users/{user.id}", headers=admin_headers).status_code == 200
        missing = client.get(f"{API}/users/missing", headers=admin_headers)
        assert missing.status_code == 404
        assert missing.get_json()["kind"] == "user_not_found"

    def test_patch_user_partial(self, client, make_user, admin_headers):
        user = make_user("a@example.com", full_name="Old", phone="111")
        response = client.patch(
            f"{API}/users/{user.id}",
            json={"fullName": "New", "phone": None},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["full_name"] == "New"
        assert data["phone"] is None

    def test_patch_user_unknown_organization(self, client, make_user, admin_headers):
        user = make_user("a@example.com")
        response = client.patch(
            f"{API}/users/{user.id}",
            json={"staffOrganizationId": "missing"},
            headers=admin_headers,
        )
        assert response.status_code == 404
        assert response.get_json()["kind"] == "related_record_not_found"

    def test_update_status(self, client, make_user, admin_headers):
        user = make_user("a@example.com")
        response = client.patch(
            f"{API}/users/{user.id}/status", json={"isActive": False}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["is_active"] is False

    def test_update_roles(self, client, make_user, admin_headers):
        user = make_user("a@example.com")
        response = client.patch(
            f"{API}/users/{user.id}/roles",
            json={"roles": ["NURSE", "PATIENT"]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert sorted(response.get_json()["data"]["roles"]) == ["NURSE", "PATIENT"]

    @pytest.mark.parametrize("roles", [[], ["SUPERUSER"]])
    def test_update_roles_validation(self, client, make_user, admin_headers, roles):
        user = make_user("a@example.com")
        response = client.patch(
            f"{API}/users/{user.id}/roles", json={"roles": roles}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_delete_user(self, client, make_user, admin_headers):
        user = make_user("a@example.com")
        user_id = user.id
        assert client.delete(f"{API}/users/{user_id}", headers=admin_headers).status_code == 200
        assert client.get(f"{API}/users/{user_id}", headers=admin_headers).status_code == 404

    def test_cannot_delete_self(self, client, system_admin, admin_headers):
        response = client.delete(f"{API}/users/{system_admin.id}", headers=admin_headers)
        assert response.status_code == 403


class TestOrganizationReview:
    def test_pending_queue(self, client, make_organization, admin_headers):
        make_organization("a@b.com")
        response = client.get(f"{API}/organizations/pending", headers=admin_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert [o["contactPersonEmail"] for o in body["data"]] == ["a@b.com"]
        assert body["meta"]["total"] == 1

    def test_approve(self, client, make_organization, admin_headers, mailer):
        org = make_organization("a@b.com")
        response = client.patch(f"{API}/organizations/{org.id}/approve", headers=admin_headers)
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["status"] == "ACTIVE"
        assert data["adminUser"]["email"] == "a@b.com"
        assert "HOSPITAL_ADMIN" in data["adminUser"]["roles"]
        # Email is enabled, so the password is not echoed back.
        assert "temporaryPassword" not in data
        assert len(mailer.outbox) == 1

    def test_approve_returns_password_when_email_disabled(
        self, client, make_organization, admin_headers, mailer, services
    ):
        mailer.enabled = False
        org = make_organization("a@b.com")
        response = client.patch(f"{API}/organizations/{org.id}/approve", headers=admin_headers)
        assert response.status_code == 200
        password = response.get_json()["data"]["temporaryPassword"]
        admin = services.users.find_by_email("a@b.com")
        assert verify_password(password, admin.password_hash)

    def test_approve_twice_is_404(self, client, make_organization, admin_headers):
        org = make_organization("a@b.com")
        client.patch(f"{API}/organizations/{org.id}/approve", headers=admin_headers)
        response = client.patch(f"{API}/organizations/{org.id}/approve", headers=admin_headers)
        assert response.status_code == 404

    def test_approve_conflict_is_409(self, client, make_user, make_organization, admin_headers):
        make_user("a@b.com")
        org = make_organization("a@b.com")
        response = client.patch(f"{API}/organizations/{org.id}/approve", headers=admin_headers)
        assert response.status_code == 409
        assert response.get_json()["kind"] == "admin_provisioning_conflict"

    def test_reject_with_reason(self, client, make_organization, admin_headers):
        org = make_organization("a@b.com")
        response = client.patch(
            f"{API}/organizations/{org.id}/reject",
            json={"rejectionReason": "Incomplete license"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["status"] == "REJECTED"
        assert data["rejectionReason"] == "Incomplete license"

    def test_reject_without_body_uses_default_reason(self, client, make_organization, admin_headers):
        org = make_organization("a@b.com")
        response = client.patch(f"{API}/organizations/{org.id}/reject", headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()["data"]["rejectionReason"] == "Rejected by system administrator."
