"""
Pytest configuration and shared fixtures.

Provides a test application, database session, and test client that
all test modules can use.  Uses the ``testing`` configuration, which
points at an in-memory SQLite database; the schema is created fresh
for every test and dropped afterwards.

Outbound email is captured by ``RecordingMailer`` instead of SMTP.
"""

import pytest

from healthadmin import create_app
from healthadmin.errors import EmailDeliveryError
from healthadmin.extensions import db as _db
from healthadmin.roles import Role
from healthadmin.services import get_services
from healthadmin.services.auth_service import token_claims
from healthadmin.services.email_service import Mailer

DEFAULT_PASSWORD = "Str0ng!Passw0rd"


class RecordingMailer(Mailer):
    """Mailer that keeps messages in memory instead of sending them."""

    def __init__(self):
        super().__init__(enabled=True, client_url="http://client.test")
        self.outbox: list[dict] = []
        self.fail = False

    def send(self, to, subject, text):
        if self.fail:
            raise EmailDeliveryError()
        self.outbox.append({"to": to, "subject": subject, "text": text})


@pytest.fixture()
def mailer():
    return RecordingMailer()


@pytest.fixture()
def app(mailer):  # pylint: disable=redefined-outer-name
    """
    Create a Flask application configured for testing, with an empty
    schema and an application context for the duration of the test.
    """
    app = create_app("testing", mailer=mailer)

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def db_session(app):  # pylint: disable=redefined-outer-name
    """The application's SQLAlchemy session."""
    return _db.session


@pytest.fixture()
def services(app):  # pylint: disable=redefined-outer-name
    """The ``Services`` container wired by ``create_app``."""
    return get_services()


@pytest.fixture()
def client(app):  # pylint: disable=redefined-outer-name
    """
    Provide a Flask test client for making HTTP requests.

    Usage in tests::

        def test_health(client):
            response = client.get("/health")
            assert response.status_code == 200
    """
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def make_user(services):  # pylint: disable=redefined-outer-name
    """
    Factory for persisted users.

    Usage::

        admin = make_user("root@example.com", roles=[Role.SYSTEM_ADMIN])
    """

    def _make_user(email, password=DEFAULT_PASSWORD, roles=None, **fields):
        data = {
            "email": email,
            "password_hash": services.users.hash_password(password),
            "roles": roles or [Role.PATIENT],
        }
        data.update(fields)
        return services.users.create(data)

    return _make_user


@pytest.fixture()
def auth_headers(services):  # pylint: disable=redefined-outer-name
    """Factory returning ``Authorization`` headers for a user."""

    def _auth_headers(user):
        token = services.tokens.issue_access_token(token_claims(user))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture()
def system_admin(make_user):  # pylint: disable=redefined-outer-name
    return make_user("root@example.com", roles=[Role.SYSTEM_ADMIN, Role.PATIENT])


@pytest.fixture()
def make_organization(services):  # pylint: disable=redefined-outer-name
    """Factory for registered (pending) organizations."""

    def _make_organization(contact_email, org_type="HOSPITAL", name=None, **fields):
        data = {
            "name": name or f"{org_type.title()} {contact_email}",
            "type": org_type,
            "contact_person_name": "Contact Person",
            "contact_person_email": contact_email,
        }
        data.update(fields)
        return services.organizations.register(data)

    return _make_organization


@pytest.fixture()
def approved_admin(services, system_admin, make_organization):  # pylint: disable=redefined-outer-name
    """
    Factory that registers and approves an organization and returns its
    admin user.
    """

    def _approved_admin(contact_email, org_type="HOSPITAL"):
        org = make_organization(contact_email, org_type=org_type)
        services.organizations.approve(org.id, system_admin.id)
        return services.users.find_by_email(contact_email)

    return _approved_admin


@pytest.fixture()
def user_password():
    """Password ``make_user`` gives users unless told otherwise."""
    return DEFAULT_PASSWORD
