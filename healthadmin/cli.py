"""
Custom Flask CLI commands.

These commands are registered with the app via ``register_commands()``
in the application factory. Run them with ``flask <command_name>``.

Usage::

    flask db-check              # Verify database connectivity and schema
    flask seed-system-admin     # Create the first SYSTEM_ADMIN account
    flask purge-reset-tokens    # Delete used and expired reset tokens
"""

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

from healthadmin.extensions import db
from healthadmin.roles import BASELINE_ROLE, Role
from healthadmin.security import MAX_PASSWORD_BYTES
from healthadmin.services import get_services

EXPECTED_TABLES = ("organizations", "users", "user_role", "password_reset_tokens")


@click.command("db-check")
@with_appcontext
def db_check_command():
    """
    Verify database connectivity and confirm the expected tables exist.

    Useful for confirming the DATABASE_URL / DB_* settings are correct and
    that ``flask db upgrade`` has been run.
    """
    click.echo("=" * 60)
    click.echo("  Health Admin — Database Connectivity Check")
    click.echo("=" * 60)

    # Show the connection string with the password masked.
    db_uri = make_url(current_app.config["SQLALCHEMY_DATABASE_URI"])
    click.echo(f"\n  Connection string: {db_uri.render_as_string(hide_password=True)}\n")

    # -- Step 1: Basic connectivity ----------------------------------------
    click.echo("[1/2] Testing connection...")
    try:
        db.session.execute(text("SELECT 1"))
        click.secho("      ✓ Connected successfully.", fg="green")
    except SQLAlchemyError as exc:
        click.secho(f"      ✗ Connection failed: {exc}", fg="red")
        click.echo("\n  Troubleshooting tips:")
        click.echo("    - Is PostgreSQL running and reachable from this host?")
        click.echo("    - Do DB_HOST, DB_PORT, DB_USER, DB_PASSWORD and DB_NAME match?")
        raise SystemExit(1)

    # -- Step 2: Tables ----------------------------------------------------
    click.echo("[2/2] Checking tables...\n")
    present = set(inspect(db.engine).get_table_names())
    missing = [name for name in EXPECTED_TABLES if name not in present]
    for name in EXPECTED_TABLES:
        mark = "✗ missing" if name in missing else "✓"
        click.echo(f"      {name:>24}  {mark}")

    if missing:
        click.secho("\n  Tables are missing. Run: flask db upgrade", fg="red")
        raise SystemExit(1)

    click.echo("\n" + "=" * 60)
    click.secho("  All checks passed. Database is ready.", fg="green", bold=True)


@click.command("seed-system-admin")
@click.option("--email", default=None, help="Defaults to DEFAULT_ADMIN_EMAIL.")
@click.option("--password", default=None, help="Defaults to DEFAULT_ADMIN_PASSWORD.")
@with_appcontext
def seed_system_admin_command(email, password):
    """
    Create the system administrator, or grant SYSTEM_ADMIN to an
    existing account with the same email.  Safe to run repeatedly.
    """
    email = email or current_app.config["DEFAULT_ADMIN_EMAIL"]
    password = password or current_app.config["DEFAULT_ADMIN_PASSWORD"]
    users = get_services().users

    user = users.find_by_email(email)
    if user is not None:
        if user.has_role(Role.SYSTEM_ADMIN):
            click.echo(f"System admin {user.email} already exists.")
            return
        users.set_roles(user.id, [r.value for r in user.roles] + [Role.SYSTEM_ADMIN.value])
        click.secho(f"Granted SYSTEM_ADMIN to existing user {user.email}.", fg="green")
        return

    if not password:
        raise click.UsageError(
            "No password given. Pass --password or set DEFAULT_ADMIN_PASSWORD."
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise click.UsageError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded."
        )

    user = users.create(
        {
            "email": email,
            "password_hash": users.hash_password(password),
            "full_name": "System Administrator",
            "roles": [Role.SYSTEM_ADMIN, BASELINE_ROLE],
        }
    )
    user.is_email_verified = True
    db.session.commit()
    click.secho(f"Created system admin {user.email}.", fg="green")


@click.command("purge-reset-tokens")
@with_appcontext
def purge_reset_tokens_command():
    """Delete used and expired password reset tokens."""
    removed = get_services().password_reset.purge_expired_tokens()
    click.echo(f"Removed {removed} password reset token(s).")


def register_commands(app):
    """Attach all custom CLI commands to the Flask app."""
    app.cli.add_command(db_check_command)
    app.cli.add_command(seed_system_admin_command)
    app.cli.add_command(purge_reset_tokens_command)
