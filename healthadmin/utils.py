"""Small helpers shared by models and services."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    Columns are ``DateTime`` without timezone, so every comparison
    against stored values must use naive UTC as well.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address for storage and lookup."""
    return email.strip().lower()
