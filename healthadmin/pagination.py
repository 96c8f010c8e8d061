"""
Offset pagination over a SQLAlchemy ``select()`` bound to an injected
session.

Mirrors the attributes of Flask-SQLAlchemy's pagination object
(``items``, ``total``, ``page``, ``pages``) without tying services to the
global ``db.session``.
"""

import math
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def meta(self) -> dict[str, int]:
        """The ``meta`` block sent with list responses."""
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.pages,
        }


def paginate(session: Session, stmt, page: int, limit: int) -> Page:
    """
    Run ``stmt`` for one page and count the full result.

    ``page`` is clamped to at least 1 and ``limit`` to 1..MAX_LIMIT.
    """
    page = max(int(page), 1)
    limit = min(max(int(limit), 1), MAX_LIMIT)

    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = session.execute(count_stmt).scalar_one()
    items = session.execute(stmt.limit(limit).offset((page - 1) * limit)).scalars().all()
    return Page(items=list(items), total=total, page=page, limit=limit)
