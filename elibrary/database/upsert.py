"""
upsert.py – Atomic insert-or-update keyed by a unique constraint.

SQLite and PostgreSQL get a single ``INSERT ... ON CONFLICT`` statement.
Other dialects insert inside a savepoint and fall back to an ``UPDATE``
when the unique constraint rejects the row.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import and_, func, insert, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger("elibrary.db")

_ON_CONFLICT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def upsert(
    db: Session,
    model,
    keys: dict[str, Any],
    values: dict[str, Any] | None = None,
) -> None:
    """Insert ``keys | values`` or, if ``keys`` already exist, update ``values``.

    With no ``values`` an existing row is left untouched (insert-or-ignore).
    The caller commits.
    """
    values = values or {}
    row = {**keys, **values}
    # ON CONFLICT DO UPDATE skips Column.onupdate, so touch the timestamp here
    changes = dict(values)
    if changes and hasattr(model, "updated_at"):
        changes["updated_at"] = func.now()
    dialect = db.get_bind().dialect.name
    make_insert = _ON_CONFLICT_INSERTS.get(dialect)

    if make_insert is not None:
        stmt = make_insert(model).values(**row)
        if values:
            stmt = stmt.on_conflict_do_update(index_elements=list(keys), set_=changes)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(keys))
        db.execute(stmt)
        return

    logger.debug("No ON CONFLICT support for %s; using savepoint fallback", dialect)
    try:
        with db.begin_nested():
            db.execute(insert(model).values(**row))
    except IntegrityError:
        if values:
            where = and_(*(getattr(model, k) == v for k, v in keys.items()))
            db.execute(update(model).where(where).values(**changes))
