"""
Helpers shared by the repositories and the services that drive them.

Repositories only *stage* work on the request's Session; the service that
owns the operation decides when to commit, so a multi-row change (consume a
code and mark the user verified) lands in one transaction.
"""

from sqlalchemy import delete, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rasta.core.errors import InternalError
from rasta.core.logger import logger

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def upsert_by_user(db: Session, model, user_id, values: dict) -> None:
    """
    Insert or replace the single row of *model* owned by *user_id*.

    On PostgreSQL and SQLite this is one ``INSERT .. ON CONFLICT (user_id)
    DO UPDATE`` statement, so two concurrent writers cannot both leave a
    live row.  Other dialects get delete-then-insert inside the caller's
    transaction.
    """
    row = {"user_id": user_id, **values}
    dialect = db.get_bind().dialect.name
    dialect_insert = _UPSERT_INSERTS.get(dialect)

    if dialect_insert is not None:
        stmt = dialect_insert(model).values(**row)
        stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_=values)
        db.execute(stmt)
        return

    db.execute(delete(model).where(model.user_id == user_id))
    db.execute(insert(model).values(**row))


def commit(db: Session, action: str) -> None:
    """Commit, or roll back and raise the generic internal error."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database commit failed while trying to %s: %s", action, exc)
        raise InternalError() from exc
