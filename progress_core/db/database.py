from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import create_engine, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from progress_core.core.errors import StorageError
from progress_core.db.models.base import Base

settings = get_settings()

engine = create_engine(settings.database_url, echo=settings.log_level == "DEBUG", pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(bind=None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables initialized")


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()


# --------------------------------------------------
# Keyed writes
# Inserts that respect a unique constraint at the storage layer instead of
# a prior read. Supported on SQLite and PostgreSQL.
# --------------------------------------------------
def insert_for(session: Session, model: type[Base]) -> Any:
    """Return a dialect-specific INSERT supporting ON CONFLICT clauses."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model.__table__)
    if dialect == "sqlite":
        return sqlite.insert(model.__table__)
    raise StorageError(f"Keyed upserts are not supported on dialect '{dialect}'")


def insert_if_absent(session: Session, model: type[Base], key: list[str], values: dict[str, Any]) -> bool:
    """
    Insert a row unless one already exists for the unique `key` columns.

    Returns:
        True if this call inserted the row, False if it already existed
    """
    stmt = insert_for(session, model).values(**values).on_conflict_do_nothing(index_elements=key)
    result = session.execute(stmt)
    return result.rowcount == 1


def upsert(
    session: Session,
    model: type[Base],
    key: list[str],
    values: dict[str, Any],
    update: dict[str, Any],
) -> None:
    """Insert `values`, or apply `update` to the row that holds the same `key`."""
    stmt = insert_for(session, model).values(**values)
    stmt = stmt.on_conflict_do_update(index_elements=key, set_=update)
    session.execute(stmt)


def count_rows(session: Session, model: type[Base], **filters: Any) -> int:
    """Count rows of `model` matching equality filters."""
    stmt = select(func.count()).select_from(model).filter_by(**filters)
    return session.execute(stmt).scalar_one()
