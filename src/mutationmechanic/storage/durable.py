"""Durable, indexed cache tier backed by SQLAlchemy.

ARCHITECTURE:
    TieredCache / HistoryStore → DurableStore → SQLAlchemy ORM → SQLite (default)

Key Design:
- One table per concern (generic annotations, history)
- Indexed history lookups (gene, timestamp, risk level, pathogenicity label)
- Versioned schema upgraded by ordered idempotent migrations on open
- ``session()`` is the low-level handle for range queries and multi-row
  transactions that plain get/set cannot express
- Synchronous API; async callers run each call through ``asyncio.to_thread``
"""

from pathlib import Path

from sqlalchemy import create_engine, delete
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mutationmechanic.models.cache import CacheEntry
from mutationmechanic.storage.schema import apply_migrations
from mutationmechanic.storage.tables import AnnotationRow, HistoryRow


class DurableStore:
    """Indexed transactional store for the second cache tier."""

    def __init__(self, url: str, echo: bool = False) -> None:
        """Open the database and bring its schema up to date.

        Args:
            url: SQLAlchemy database URL (e.g., sqlite:////path/to/cache.db)
            echo: Log emitted SQL
        """
        self.url = url
        engine_kwargs: dict = {"echo": echo}

        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if parsed.database in (None, "", ":memory:"):
                # A single shared connection, otherwise each checkout sees a fresh empty database
                engine_kwargs["poolclass"] = StaticPool
            else:
                Path(parsed.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(url, **engine_kwargs)
        self.schema_version = apply_migrations(self.engine)
        self._sessionmaker = sessionmaker(bind=self.engine, expire_on_commit=False)

    def session(self) -> Session:
        """Open a new ORM session. Use as a context manager."""
        return self._sessionmaker()

    def get_entry(self, key: str) -> CacheEntry | None:
        with self.session() as session:
            row = session.get(AnnotationRow, key)
            return row.to_entry() if row else None

    def put_entry(self, entry: CacheEntry) -> None:
        with self.session() as session, session.begin():
            session.merge(AnnotationRow(key=entry.key, data=entry.data, timestamp=entry.timestamp))

    def delete_entry(self, key: str) -> None:
        with self.session() as session, session.begin():
            session.execute(delete(AnnotationRow).where(AnnotationRow.key == key))

    def delete_history_before(self, cutoff: int) -> int:
        """Delete history rows with ``timestamp <= cutoff``.

        Returns:
            Number of rows deleted
        """
        with self.session() as session, session.begin():
            result = session.execute(delete(HistoryRow).where(HistoryRow.timestamp <= cutoff))
            return result.rowcount or 0

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
