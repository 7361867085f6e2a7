"""Analysis history store.

ARCHITECTURE:
    workflow → HistoryStore → TieredCache.get_db() → DurableStore (history table)

Key Design:
- Records live in the durable tier only; indexed columns back range and
  equality lookups
- ``pathogenicity_label`` is derived once on insert and stored
- Every write invalidates the cached statistics snapshot
- Without a durable tier every operation returns empty / does nothing
- Updates are read-modify-write with last-write-wins
- Session work runs in a worker thread via asyncio.to_thread
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from mutationmechanic.models.history import (
    HistoryRecord,
    HistoryRecordCreate,
    HistoryStatistics,
    PathogenicityLabel,
    RiskLevel,
)
from mutationmechanic.storage.durable import DurableStore
from mutationmechanic.storage.tables import HistoryRow
from mutationmechanic.storage.tiered_cache import TieredCache
from mutationmechanic.utils.statistics import compute_statistics
from mutationmechanic.utils.timeutils import Clock

logger = logging.getLogger(__name__)


def make_record_id(gene: str, variant: str, timestamp: int) -> str:
    """Build a record id: ``{gene}-{variant}-{ms}-{8 hex}``."""
    return f"{gene}-{variant}-{timestamp}-{uuid.uuid4().hex[:8]}"


def _newest_first(records: list[HistoryRecord]) -> list[HistoryRecord]:
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


class HistoryStore:
    """Queryable log of analysis records."""

    def __init__(self, cache: TieredCache, clock: Clock | None = None) -> None:
        self.cache = cache
        self._clock = clock or cache.now
        self._stats: HistoryStatistics | None = None

    def invalidate_statistics(self) -> None:
        self._stats = None

    async def _db(self) -> DurableStore | None:
        db = await self.cache.get_db()
        if db is None:
            logger.debug("History storage unavailable; operation skipped")
        return db

    async def add_record(self, record: HistoryRecordCreate) -> str | None:
        """Persist a new record.

        Returns:
            The new record id, or None if the record could not be stored
        """
        db = await self._db()
        if db is None:
            return None

        timestamp = record.timestamp if record.timestamp is not None else self._clock()
        stored = HistoryRecord(
            **record.model_dump(exclude={"timestamp"}),
            id=make_record_id(record.gene, record.variant, timestamp),
            timestamp=timestamp,
            pathogenicity_label=PathogenicityLabel.from_score(record.pathogenicity_score),
            archived=False,
        )

        def insert() -> None:
            with db.session() as session, session.begin():
                session.add(HistoryRow.from_record(stored))

        try:
            await asyncio.to_thread(insert)
        except Exception as e:
            logger.warning("Failed to add history record for %s %s: %s", record.gene, record.variant, e)
            return None

        self.invalidate_statistics()
        return stored.id

    async def get_record(self, record_id: str) -> HistoryRecord | None:
        db = await self._db()
        if db is None:
            return None

        def read() -> HistoryRecord | None:
            with db.session() as session:
                row = session.get(HistoryRow, record_id)
                return row.to_record() if row else None

        try:
            return await asyncio.to_thread(read)
        except Exception as e:
            logger.warning("Failed to read history record %s: %s", record_id, e)
            return None

    async def _select(self, *criteria: Any) -> list[HistoryRecord]:
        db = await self._db()
        if db is None:
            return []

        def query() -> list[HistoryRecord]:
            with db.session() as session:
                rows = session.scalars(select(HistoryRow).where(*criteria)).all()
                return [row.to_record() for row in rows]

        try:
            return await asyncio.to_thread(query)
        except Exception as e:
            logger.warning("History query failed: %s", e)
            return []

    async def _write(self, action: str, work: Callable[[Session], None]) -> bool:
        """Run ``work`` in one transaction off the event loop.

        Returns:
            True when the transaction committed
        """
        db = await self._db()
        if db is None:
            return False

        def run() -> None:
            with db.session() as session, session.begin():
                work(session)

        try:
            await asyncio.to_thread(run)
        except Exception as e:
            logger.warning("Failed to %s: %s", action, e)
            return False
        self.invalidate_statistics()
        return True

    async def get_all_records(self) -> list[HistoryRecord]:
        """All records, newest first."""
        return _newest_first(await self._select())

    async def get_records_by_date_range(self, start: int, end: int) -> list[HistoryRecord]:
        """Records with ``start <= timestamp <= end``, in index order."""
        return await self._select(HistoryRow.timestamp >= start, HistoryRow.timestamp <= end)

    async def get_records_by_gene(self, gene: str) -> list[HistoryRecord]:
        return _newest_first(await self._select(HistoryRow.gene == gene))

    async def get_records_by_label(self, label: PathogenicityLabel) -> list[HistoryRecord]:
        return _newest_first(await self._select(HistoryRow.pathogenicity_label == label.value))

    async def get_records_by_risk(self, risk_level: RiskLevel) -> list[HistoryRecord]:
        return _newest_first(await self._select(HistoryRow.risk_level == risk_level.value))

    async def update_record(self, record_id: str, updates: dict[str, Any]) -> None:
        """Merge ``updates`` into an existing record.

        A missing record is a no-op. The stored pathogenicity label is left
        as-is even when the score changes.
        """
        changes = {k: v for k, v in updates.items() if k != "id"}

        def merge(session: Session) -> None:
            row = session.get(HistoryRow, record_id)
            if row is None:
                return
            row.apply(HistoryRecord.model_validate({**row.to_record().model_dump(), **changes}))

        await self._write(f"update history record {record_id}", merge)

    async def delete_record(self, record_id: str) -> None:
        await self.bulk_delete([record_id])

    async def bulk_delete(self, record_ids: Iterable[str]) -> None:
        ids = list(record_ids)
        if not ids:
            return
        await self._write(
            "delete history records",
            lambda session: session.execute(delete(HistoryRow).where(HistoryRow.id.in_(ids))),
        )

    async def bulk_archive(self, record_ids: Iterable[str], archived: bool = True) -> None:
        """Set the archived flag on several records in one transaction."""
        ids = list(record_ids)
        if not ids:
            return

        def flag(session: Session) -> None:
            for row in session.scalars(select(HistoryRow).where(HistoryRow.id.in_(ids))).all():
                record = row.to_record()
                record.archived = archived
                row.apply(record)

        await self._write("archive history records", flag)

    async def clear_history(self) -> None:
        await self._write("clear history", lambda session: session.execute(delete(HistoryRow)))

    async def get_statistics(self) -> HistoryStatistics:
        """Aggregate statistics, cached until the next write."""
        if self._stats is None:
            self._stats = compute_statistics(await self.get_all_records(), now=self._clock())
        return self._stats
