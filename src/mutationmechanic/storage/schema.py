"""Durable tier schema migrations.

Migrations are an ordered list of ``(version, step)`` pairs. On open, every
step above the stored version runs inside one transaction and the stored
version is bumped to SCHEMA_VERSION. Steps check for existence before
creating anything, so re-running one against a partially upgraded database
is harmless.
"""

import logging
from typing import Callable

from sqlalchemy import Connection, Engine, Table, inspect, select

from mutationmechanic.storage.tables import AnnotationRow, HistoryRow, SchemaVersionRow

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 4

MigrationStep = Callable[[Connection], None]


def _create_table(conn: Connection, table: Table) -> None:
    if not inspect(conn).has_table(table.name):
        table.create(conn)


def _ensure_index(conn: Connection, table: Table, index_name: str) -> None:
    existing = {ix["name"] for ix in inspect(conn).get_indexes(table.name)}
    if index_name in existing:
        return
    index = next(ix for ix in table.indexes if ix.name == index_name)
    index.create(conn)
    logger.info("Created index %s on %s", index_name, table.name)


def _create_annotation_store(conn: Connection) -> None:
    _create_table(conn, AnnotationRow.__table__)


def _create_history_store(conn: Connection) -> None:
    _create_table(conn, HistoryRow.__table__)


def _add_history_lookup_indices(conn: Connection) -> None:
    for name in ("ix_history_gene", "ix_history_timestamp", "ix_history_risk_level"):
        _ensure_index(conn, HistoryRow.__table__, name)


def _add_pathogenicity_label_index(conn: Connection) -> None:
    _ensure_index(conn, HistoryRow.__table__, "ix_history_pathogenicity_label")


MIGRATIONS: list[tuple[int, MigrationStep]] = [
    (1, _create_annotation_store),
    (2, _create_history_store),
    (3, _add_history_lookup_indices),
    (4, _add_pathogenicity_label_index),
]


def get_schema_version(conn: Connection) -> int:
    """Stored schema version, 0 for a new database."""
    if not inspect(conn).has_table(SchemaVersionRow.__tablename__):
        return 0
    version = conn.execute(
        select(SchemaVersionRow.version).where(SchemaVersionRow.id == 1)
    ).scalar_one_or_none()
    return version or 0


def _set_schema_version(conn: Connection, version: int) -> None:
    table = SchemaVersionRow.__table__
    conn.execute(table.delete())
    conn.execute(table.insert().values(id=1, version=version))


def apply_migrations(engine: Engine) -> int:
    """Bring the database up to SCHEMA_VERSION.

    Returns:
        The schema version after migration
    """
    with engine.begin() as conn:
        current = get_schema_version(conn)
        if current >= SCHEMA_VERSION:
            if current > SCHEMA_VERSION:
                logger.warning(
                    "Database schema version %d is newer than supported version %d",
                    current,
                    SCHEMA_VERSION,
                )
            return current

        SchemaVersionRow.__table__.create(conn, checkfirst=True)
        for version, step in MIGRATIONS:
            if version > current:
                logger.info("Applying schema migration %d (%s)", version, step.__name__)
                step(conn)

        _set_schema_version(conn, SCHEMA_VERSION)

    return SCHEMA_VERSION
