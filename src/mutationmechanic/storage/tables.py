"""SQLAlchemy ORM tables for the durable cache tier."""

from sqlalchemy import JSON, BigInteger, Boolean, Column, Index, Integer, String
from sqlalchemy.orm import declarative_base

from mutationmechanic.models.cache import CacheEntry
from mutationmechanic.models.history import HistoryRecord

Base = declarative_base()


class SchemaVersionRow(Base):
    """Single-row table holding the applied schema version."""

    __tablename__ = "schema_version"

    id = Column(Integer, primary_key=True)
    version = Column(Integer, nullable=False)


class AnnotationRow(Base):
    """Generic timestamped cache entry (annotation bundles and anything else keyed by string)."""

    __tablename__ = "genomic_annotations"

    key = Column(String, primary_key=True)
    data = Column(JSON, nullable=True)
    timestamp = Column(BigInteger, nullable=False)

    def to_entry(self) -> CacheEntry:
        return CacheEntry(key=self.key, data=self.data, timestamp=self.timestamp)

    def __repr__(self) -> str:
        return f"<AnnotationRow key={self.key} timestamp={self.timestamp}>"


class HistoryRow(Base):
    """Analysis history record.

    Lookup columns are duplicated out of ``record`` so they can be indexed;
    ``record`` holds the full camelCase record.
    """

    __tablename__ = "history"

    id = Column(String, primary_key=True)
    gene = Column(String, nullable=False)
    variant = Column(String, nullable=False)
    timestamp = Column(BigInteger, nullable=False)
    risk_level = Column(String, nullable=False)
    pathogenicity_label = Column(String, nullable=False)
    archived = Column(Boolean, nullable=False, default=False)
    record = Column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_history_gene", "gene"),
        Index("ix_history_timestamp", "timestamp"),
        Index("ix_history_risk_level", "risk_level"),
        Index("ix_history_pathogenicity_label", "pathogenicity_label"),
    )

    @classmethod
    def from_record(cls, record: HistoryRecord) -> "HistoryRow":
        row = cls(id=record.id)
        row.apply(record)
        return row

    def apply(self, record: HistoryRecord) -> None:
        """Overwrite every column from ``record``."""
        self.gene = record.gene
        self.variant = record.variant
        self.timestamp = record.timestamp
        self.risk_level = record.risk_level.value
        self.pathogenicity_label = record.pathogenicity_label.value
        self.archived = record.archived
        self.record = record.to_json_dict()

    def to_record(self) -> HistoryRecord:
        return HistoryRecord.model_validate(self.record)

    def __repr__(self) -> str:
        return f"<HistoryRow id={self.id} gene={self.gene} timestamp={self.timestamp}>"
