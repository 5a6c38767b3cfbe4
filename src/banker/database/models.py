"""SQLAlchemy models for banker database."""

import json
from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Bank(Base):
    """Bank institution model."""

    __tablename__ = "banks"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    logo_url = Column(String, nullable=True)
    color = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="bank")


class Transaction(Base):
    """Transaction model.

    ``bank_code`` duplicates ``banks.code`` so per-bank listings need no join.
    It is nullable only so rows written before the column existed can be
    backfilled.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False)
    bank_code = Column(String, nullable=True)
    account_id = Column(String, nullable=True)
    txn_key = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    date = Column(String, nullable=False)
    # No fixed scale: the stored magnitude must reproduce its txn_key
    amount = Column(Numeric(asdecimal=True), nullable=False)
    description = Column(String, nullable=False)
    type = Column(String, nullable=False)
    balance = Column(Numeric(asdecimal=True), nullable=True)
    raw = Column(JSON, nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_transactions_txn_key", "txn_key", unique=True),
        Index("ix_transactions_bank_code", "bank_code"),
        Index("ix_transactions_bank_id", "bank_id"),
        Index("ix_transactions_bank_code_date", "bank_code", "date"),
        Index("ix_transactions_created_at", "created_at"),
    )

    # Relationships
    bank = relationship("Bank", back_populates="transactions")
    events = relationship("Event", back_populates="transaction", cascade="all, delete-orphan")


class Event(Base):
    """Append-only notification event model."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)
    transaction_id = Column(
        Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=True
    )
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    bank_code = Column(String, nullable=True)
    amount = Column(Numeric(asdecimal=True), nullable=True)
    description = Column(String, nullable=True)
    event_metadata = Column("metadata", JSON, nullable=True)
    acknowledged = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_events_type", "type"),
        Index("ix_events_acknowledged", "acknowledged"),
        Index("ix_events_type_acknowledged", "type", "acknowledged"),
        Index("ix_events_bank_id", "bank_id"),
        Index("ix_events_created_at", "created_at"),
    )

    # Relationships
    transaction = relationship("Transaction", back_populates="events")


def _json_serializer(value) -> str:
    # Raw bank payloads may carry Decimals or dates
    return json.dumps(value, default=str, ensure_ascii=False)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for(database_url: str) -> Engine:
    """Create an engine with the JSON and SQLite settings banker relies on."""
    kwargs = {"echo": False, "json_serializer": _json_serializer}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
    engine = create_engine(database_url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine_for(database_url)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
