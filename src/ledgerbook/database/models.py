"""SQLAlchemy models for ledgerbook database."""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    TypeDecorator,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from ledgerbook.domain.entities import MONEY_PLACES

Base = declarative_base()


class Money(TypeDecorator):
    """Exact decimal money stored as integer minor units."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value: Optional[Decimal], dialect) -> Optional[int]:
        if value is None:
            return None
        minor = Decimal(value).scaleb(MONEY_PLACES)
        if minor != minor.to_integral_value():
            raise ValueError(f"Amount {value} has more than {MONEY_PLACES} decimal places")
        return int(minor)

    def process_result_value(self, value: Optional[int], dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return Decimal(value).scaleb(-MONEY_PLACES)


class Account(Base):
    """Vendor or customer ledger account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    display_name = Column(String, unique=True, nullable=False)
    opening_anchor = Column(Money, nullable=False, default=Decimal("0"))
    current_balance = Column(Money, nullable=False, default=Decimal("0"))
    next_sequence = Column(Integer, nullable=False, default=1)
    is_corrupted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")


class Transaction(Base):
    """Ledger transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    type = Column(String(16), nullable=False)
    amount = Column(Money, nullable=False)
    date = Column(DateTime, nullable=False)
    posting_date = Column(Date, nullable=False)
    sequence = Column(Integer, nullable=False)
    description = Column(String, nullable=True)
    status = Column(String(16), nullable=False)
    opening_balance = Column(Money, nullable=False)
    closing_balance = Column(Money, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("ix_transactions_account_order", "account_id", "posting_date", "sequence"),
        Index("ix_transactions_posting_date", "posting_date"),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")


def _enable_sqlite_writer_queue(engine: Engine) -> None:
    """Make SQLite transactions take the write lock up front.

    pysqlite's deferred BEGIN lets two writers both hold read locks and then
    fail to upgrade; BEGIN IMMEDIATE makes them wait on the busy timeout
    instead.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        _enable_sqlite_writer_queue(engine)
    else:
        engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
