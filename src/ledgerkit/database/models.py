"""SQLAlchemy models for ledgerkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from ledgerkit.domain.entities import (
    AccountType,
    RecurrenceFrequency,
    ShareRole,
    TransactionType,
)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    type = Column(Enum(AccountType), nullable=False, default=AccountType.STANDARD)
    initial_balance = Column(Numeric(14, 2), nullable=False, default=0)
    owner_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_account_owner_name"),)

    # Relationships
    credit_card_info = relationship(
        "CreditCardInfo",
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="joined",
    )
    shares = relationship("AccountShare", back_populates="account", cascade="all, delete-orphan")
    snapshots = relationship("DailySnapshot", back_populates="account", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="account")


class CreditCardInfo(Base):
    """Credit card billing data, one row per CREDIT account."""

    __tablename__ = "credit_card_info"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, unique=True)
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)
    credit_limit = Column(Numeric(14, 2), nullable=True)
    brand = Column(String, nullable=True)

    account = relationship("Account", back_populates="credit_card_info")


class AccountShare(Base):
    """Role granted on an account to a non-owner."""

    __tablename__ = "account_shares"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    user_id = Column(String, nullable=False)
    role = Column(Enum(ShareRole), nullable=False)

    __table_args__ = (UniqueConstraint("account_id", "user_id", name="uq_account_share_user"),)

    account = relationship("Account", back_populates="shares")


class Category(Base):
    """Category model; owner_id NULL means global."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    owner_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    parent = relationship("Category", remote_side=[id], backref="children")
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Ledger entry model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    type = Column(Enum(TransactionType), nullable=False)
    is_paid = Column(Boolean, default=True, nullable=False)
    tags = Column(JSON, nullable=True)
    transfer_id = Column(String, nullable=True, index=True)
    recurrence_id = Column(String, nullable=True, index=True)
    recurrence_frequency = Column(Enum(RecurrenceFrequency), nullable=True)
    recurrence_interval_days = Column(Integer, nullable=True)
    installment_number = Column(Integer, nullable=True)
    total_installments = Column(Integer, nullable=True)
    purchase_date = Column(Date, nullable=True)
    invoice_month = Column(String(7), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_transactions_account_date", "account_id", "date"),
        Index("ix_transactions_account_invoice", "account_id", "invoice_month"),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")


class DailySnapshot(Base):
    """End-of-day balance of one account."""

    __tablename__ = "daily_snapshots"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    balance = Column(Numeric(14, 2), nullable=False)
    calc_version = Column(Integer, nullable=False, default=1)

    __table_args__ = (UniqueConstraint("account_id", "date", name="uq_snapshot_account_date"),)

    account = relationship("Account", back_populates="snapshots")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine: Engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
