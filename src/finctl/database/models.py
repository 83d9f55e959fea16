"""SQLAlchemy models for the finctl ledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class Category(Base):
    """Transaction category scoped to one tenant."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    transactions = relationship("Transaction", back_populates="category_ref")


class Transaction(Base):
    """Ledger row: one sale, purchase or installment of either."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False)
    customer_id = Column(String, nullable=True)
    supplier_id = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    category = Column(String, nullable=True)
    type = Column(String, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    original_amount = Column(Numeric(15, 2), nullable=True)
    paid_amount = Column(Numeric(15, 2), nullable=True)
    interest = Column(Numeric(15, 2), default=0, nullable=False)
    has_card_fee = Column(Boolean, default=False, nullable=False)
    card_fee_rate = Column(Numeric(7, 4), default=0, nullable=False)
    card_fee_amount = Column(Numeric(15, 2), default=0, nullable=False)
    description = Column(String, nullable=True)
    due_date = Column(Date, nullable=True)
    payment_date = Column(DateTime, nullable=True)
    payment_method = Column(String, nullable=True)
    status = Column(String, default="pending", nullable=False)
    installment_group = Column(String, nullable=True)
    installment_index = Column(Integer, nullable=True)
    installment_total = Column(Integer, nullable=True)
    is_reconciled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=True)

    __table_args__ = (
        Index("ix_transactions_tenant", "tenant_id"),
        Index("ix_transactions_tenant_type", "tenant_id", "type"),
        Index("ix_transactions_installment_group", "installment_group"),
    )

    category_ref = relationship("Category", back_populates="transactions")


class BankStatementItem(Base):
    """Imported bank statement line awaiting reconciliation."""

    __tablename__ = "bank_statement_items"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(String, nullable=False)
    status = Column(String, default="pending", nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
