"""SQLAlchemy ORM models for the ledger, schedules and exchange rates"""

from sqlalchemy import (
    Column,
    String,
    Boolean,
    Float,
    DateTime,
    Integer,
    ForeignKey,
    Text,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Account(Base):
    """Bank account owned by a user; current_balance is written only by the ledger"""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    name = Column(Text, nullable=False)
    currency = Column(String(3), nullable=False, default="CAD")
    initial_balance = Column(Float, nullable=False, default=0.0)
    current_balance = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Category(Base):
    """User-defined transaction category"""

    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_categories_user_name"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Transaction(Base):
    """Concrete ledger entry; amount is signed (income > 0, expense < 0)"""

    __tablename__ = "transactions"
    __table_args__ = (Index("idx_transactions_account_date", "account_id", "transaction_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    transaction_type = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    transaction_date = Column(DateTime, nullable=False)
    recurring_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    splits = relationship("TransactionCategory", back_populates="transaction", cascade="all, delete-orphan")


class TransactionCategory(Base):
    """Category split row: portion of a transaction allocated to one category"""

    __tablename__ = "transaction_categories"
    __table_args__ = (UniqueConstraint("transaction_id", "category_id", name="uq_transaction_category"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Float, nullable=False)

    transaction = relationship("Transaction", back_populates="splits")


class RecurringTransaction(Base):
    """Template materialized into transactions on its schedule"""

    __tablename__ = "recurring_transactions"
    __table_args__ = (
        CheckConstraint("end_date IS NULL OR end_date > start_date", name="ck_recurring_end_after_start"),
        Index("idx_recurring_active_next", "is_active", "next_occurrence"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Float, nullable=False)
    transaction_type = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(Text, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    next_occurrence = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ExchangeRate(Base):
    """Directional rate observation: 1 from_currency = rate to_currency"""

    __tablename__ = "exchange_rates"
    __table_args__ = (
        UniqueConstraint("from_currency", "to_currency", "rate_date", name="uq_exchange_rates_pair_date"),
        Index("idx_exchange_rates_currencies_date", "from_currency", "to_currency", "rate_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_currency = Column(Text, nullable=False)  # Bare code or "Display Name (CODE)"
    to_currency = Column(Text, nullable=False)
    rate = Column(Float, nullable=False)
    rate_date = Column(DateTime, nullable=False)
    source = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
