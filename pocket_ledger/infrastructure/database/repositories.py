"""Data access layer for ledger, schedule and exchange-rate entities"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from pocket_ledger.infrastructure.database.models import (
    Account,
    Category,
    ExchangeRate,
    RecurringTransaction,
    Transaction,
    TransactionCategory,
)
from pocket_ledger.domain.currency import RateTable, latest_by_pair
from pocket_ledger.domain.exceptions import NotFoundError, ValidationError
from pocket_ledger.domain.models import CategorySplit, CurrencyCode, RateQuote

logger = logging.getLogger(__name__)


class AccountRepository:
    """Repository for accounts (balances are written by TransactionRepository only)"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(
        self,
        user_id: int,
        name: str,
        currency: str,
        initial_balance: float = 0.0,
    ) -> Account:
        """Persist account with current balance starting at the initial balance"""
        db_account = Account(
            user_id=user_id,
            name=name,
            currency=currency,
            initial_balance=initial_balance,
            current_balance=initial_balance,
        )
        self.db.add(db_account)
        self.db.flush()  # Get ID without committing
        return db_account

    def get_account(self, account_id: int) -> Optional[Account]:
        return self.db.query(Account).filter(Account.id == account_id).first()


class CategoryRepository:
    """Repository for user categories"""

    def __init__(self, db: Session):
        self.db = db

    def create_category(self, user_id: int, name: str) -> Category:
        db_category = Category(user_id=user_id, name=name)
        self.db.add(db_category)
        self.db.flush()
        return db_category

    def get_category(self, category_id: int) -> Optional[Category]:
        return self.db.query(Category).filter(Category.id == category_id).first()

    def missing_ids(self, category_ids: Iterable[int]) -> List[int]:
        """Return the subset of category_ids with no stored category"""
        wanted = set(category_ids)
        if not wanted:
            return []
        found = {
            row.id
            for row in self.db.query(Category.id).filter(Category.id.in_(wanted)).all()
        }
        return sorted(wanted - found)


class TransactionRepository:
    """
    Repository for ledger transactions.

    Every insert and delete here moves the owning account's current_balance by
    the same signed amount, in one UPDATE computed from the stored value.
    """

    def __init__(self, db: Session):
        self.db = db

    def _apply_balance_delta(self, account_id: int, delta: float) -> None:
        updated = (
            self.db.query(Account)
            .filter(Account.id == account_id)
            .update(
                {Account.current_balance: Account.current_balance + delta},
                synchronize_session="fetch",
            )
        )
        if updated == 0:
            raise NotFoundError("Account", account_id)

    def create_transaction(
        self,
        account_id: int,
        amount: float,
        transaction_type: str,
        description: Optional[str],
        transaction_date: datetime,
        splits: Sequence[CategorySplit] = (),
        recurring_id: Optional[int] = None,
    ) -> Transaction:
        """Insert transaction and its split rows, then credit the account"""
        db_transaction = Transaction(
            account_id=account_id,
            amount=amount,
            transaction_type=transaction_type,
            description=description,
            transaction_date=transaction_date,
            recurring_id=recurring_id,
        )
        for split in splits:
            db_transaction.splits.append(
                TransactionCategory(category_id=split.category_id, amount=split.amount)
            )
        self.db.add(db_transaction)
        self.db.flush()

        self._apply_balance_delta(account_id, amount)
        return db_transaction

    def delete_transaction(self, db_transaction: Transaction) -> None:
        """Remove transaction with its split rows and reverse its signed amount"""
        account_id = db_transaction.account_id
        amount = db_transaction.amount

        self.db.delete(db_transaction)  # Split rows cascade
        self.db.flush()

        self._apply_balance_delta(account_id, -amount)

    def replace_transaction(
        self,
        db_transaction: Transaction,
        account_id: int,
        amount: float,
        transaction_type: str,
        description: Optional[str],
        transaction_date: datetime,
        splits: Sequence[CategorySplit],
    ) -> Transaction:
        """Rewrite a transaction in place, moving balances as delete + create would"""
        self._apply_balance_delta(db_transaction.account_id, -db_transaction.amount)

        # Old split rows must be gone before new ones reuse their category ids
        db_transaction.splits.clear()
        self.db.flush()

        db_transaction.account_id = account_id
        db_transaction.amount = amount
        db_transaction.transaction_type = transaction_type
        db_transaction.description = description
        db_transaction.transaction_date = transaction_date
        for split in splits:
            db_transaction.splits.append(
                TransactionCategory(category_id=split.category_id, amount=split.amount)
            )
        self.db.flush()

        self._apply_balance_delta(account_id, amount)
        return db_transaction

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self.db.query(Transaction).filter(Transaction.id == transaction_id).first()

    def list_for_account(self, account_id: int, limit: int = 50) -> List[Transaction]:
        """Fetch most recent transactions for an account"""
        return (
            self.db.query(Transaction)
            .filter(Transaction.account_id == account_id)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .limit(limit)
            .all()
        )

    def sum_amounts(self, account_id: int) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0.0))
            .filter(Transaction.account_id == account_id)
            .scalar()
        )
        return float(total)


class RecurringRepository:
    """Repository for recurring transaction templates"""

    def __init__(self, db: Session):
        self.db = db

    def create_template(
        self,
        account_id: int,
        category_id: Optional[int],
        amount: float,
        transaction_type: str,
        description: Optional[str],
        frequency: str,
        start_date: datetime,
        end_date: Optional[datetime],
    ) -> RecurringTransaction:
        """Persist template; the first occurrence is the start date"""
        db_template = RecurringTransaction(
            account_id=account_id,
            category_id=category_id,
            amount=amount,
            transaction_type=transaction_type,
            description=description,
            frequency=frequency,
            start_date=start_date,
            end_date=end_date,
            next_occurrence=start_date,
            is_active=True,
        )
        self.db.add(db_template)
        self.db.flush()
        return db_template

    def get_template(self, template_id: int) -> Optional[RecurringTransaction]:
        return (
            self.db.query(RecurringTransaction)
            .filter(RecurringTransaction.id == template_id)
            .first()
        )

    def list_templates(self, account_id: Optional[int] = None) -> List[RecurringTransaction]:
        query = self.db.query(RecurringTransaction)
        if account_id is not None:
            query = query.filter(RecurringTransaction.account_id == account_id)
        return query.order_by(RecurringTransaction.id).all()

    def due_templates(self, now: datetime) -> List[RecurringTransaction]:
        """Active templates whose next occurrence has arrived and is within the end date"""
        return (
            self.db.query(RecurringTransaction)
            .filter(RecurringTransaction.is_active.is_(True))
            .filter(RecurringTransaction.next_occurrence <= now)
            .filter(
                or_(
                    RecurringTransaction.end_date.is_(None),
                    RecurringTransaction.next_occurrence <= RecurringTransaction.end_date,
                )
            )
            .order_by(RecurringTransaction.id)
            .all()
        )

    def delete_template(self, db_template: RecurringTransaction) -> None:
        self.db.delete(db_template)
        self.db.flush()


def _to_quote(row: ExchangeRate) -> Optional[RateQuote]:
    try:
        return RateQuote(
            from_currency=CurrencyCode.parse(row.from_currency),
            to_currency=CurrencyCode.parse(row.to_currency),
            rate=row.rate,
            rate_date=row.rate_date,
            source=row.source,
            rate_id=row.id,
        )
    except ValidationError:
        logger.warning(
            "Skipping exchange rate with unrecognized currency",
            extra={"rate_id": row.id, "from_currency": row.from_currency, "to_currency": row.to_currency},
        )
        return None


class RateRepository:
    """
    Append-only store of exchange-rate observations.

    Currencies are stored as received (bare code or "Name (CODE)") and
    normalized on read, so lookups narrow in SQL and match exactly in Python.
    """

    def __init__(self, db: Session):
        self.db = db

    def _quotes(self, rows: Iterable[ExchangeRate]) -> List[RateQuote]:
        return [quote for quote in (_to_quote(row) for row in rows) if quote is not None]

    def find_observation(
        self,
        from_code: str,
        to_code: str,
        rate_date: datetime,
    ) -> Optional[ExchangeRate]:
        """Stored row for the normalized pair at exactly rate_date, if any"""
        rows = self.db.query(ExchangeRate).filter(ExchangeRate.rate_date == rate_date).all()
        for row in rows:
            quote = _to_quote(row)
            if quote and quote.from_currency.code == from_code and quote.to_currency.code == to_code:
                return row
        return None

    def add_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        rate_date: datetime,
        source: str,
    ) -> tuple[ExchangeRate, bool]:
        """
        Append an observation unless one already exists for the pair at rate_date.

        Returns:
            (row, created) where created is False for a repeated observation
        """
        from_code = CurrencyCode.parse(from_currency).code
        to_code = CurrencyCode.parse(to_currency).code

        existing = self.find_observation(from_code, to_code, rate_date)
        if existing is not None:
            return existing, False

        db_rate = ExchangeRate(
            from_currency=from_currency.strip(),
            to_currency=to_currency.strip(),
            rate=rate,
            rate_date=rate_date,
            source=source,
        )
        self.db.add(db_rate)
        self.db.flush()
        return db_rate, True

    def load_quotes(self) -> List[RateQuote]:
        """All parseable observations, oldest first"""
        rows = self.db.query(ExchangeRate).order_by(ExchangeRate.rate_date, ExchangeRate.id).all()
        return self._quotes(rows)

    def load_table(self) -> RateTable:
        """Deduplicated working set: newest observation per ordered pair"""
        return RateTable(self.load_quotes())

    def latest_rate(self, from_code: str, to_code: str) -> Optional[RateQuote]:
        """Newest observation for one ordered pair"""
        rows = (
            self.db.query(ExchangeRate)
            .filter(ExchangeRate.from_currency.ilike(f"%{from_code}%"))
            .filter(ExchangeRate.to_currency.ilike(f"%{to_code}%"))
            .all()
        )
        latest = latest_by_pair(self._quotes(rows))
        return latest.get((from_code, to_code))

    def has_observations_on(self, base_code: str, day: date, source: Optional[str] = None) -> bool:
        """True when rates from base_code were already recorded on the given day"""
        start = datetime(day.year, day.month, day.day)
        query = (
            self.db.query(ExchangeRate)
            .filter(ExchangeRate.from_currency.ilike(f"%{base_code}%"))
            .filter(ExchangeRate.rate_date >= start)
            .filter(ExchangeRate.rate_date < start + timedelta(days=1))
        )
        if source is not None:
            query = query.filter(ExchangeRate.source == source)
        return any(quote.from_currency.code == base_code for quote in self._quotes(query.all()))
