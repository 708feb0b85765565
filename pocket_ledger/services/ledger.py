"""Ledger store - transaction writes and the account balance invariant"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from pocket_ledger.config import settings
from pocket_ledger.domain.exceptions import NotFoundError, ValidationError
from pocket_ledger.domain.ledger import parse_splits, validate_amount, validate_splits
from pocket_ledger.domain.models import CategorySplit, CurrencyCode
from pocket_ledger.infrastructure.database.models import Account, Category, Transaction
from pocket_ledger.infrastructure.database.repositories import (
    AccountRepository,
    CategoryRepository,
    TransactionRepository,
)
from pocket_ledger.infrastructure.observability.metrics import record_transaction
from pocket_ledger.utils.date_utils import to_utc_naive, utc_now

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Sole entry point for changing transactions and, through them, balances.

    Methods flush but never commit: the caller owns the unit of work and
    decides between commit and rollback.
    """

    def __init__(self, db: Session, split_tolerance: Optional[float] = None):
        self.db = db
        self.accounts = AccountRepository(db)
        self.categories = CategoryRepository(db)
        self.transactions = TransactionRepository(db)
        self.split_tolerance = settings.split_tolerance if split_tolerance is None else split_tolerance

    # Accounts and categories

    def create_account(
        self,
        user_id: int,
        name: str,
        currency: Optional[str] = None,
        initial_balance: float = 0.0,
    ) -> Account:
        code = CurrencyCode.parse(currency or settings.default_currency).code
        if not name or not name.strip():
            raise ValidationError("Account name cannot be empty")
        return self.accounts.create_account(user_id, name.strip(), code, initial_balance)

    def get_account(self, account_id: int) -> Account:
        account = self.accounts.get_account(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    def create_category(self, user_id: int, name: str) -> Category:
        if not name or not name.strip():
            raise ValidationError("Category name cannot be empty")
        return self.categories.create_category(user_id, name.strip())

    # Transactions

    def _check_splits(self, amount: float, splits: List[CategorySplit]) -> None:
        validate_splits(amount, splits, self.split_tolerance)
        missing = self.categories.missing_ids(split.category_id for split in splits)
        if missing:
            raise NotFoundError("Category", missing[0])

    def create_transaction(
        self,
        account_id: int,
        amount: float,
        transaction_type: str,
        description: Optional[str] = None,
        transaction_date: Optional[datetime] = None,
        splits: Iterable = (),
        recurring_id: Optional[int] = None,
    ) -> Transaction:
        """
        Record a transaction and add its signed amount to the account balance.

        Everything is validated before the first write, so a rejected request
        leaves the account untouched.

        Raises:
            ValidationError: Bad type, zero amount, sign/type mismatch or split mismatch
            NotFoundError: Unknown account or category
        """
        txn_type = validate_amount(amount, transaction_type)
        split_list = parse_splits(splits)
        self.get_account(account_id)
        self._check_splits(amount, split_list)

        when = to_utc_naive(transaction_date) if transaction_date else utc_now()
        transaction = self.transactions.create_transaction(
            account_id=account_id,
            amount=amount,
            transaction_type=txn_type.value,
            description=description,
            transaction_date=when,
            splits=split_list,
            recurring_id=recurring_id,
        )

        record_transaction("create", txn_type.value)
        logger.info(
            "Transaction created",
            extra={"transaction_id": transaction.id, "account_id": account_id, "amount": amount},
        )
        return transaction

    def get_transaction(self, transaction_id: int) -> Transaction:
        transaction = self.transactions.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    def list_transactions(self, account_id: int, limit: int = 50) -> List[Transaction]:
        self.get_account(account_id)
        return self.transactions.list_for_account(account_id, limit=limit)

    def delete_transaction(self, transaction_id: int) -> None:
        """
        Remove a transaction and its split rows, reversing its balance effect.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        transaction = self.get_transaction(transaction_id)
        txn_type = transaction.transaction_type
        account_id = transaction.account_id

        self.transactions.delete_transaction(transaction)

        record_transaction("delete", txn_type)
        logger.info(
            "Transaction deleted",
            extra={"transaction_id": transaction_id, "account_id": account_id},
        )

    def update_transaction(
        self,
        transaction_id: int,
        account_id: Optional[int] = None,
        amount: Optional[float] = None,
        transaction_type: Optional[str] = None,
        description: Optional[str] = None,
        transaction_date: Optional[datetime] = None,
        splits: Optional[Iterable] = None,
    ) -> Transaction:
        """
        Change a transaction, keeping its id.

        Balances move exactly as a delete followed by a create would: the old
        amount is reversed on the old account and the new amount applied to
        the (possibly different) new account. Omitted fields keep their current
        values; omitted splits are carried over and re-checked against the new
        amount.
        """
        current = self.get_transaction(transaction_id)

        new_account_id = current.account_id if account_id is None else account_id
        new_amount = current.amount if amount is None else amount
        new_type = validate_amount(new_amount, transaction_type or current.transaction_type)
        new_description = current.description if description is None else description
        new_date = current.transaction_date if transaction_date is None else to_utc_naive(transaction_date)
        if splits is None:
            new_splits = [CategorySplit(s.category_id, s.amount) for s in current.splits]
        else:
            new_splits = parse_splits(splits)

        self.get_account(new_account_id)
        self._check_splits(new_amount, new_splits)

        updated = self.transactions.replace_transaction(
            current,
            account_id=new_account_id,
            amount=new_amount,
            transaction_type=new_type.value,
            description=new_description,
            transaction_date=new_date,
            splits=new_splits,
        )

        record_transaction("update", new_type.value)
        logger.info(
            "Transaction updated",
            extra={"transaction_id": transaction_id, "account_id": new_account_id, "amount": new_amount},
        )
        return updated

    def recompute_balance(self, account_id: int) -> float:
        """Balance derived from stored rows, for auditing the cached current_balance"""
        account = self.get_account(account_id)
        return account.initial_balance + self.transactions.sum_amounts(account_id)
