"""Ledger entry rules - amount signs and category split totals"""

import math
from decimal import Decimal
from typing import Iterable, List, Sequence
from pocket_ledger.domain.models import CategorySplit, TransactionType
from pocket_ledger.domain.exceptions import ValidationError

DEFAULT_SPLIT_TOLERANCE = 0.01


def _decimal(value: float) -> Decimal:
    # Through str so 19.99 stays 19.99 instead of its binary expansion
    return Decimal(str(value))


def validate_amount(amount: float, transaction_type) -> TransactionType:
    """
    Check that a signed amount agrees with its transaction type.

    - income:   amount > 0
    - expense:  amount < 0
    - transfer: any non-zero amount

    Returns the parsed TransactionType.
    """
    txn_type = TransactionType.parse(transaction_type)

    if amount is None or not math.isfinite(amount):
        raise ValidationError(f"Transaction amount must be a finite number, got {amount}")
    if amount == 0:
        raise ValidationError("Transaction amount cannot be zero")
    if txn_type is TransactionType.INCOME and amount < 0:
        raise ValidationError(f"Income amount must be positive, got {amount}")
    if txn_type is TransactionType.EXPENSE and amount > 0:
        raise ValidationError(f"Expense amount must be negative, got {amount}")

    return txn_type


def validate_splits(
    amount: float,
    splits: Sequence[CategorySplit],
    tolerance: float = DEFAULT_SPLIT_TOLERANCE,
) -> None:
    """
    Split amounts must add up to the transaction amount within tolerance.

    A gap of exactly the tolerance is accepted. An empty split list is valid.
    """
    if not splits:
        return

    category_ids = [split.category_id for split in splits]
    if len(set(category_ids)) != len(category_ids):
        raise ValidationError("Each category may appear only once in a split")
    for split in splits:
        if split.amount is None or not math.isfinite(split.amount):
            raise ValidationError(
                f"Split amount for category {split.category_id} must be a finite number, got {split.amount}"
            )

    total = sum((_decimal(split.amount) for split in splits), Decimal("0"))
    gap = abs(_decimal(amount) - total)
    if gap > _decimal(tolerance):
        raise ValidationError(
            f"Category amounts ({total}) must sum to transaction amount ({_decimal(amount)})"
        )


def parse_splits(raw_splits: Iterable) -> List[CategorySplit]:
    """Accept CategorySplit objects, (category_id, amount) pairs or mappings"""
    splits = []
    for item in raw_splits or ():
        if isinstance(item, CategorySplit):
            splits.append(item)
        elif isinstance(item, dict):
            splits.append(CategorySplit(category_id=int(item["category_id"]), amount=float(item["amount"])))
        else:
            category_id, split_amount = item
            splits.append(CategorySplit(category_id=int(category_id), amount=float(split_amount)))
    return splits
