"""Domain models - pure Python dataclasses representing business entities"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List

from pocket_ledger.domain.exceptions import ValidationError

_PARENTHESIZED_CODE = re.compile(r"\(\s*([A-Za-z]{3})\s*\)")
_BARE_CODE = re.compile(r"^[A-Za-z]{3}$")


class _ParsableEnum(str, Enum):
    @classmethod
    def parse(cls, value):
        """Coerce a raw string into a member, raising ValidationError otherwise"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            label = re.sub(r"(?<!^)(?=[A-Z])", " ", cls.__name__).lower()
            allowed = ", ".join(member.value for member in cls)
            raise ValidationError(f"Invalid {label}: {value!r} (expected one of: {allowed})") from None


class TransactionType(_ParsableEnum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class Frequency(_ParsableEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RateSource(_ParsableEnum):
    API = "api"
    BANK = "bank"
    MANUAL = "manual"
    SCRAPER = "scraper"


@dataclass(frozen=True)
class CurrencyCode:
    """Normalized 3-letter currency code"""

    code: str

    @classmethod
    def parse(cls, raw) -> "CurrencyCode":
        """
        Extract the currency code from a bare code or a display string.

        "usd" -> USD, "Euro (EUR)" -> EUR. When several parenthesized codes
        appear, the last one wins.

        Raises:
            ValidationError: If no 3-letter code can be found
        """
        if isinstance(raw, CurrencyCode):
            return raw
        if raw is None:
            raise ValidationError("Currency is required")

        text = str(raw).strip()
        matches = _PARENTHESIZED_CODE.findall(text)
        if matches:
            return cls(matches[-1].upper())
        if _BARE_CODE.match(text):
            return cls(text.upper())
        raise ValidationError(f"Cannot extract a currency code from {raw!r}")

    def __str__(self) -> str:
        return self.code


@dataclass
class RateQuote:
    """Single exchange-rate observation with normalized currencies"""

    from_currency: CurrencyCode
    to_currency: CurrencyCode
    rate: float
    rate_date: datetime
    source: str
    rate_id: int = 0


@dataclass
class ConvertedAmount:
    """Outcome of a successful currency conversion"""

    amount: float
    converted_amount: float
    from_currency: CurrencyCode
    to_currency: CurrencyCode
    rate: float  # Effective factor applied to amount
    method: str  # identity | direct | inverse | triangulated
    path: List[str] = field(default_factory=list)


@dataclass
class CategorySplit:
    """Portion of a transaction's amount allocated to one category"""

    category_id: int
    amount: float


@dataclass
class TemplateFailure:
    """A recurring template that could not be processed"""

    template_id: int
    reason: str


@dataclass
class ProcessingReport:
    """Result of one recurring processing run"""

    run_at: datetime
    due: int = 0
    processed: int = 0
    created_transaction_ids: List[int] = field(default_factory=list)
    deactivated_template_ids: List[int] = field(default_factory=list)
    failures: List[TemplateFailure] = field(default_factory=list)

    @property
    def transactions_created(self) -> int:
        return len(self.created_transaction_ids)

    @property
    def failed(self) -> int:
        return len(self.failures)
