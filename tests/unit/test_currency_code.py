"""Unit tests for currency code normalization and enum parsing"""

import pytest
from pocket_ledger.domain.models import CurrencyCode, Frequency, RateSource, TransactionType
from pocket_ledger.domain.exceptions import ValidationError


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("USD", "USD"),
        ("usd", "USD"),
        ("  eur ", "EUR"),
        ("Euro (EUR)", "EUR"),
        ("Canadian Dollar ( cad )", "CAD"),
        ("Pound (GBP) (was STG) (GBP)", "GBP"),
        ("Old (ABC) New (XYZ)", "XYZ"),
    ],
)
def test_parse_currency_code(raw: str, expected: str):
    assert CurrencyCode.parse(raw).code == expected


@pytest.mark.parametrize("raw", ["", "US", "Dollar", "US Dollar (US)", None, "12A"])
def test_parse_rejects_unrecognized(raw):
    with pytest.raises(ValidationError):
        CurrencyCode.parse(raw)


def test_currency_code_equality_and_str():
    """Display string and bare code compare equal once normalized"""
    assert CurrencyCode.parse("Japanese Yen (JPY)") == CurrencyCode.parse("jpy")
    assert str(CurrencyCode.parse("jpy")) == "JPY"


def test_parse_is_idempotent():
    code = CurrencyCode.parse("CHF")
    assert CurrencyCode.parse(code) is code


def test_transaction_type_parse():
    assert TransactionType.parse("Income") is TransactionType.INCOME
    assert TransactionType.parse(TransactionType.EXPENSE) is TransactionType.EXPENSE


def test_invalid_enum_values_rejected():
    with pytest.raises(ValidationError) as exc_info:
        Frequency.parse("fortnightly")
    assert "frequency" in str(exc_info.value)

    with pytest.raises(ValidationError):
        TransactionType.parse("refund")
    with pytest.raises(ValidationError):
        RateSource.parse("carrier pigeon")
