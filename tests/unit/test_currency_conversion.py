"""Unit tests for currency conversion over an in-memory rate table"""

import pytest
from datetime import datetime
from pocket_ledger.domain.currency import RateTable, convert, latest_by_pair, single_hop_factor
from pocket_ledger.domain.exceptions import ConversionError, NoRatePathError, ValidationError


JUNE_1 = datetime(2024, 6, 1, 12, 0)
JUNE_2 = datetime(2024, 6, 2, 12, 0)


def test_identity_needs_no_rates():
    """Same-currency conversion works against an empty table"""
    result = convert(123.45, "JPY", "jpy", RateTable())

    assert result.converted_amount == 123.45
    assert result.method == "identity"
    assert result.rate == 1.0


def test_identity_across_display_names():
    result = convert(10.0, "US Dollar (USD)", "usd", RateTable())
    assert result.converted_amount == 10.0
    assert result.method == "identity"


def test_direct_rate(quote):
    table = RateTable([quote("USD", "EUR", 0.9, JUNE_1)])

    result = convert(100.0, "USD", "EUR", table)

    assert result.method == "direct"
    assert result.converted_amount == pytest.approx(90.0)
    assert result.path == ["USD", "EUR"]


def test_inverse_fallback_divides(quote):
    """Only USD->EUR stored: EUR->USD divides by the stored rate"""
    table = RateTable([quote("USD", "EUR", 0.9, JUNE_1)])

    result = convert(45.0, "EUR", "USD", table)

    assert result.method == "inverse"
    assert result.converted_amount == pytest.approx(45.0 / 0.9)


def test_round_trip_through_inverse(quote):
    table = RateTable([quote("USD", "EUR", 0.87, JUNE_1)])

    there = convert(250.0, "USD", "EUR", table).converted_amount
    back = convert(there, "EUR", "USD", table).converted_amount

    assert back == pytest.approx(250.0)


def test_direct_preferred_over_inverse(quote):
    table = RateTable([
        quote("USD", "EUR", 0.9, JUNE_1),
        quote("EUR", "USD", 1.2, JUNE_1),
    ])

    result = convert(10.0, "EUR", "USD", table)

    assert result.method == "direct"
    assert result.converted_amount == pytest.approx(12.0)


def test_triangulation_through_usd(usd_hub_table):
    """CAD->EUR with only USD->CAD and USD->EUR: 100 / 1.35 * 0.90"""
    result = convert(100.0, "CAD", "EUR", usd_hub_table)

    assert result.method == "triangulated"
    assert result.path == ["CAD", "USD", "EUR"]
    assert result.converted_amount == pytest.approx(66.67, abs=0.005)
    assert result.converted_amount == pytest.approx(100 / 1.35 * 0.90)


def test_triangulation_respects_hub_order(quote):
    """Both USD and EUR could bridge GBP->JPY; USD comes first"""
    table = RateTable([
        quote("GBP", "USD", 1.25, JUNE_1),
        quote("USD", "JPY", 150.0, JUNE_1),
        quote("GBP", "EUR", 1.15, JUNE_1),
        quote("EUR", "JPY", 160.0, JUNE_1),
    ])

    result = convert(2.0, "GBP", "JPY", table)

    assert result.path == ["GBP", "USD", "JPY"]
    assert result.converted_amount == pytest.approx(2.0 * 1.25 * 150.0)


def test_triangulation_skips_hub_missing_a_leg(quote):
    table = RateTable([
        quote("GBP", "USD", 1.25, JUNE_1),  # USD has no leg to JPY
        quote("GBP", "EUR", 1.15, JUNE_1),
        quote("JPY", "EUR", 0.00625, JUNE_1),  # EUR->JPY via inverse
    ])

    result = convert(1.0, "GBP", "JPY", table)

    assert result.path == ["GBP", "EUR", "JPY"]
    assert result.converted_amount == pytest.approx(1.15 / 0.00625)


def test_custom_hub_list(quote):
    table = RateTable([
        quote("AUD", "CHF", 0.6, JUNE_1),
        quote("CHF", "SEK", 12.0, JUNE_1),
    ])

    with pytest.raises(NoRatePathError):
        convert(1.0, "AUD", "SEK", table)

    result = convert(1.0, "AUD", "SEK", table, hubs=["CHF"])
    assert result.converted_amount == pytest.approx(7.2)


def test_no_path_raises_conversion_error(quote):
    table = RateTable([quote("USD", "EUR", 0.9, JUNE_1)])

    with pytest.raises(ConversionError) as exc_info:
        convert(10.0, "JPY", "CHF", table)

    assert exc_info.value.from_currency == "JPY"
    assert exc_info.value.to_currency == "CHF"


def test_zero_inverse_rate_is_skipped(quote):
    table = RateTable([quote("EUR", "USD", 0.0, JUNE_1)])

    assert single_hop_factor(table, "USD", "EUR") is None
    with pytest.raises(NoRatePathError):
        convert(10.0, "USD", "EUR", table)


def test_unparseable_currency_is_validation_error():
    with pytest.raises(ValidationError):
        convert(10.0, "dollars", "EUR", RateTable())


def test_latest_by_pair_keeps_newest(quote):
    """Two (USD, EUR) rows at different timestamps collapse to the later one"""
    latest = latest_by_pair([
        quote("USD", "EUR", 0.95, JUNE_2, rate_id=1),
        quote("USD", "EUR", 0.90, JUNE_1, rate_id=2),
    ])

    assert list(latest) == [("USD", "EUR")]
    assert latest[("USD", "EUR")].rate == 0.95


def test_latest_by_pair_tie_goes_to_last_inserted(quote):
    latest = latest_by_pair([
        quote("USD", "EUR", 0.91, JUNE_1, rate_id=7),
        quote("USD", "EUR", 0.92, JUNE_1, rate_id=3),
    ])
    assert latest[("USD", "EUR")].rate == 0.91


def test_conversion_uses_latest_rate(quote):
    table = RateTable([
        quote("USD", "EUR", 0.80, JUNE_1, rate_id=1),
        quote("USD", "EUR", 0.90, JUNE_2, rate_id=2),
    ])

    assert len(table) == 1
    assert convert(10.0, "USD", "EUR", table).converted_amount == pytest.approx(9.0)


def test_display_names_normalize_to_same_pair(quote):
    table = RateTable([quote("US Dollar (USD)", "Euro (EUR)", 0.9, JUNE_1)])

    assert table.get("USD", "EUR").rate == 0.9
    assert convert(10.0, "usd", "EUR", table).method == "direct"


def test_for_base_sorted_by_target(usd_hub_table):
    quotes = usd_hub_table.for_base("USD")
    assert [q.to_currency.code for q in quotes] == ["CAD", "EUR"]
    assert usd_hub_table.for_base("EUR") == []
