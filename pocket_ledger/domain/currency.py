"""Currency conversion engine - direct, inverse and hub-triangulated rates"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from pocket_ledger.domain.models import ConvertedAmount, CurrencyCode, RateQuote
from pocket_ledger.domain.exceptions import NoRatePathError

DEFAULT_HUBS = ("USD", "EUR", "CAD", "GBP")

PairKey = Tuple[str, str]


def _is_newer(candidate: RateQuote, current: RateQuote) -> bool:
    if candidate.rate_date != current.rate_date:
        return candidate.rate_date > current.rate_date
    return candidate.rate_id > current.rate_id


def latest_by_pair(quotes: Iterable[RateQuote]) -> Dict[PairKey, RateQuote]:
    """
    Keep only the newest observation per ordered (from, to) pair.

    Stale duplicate scrapes never shadow newer data and never appear twice.
    Equal timestamps resolve to the row inserted last.
    """
    latest: Dict[PairKey, RateQuote] = {}
    for quote in quotes:
        key = (quote.from_currency.code, quote.to_currency.code)
        current = latest.get(key)
        if current is None or _is_newer(quote, current):
            latest[key] = quote
    return latest


class RateTable:
    """In-memory view of the latest rate for every known currency pair"""

    def __init__(self, quotes: Iterable[RateQuote] = ()):
        self._latest = latest_by_pair(quotes)

    def __len__(self) -> int:
        return len(self._latest)

    def get(self, from_code: str, to_code: str) -> Optional[RateQuote]:
        return self._latest.get((from_code, to_code))

    def for_base(self, base_code: str) -> List[RateQuote]:
        quotes = [q for (src, _), q in self._latest.items() if src == base_code]
        return sorted(quotes, key=lambda q: q.to_currency.code)


def single_hop_factor(table: RateTable, from_code: str, to_code: str) -> Optional[Tuple[float, str]]:
    """
    Factor converting one unit of from_code into to_code using one stored row.

    Returns (factor, method) where method is "direct" or "inverse", or None.
    A zero inverse rate is skipped rather than divided by.
    """
    direct = table.get(from_code, to_code)
    if direct is not None:
        return direct.rate, "direct"

    inverse = table.get(to_code, from_code)
    if inverse is not None and inverse.rate != 0:
        return 1.0 / inverse.rate, "inverse"

    return None


def convert(
    amount: float,
    from_currency,
    to_currency,
    table: RateTable,
    hubs: Sequence[str] = DEFAULT_HUBS,
) -> ConvertedAmount:
    """
    Convert amount between two currencies.

    Order of attempts (first success wins):
    1. Identity: same normalized code, amount returned unchanged
    2. Direct row from -> to: amount * rate
    3. Inverse row to -> from: amount / rate
    4. Triangulation through each hub in priority order, each leg direct or inverse

    Raises:
        NoRatePathError: If no path connects the two currencies
        ValidationError: If either currency cannot be normalized
    """
    source = CurrencyCode.parse(from_currency)
    target = CurrencyCode.parse(to_currency)

    if source == target:
        return ConvertedAmount(amount, amount, source, target, 1.0, "identity", [source.code])

    hop = single_hop_factor(table, source.code, target.code)
    if hop is not None:
        factor, method = hop
        if method == "direct":
            converted = amount * factor
        else:
            converted = amount / table.get(target.code, source.code).rate
        return ConvertedAmount(amount, converted, source, target, factor, method, [source.code, target.code])

    for hub in hubs:
        hub_code = CurrencyCode.parse(hub).code
        if hub_code in (source.code, target.code):
            continue

        first_leg = single_hop_factor(table, source.code, hub_code)
        if first_leg is None:
            continue
        second_leg = single_hop_factor(table, hub_code, target.code)
        if second_leg is None:
            continue

        factor = first_leg[0] * second_leg[0]
        converted = amount * first_leg[0] * second_leg[0]
        return ConvertedAmount(
            amount, converted, source, target, factor, "triangulated", [source.code, hub_code, target.code]
        )

    raise NoRatePathError(source.code, target.code)
