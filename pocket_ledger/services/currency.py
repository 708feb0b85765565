"""Currency resolver - rate ingestion, latest-rate queries and conversion"""

import logging
import math
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence
from sqlalchemy.orm import Session

from pocket_ledger.config import settings
from pocket_ledger.domain import currency as conversion
from pocket_ledger.domain.exceptions import NoRatePathError, ValidationError
from pocket_ledger.domain.models import ConvertedAmount, CurrencyCode, RateQuote, RateSource
from pocket_ledger.infrastructure.database.models import ExchangeRate
from pocket_ledger.infrastructure.database.repositories import RateRepository
from pocket_ledger.infrastructure.observability.metrics import (
    conversion_failure_counter,
    record_conversion,
    record_rate_observation,
)
from pocket_ledger.utils.date_utils import to_utc_naive, utc_now

logger = logging.getLogger(__name__)


class CurrencyService:
    """Converts amounts between currencies over the stored rate observations"""

    def __init__(self, db: Session, hubs: Optional[Sequence[str]] = None):
        self.db = db
        self.rates = RateRepository(db)
        self.hubs = tuple(hubs if hubs is not None else settings.hub_currencies)

    def add_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        rate_date: Optional[datetime] = None,
        source: str = RateSource.MANUAL.value,
    ) -> tuple[ExchangeRate, bool]:
        """
        Append one observation.

        Returns (row, created); created is False when the pair already has an
        observation at the same timestamp.

        Raises:
            ValidationError: Non-positive rate, unknown source or unparseable currency
        """
        if rate is None or not math.isfinite(rate) or rate <= 0:
            raise ValidationError(f"Exchange rate must be a positive finite number, got {rate}")
        source_value = RateSource.parse(source).value
        when = to_utc_naive(rate_date) if rate_date else utc_now()

        row, created = self.rates.add_rate(from_currency, to_currency, rate, when, source_value)
        record_rate_observation(created)
        if not created:
            logger.info(
                "Duplicate exchange rate observation ignored",
                extra={"from_currency": from_currency, "to_currency": to_currency, "rate_date": when.isoformat()},
            )
        return row, created

    def add_rates(self, observations: Iterable[dict]) -> int:
        """Append a batch of observations (e.g. one scrape); returns how many were new"""
        stored = 0
        for observation in observations:
            _, created = self.add_rate(
                observation["from_currency"],
                observation["to_currency"],
                observation["rate"],
                observation.get("rate_date"),
                observation.get("source", RateSource.SCRAPER.value),
            )
            stored += int(created)
        return stored

    def latest_rate(self, from_currency: str, to_currency: str) -> Optional[RateQuote]:
        """Newest stored observation for the ordered pair"""
        source = CurrencyCode.parse(from_currency)
        target = CurrencyCode.parse(to_currency)
        return self.rates.latest_rate(source.code, target.code)

    def latest_rates_for(self, base_currency: str) -> List[RateQuote]:
        """Newest stored rate from base_currency to every known target, sorted by target"""
        base = CurrencyCode.parse(base_currency)
        return self.rates.load_table().for_base(base.code)

    def has_rates_for_day(self, base_currency: str, day: date, source: Optional[str] = None) -> bool:
        """Whether observations from base_currency were already recorded on day"""
        base = CurrencyCode.parse(base_currency)
        source_value = RateSource.parse(source).value if source else None
        return self.rates.has_observations_on(base.code, day, source_value)

    def convert(self, amount: float, from_currency: str, to_currency: str) -> ConvertedAmount:
        """
        Convert amount using direct, inverse, then hub-triangulated rates.

        Same-currency requests return immediately without reading the store.

        Raises:
            NoRatePathError: No path connects the currencies
            ValidationError: A currency cannot be normalized
        """
        source = CurrencyCode.parse(from_currency)
        target = CurrencyCode.parse(to_currency)

        if source == target:
            result = conversion.convert(amount, source, target, conversion.RateTable(), self.hubs)
        else:
            try:
                result = conversion.convert(amount, source, target, self.rates.load_table(), self.hubs)
            except NoRatePathError:
                conversion_failure_counter.inc()
                logger.warning(
                    "No exchange rate path",
                    extra={"from_currency": source.code, "to_currency": target.code},
                )
                raise

        record_conversion(result.method)
        return result

    def convert_or_none(self, amount: float, from_currency: str, to_currency: str) -> Optional[ConvertedAmount]:
        """Display helper: None instead of an error when no rate path exists"""
        try:
            return self.convert(amount, from_currency, to_currency)
        except NoRatePathError:
            return None
