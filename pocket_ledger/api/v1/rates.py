"""Exchange-rate endpoints - observations, latest rates and conversion"""

import logging
from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from pocket_ledger.api.v1.schemas import (
    ConversionResponse,
    LatestRatesResponse,
    RateCreateRequest,
    RateQuoteSchema,
    RateResponse,
)
from pocket_ledger.api.dependencies import get_currency_service, get_request_id, to_http_error
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.domain.models import CurrencyCode
from pocket_ledger.infrastructure.database.session import get_db
from pocket_ledger.services.currency import CurrencyService

router = APIRouter()


@router.post("/rates", response_model=RateResponse, status_code=201)
def add_rate(
    request_body: RateCreateRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    currency: CurrencyService = Depends(get_currency_service),
):
    """Append a rate observation; a repeat at the same timestamp returns the stored row with 200"""
    request_id = get_request_id(request)
    try:
        row, created = currency.add_rate(
            request_body.from_currency,
            request_body.to_currency,
            request_body.rate,
            request_body.rate_date,
            request_body.source,
        )
        db.commit()
    except DomainException as e:
        db.rollback()
        logging.warning(f"Rate rejected: {e}", extra={"request_id": request_id})
        raise to_http_error(e)

    if not created:
        response.status_code = 200

    return RateResponse(
        id=row.id,
        from_currency=row.from_currency,
        to_currency=row.to_currency,
        rate=row.rate,
        rate_date=row.rate_date,
        source=row.source,
        created=created,
    )


@router.get("/rates/latest", response_model=LatestRatesResponse)
def latest_rates(
    base: str = Query(..., description="Base currency code or display name"),
    currency: CurrencyService = Depends(get_currency_service),
):
    """Newest stored rate from the base currency to every known target"""
    try:
        base_code = CurrencyCode.parse(base)
        quotes = currency.latest_rates_for(base_code.code)
    except DomainException as e:
        raise to_http_error(e)

    return LatestRatesResponse(
        base_currency=base_code.code,
        rates=[
            RateQuoteSchema(
                to_currency=q.to_currency.code,
                rate=q.rate,
                rate_date=q.rate_date,
                source=q.source,
            )
            for q in quotes
        ],
    )


@router.get("/rates/convert", response_model=ConversionResponse)
def convert(
    amount: float = Query(...),
    from_currency: str = Query(...),
    to_currency: str = Query(...),
    currency: CurrencyService = Depends(get_currency_service),
):
    """
    Convert an amount between two currencies.

    Returns 404 when no direct, inverse or triangulated rate exists.
    """
    try:
        result = currency.convert(amount, from_currency, to_currency)
    except DomainException as e:
        raise to_http_error(e)

    return ConversionResponse(
        from_currency=result.from_currency.code,
        to_currency=result.to_currency.code,
        amount=result.amount,
        converted_amount=result.converted_amount,
        rate=result.rate,
        method=result.method,
        path=result.path,
    )
