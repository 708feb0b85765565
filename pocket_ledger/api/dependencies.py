"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from pocket_ledger.domain.exceptions import ConversionError, DomainException, NotFoundError, ValidationError
from pocket_ledger.infrastructure.database.session import get_db
from pocket_ledger.services.currency import CurrencyService
from pocket_ledger.services.ledger import LedgerService
from pocket_ledger.services.recurring import RecurringScheduler


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    return LedgerService(db)


def get_currency_service(db: Session = Depends(get_db)) -> CurrencyService:
    return CurrencyService(db)


def get_recurring_scheduler(db: Session = Depends(get_db)) -> RecurringScheduler:
    return RecurringScheduler(db)


def to_http_error(exc: DomainException) -> HTTPException:
    """Map domain failures onto HTTP status codes"""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, ConversionError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
