"""Ledger endpoints - account balances and transaction writes"""

import logging
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from pocket_ledger.api.v1.schemas import (
    AccountResponse,
    TransactionCreateRequest,
    TransactionResponse,
    TransactionUpdateRequest,
)
from pocket_ledger.api.dependencies import get_ledger_service, get_request_id, to_http_error
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.infrastructure.database.session import get_db
from pocket_ledger.services.ledger import LedgerService

router = APIRouter()


def _splits(body) -> list:
    return [(split.category_id, split.amount) for split in body.splits]


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: int, ledger: LedgerService = Depends(get_ledger_service)):
    """Account with its current balance"""
    try:
        return ledger.get_account(account_id)
    except DomainException as e:
        raise to_http_error(e)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: int, ledger: LedgerService = Depends(get_ledger_service)):
    try:
        return ledger.get_transaction(transaction_id)
    except DomainException as e:
        raise to_http_error(e)


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request_body: TransactionCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Record a transaction and move the account balance by its signed amount.

    Validation failures (type, zero amount, sign, split totals) return 422;
    unknown account or category returns 404. Nothing is written on failure.
    """
    request_id = get_request_id(request)
    try:
        transaction = ledger.create_transaction(
            account_id=request_body.account_id,
            amount=request_body.amount,
            transaction_type=request_body.transaction_type,
            description=request_body.description,
            transaction_date=request_body.transaction_date,
            splits=_splits(request_body),
        )
        db.commit()
        db.refresh(transaction)
        return transaction

    except DomainException as e:
        db.rollback()
        logging.warning(f"Transaction rejected: {e}", extra={"request_id": request_id})
        raise to_http_error(e)


@router.put("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    request_body: TransactionUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger_service),
):
    request_id = get_request_id(request)
    try:
        transaction = ledger.update_transaction(
            transaction_id,
            account_id=request_body.account_id,
            amount=request_body.amount,
            transaction_type=request_body.transaction_type,
            description=request_body.description,
            transaction_date=request_body.transaction_date,
            splits=None if request_body.splits is None else _splits(request_body),
        )
        db.commit()
        db.refresh(transaction)
        return transaction

    except DomainException as e:
        db.rollback()
        logging.warning(f"Transaction update rejected: {e}", extra={"request_id": request_id})
        raise to_http_error(e)


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Delete a transaction and reverse its effect on the account balance"""
    try:
        ledger.delete_transaction(transaction_id)
        db.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_error(e)
    return Response(status_code=204)
