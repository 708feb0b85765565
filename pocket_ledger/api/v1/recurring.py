"""Recurring transaction endpoints - templates and due processing"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from pocket_ledger.api.v1.schemas import (
    ProcessRequest,
    ProcessResponse,
    RecurringCreateRequest,
    RecurringResponse,
    TemplateFailureSchema,
)
from pocket_ledger.api.dependencies import get_recurring_scheduler, get_request_id, to_http_error
from pocket_ledger.domain.exceptions import DomainException
from pocket_ledger.infrastructure.database.session import get_db
from pocket_ledger.services.recurring import RecurringScheduler

router = APIRouter()


@router.get("/recurring", response_model=List[RecurringResponse])
def list_templates(
    account_id: Optional[int] = None,
    scheduler: RecurringScheduler = Depends(get_recurring_scheduler),
):
    return scheduler.list_templates(account_id)


@router.post("/recurring", response_model=RecurringResponse, status_code=201)
def create_template(
    request_body: RecurringCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    scheduler: RecurringScheduler = Depends(get_recurring_scheduler),
):
    """Register a recurring template; its first occurrence is the start date"""
    request_id = get_request_id(request)
    try:
        template = scheduler.create_template(
            account_id=request_body.account_id,
            amount=request_body.amount,
            transaction_type=request_body.transaction_type,
            frequency=request_body.frequency,
            start_date=request_body.start_date,
            end_date=request_body.end_date,
            category_id=request_body.category_id,
            description=request_body.description,
        )
        db.commit()
        db.refresh(template)
        return template

    except DomainException as e:
        db.rollback()
        logging.warning(f"Recurring template rejected: {e}", extra={"request_id": request_id})
        raise to_http_error(e)


@router.post("/recurring/process", response_model=ProcessResponse)
def process_due(
    request_body: Optional[ProcessRequest] = None,
    scheduler: RecurringScheduler = Depends(get_recurring_scheduler),
):
    """
    Materialize all due templates once.

    Per-template failures are reported in the body; the run itself succeeds.
    """
    now = request_body.now if request_body else None
    report = scheduler.process_due_recurring(now)

    return ProcessResponse(
        run_at=report.run_at,
        due=report.due,
        processed=report.processed,
        failed=report.failed,
        created_transaction_ids=report.created_transaction_ids,
        deactivated_template_ids=report.deactivated_template_ids,
        failures=[
            TemplateFailureSchema(template_id=f.template_id, reason=f.reason)
            for f in report.failures
        ],
    )


@router.post("/recurring/{template_id}/pause", response_model=RecurringResponse)
def pause_template(
    template_id: int,
    db: Session = Depends(get_db),
    scheduler: RecurringScheduler = Depends(get_recurring_scheduler),
):
    try:
        template = scheduler.pause_template(template_id)
        db.commit()
        db.refresh(template)
        return template
    except DomainException as e:
        db.rollback()
        raise to_http_error(e)


@router.post("/recurring/{template_id}/resume", response_model=RecurringResponse)
def resume_template(
    template_id: int,
    db: Session = Depends(get_db),
    scheduler: RecurringScheduler = Depends(get_recurring_scheduler),
):
    try:
        template = scheduler.resume_template(template_id)
        db.commit()
        db.refresh(template)
        return template
    except DomainException as e:
        db.rollback()
        raise to_http_error(e)


@router.delete("/recurring/{template_id}", status_code=204)
def delete_template(
    template_id: int,
    db: Session = Depends(get_db),
    scheduler: RecurringScheduler = Depends(get_recurring_scheduler),
):
    try:
        scheduler.delete_template(template_id)
        db.commit()
    except DomainException as e:
        db.rollback()
        raise to_http_error(e)
    return Response(status_code=204)
