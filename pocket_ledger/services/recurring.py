"""Recurring scheduler - template lifecycle and due processing"""

import logging
import time
from datetime import datetime
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pocket_ledger.domain.exceptions import DomainException, NotFoundError, ValidationError
from pocket_ledger.domain.ledger import validate_amount
from pocket_ledger.domain.models import (
    CategorySplit,
    Frequency,
    ProcessingReport,
    TemplateFailure,
    TransactionType,
)
from pocket_ledger.domain.schedule import advance, is_due, is_past_end, validate_date_range
from pocket_ledger.infrastructure.database.models import RecurringTransaction
from pocket_ledger.infrastructure.database.repositories import RecurringRepository
from pocket_ledger.infrastructure.observability.logging import log_recurring_run
from pocket_ledger.infrastructure.observability.metrics import record_recurring_run
from pocket_ledger.services.ledger import LedgerService
from pocket_ledger.utils.date_utils import to_utc_naive, utc_now

logger = logging.getLogger(__name__)

UNSET = object()


class RecurringScheduler:
    """
    Maintains recurring templates and materializes the due ones.

    Template management methods flush only; process_due_recurring commits once
    per template so a failed or interrupted run never leaves a template
    half-advanced.
    """

    def __init__(self, db: Session, ledger: Optional[LedgerService] = None):
        self.db = db
        self.templates = RecurringRepository(db)
        self.ledger = ledger or LedgerService(db)

    # Template management

    def _validate_template_type(self, amount: float, transaction_type: str) -> TransactionType:
        txn_type = TransactionType.parse(transaction_type)
        if txn_type is TransactionType.TRANSFER:
            raise ValidationError("Recurring templates must be income or expense")
        return validate_amount(amount, txn_type)

    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is not None and self.ledger.categories.get_category(category_id) is None:
            raise NotFoundError("Category", category_id)

    def create_template(
        self,
        account_id: int,
        amount: float,
        transaction_type: str,
        frequency: str,
        start_date: datetime,
        end_date: Optional[datetime] = None,
        category_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> RecurringTransaction:
        """
        Register a template whose first occurrence is start_date.

        Raises:
            ValidationError: Bad type/frequency, sign mismatch or end_date not after start_date
            NotFoundError: Unknown account or category
        """
        txn_type = self._validate_template_type(amount, transaction_type)
        freq = Frequency.parse(frequency)
        start = to_utc_naive(start_date)
        end = to_utc_naive(end_date) if end_date else None
        validate_date_range(start, end)
        self.ledger.get_account(account_id)
        self._check_category(category_id)

        template = self.templates.create_template(
            account_id=account_id,
            category_id=category_id,
            amount=amount,
            transaction_type=txn_type.value,
            description=description,
            frequency=freq.value,
            start_date=start,
            end_date=end,
        )
        logger.info(
            "Recurring template created",
            extra={"template_id": template.id, "account_id": account_id, "frequency": freq.value},
        )
        return template

    def get_template(self, template_id: int) -> RecurringTransaction:
        template = self.templates.get_template(template_id)
        if template is None:
            raise NotFoundError("Recurring transaction", template_id)
        return template

    def list_templates(self, account_id: Optional[int] = None) -> List[RecurringTransaction]:
        return self.templates.list_templates(account_id)

    def update_template(
        self,
        template_id: int,
        amount: Optional[float] = None,
        transaction_type: Optional[str] = None,
        frequency: Optional[str] = None,
        description=UNSET,
        category_id=UNSET,
        end_date=UNSET,
    ) -> RecurringTransaction:
        """
        Change a template's terms. The schedule position (next_occurrence) is kept.

        Pass None for description, category_id or end_date to clear them.
        """
        template = self.get_template(template_id)

        new_amount = template.amount if amount is None else amount
        txn_type = self._validate_template_type(new_amount, transaction_type or template.transaction_type)
        freq = Frequency.parse(frequency or template.frequency)
        new_end = template.end_date if end_date is UNSET else (to_utc_naive(end_date) if end_date else None)
        validate_date_range(template.start_date, new_end)
        if category_id is not UNSET:
            self._check_category(category_id)
            template.category_id = category_id
        if description is not UNSET:
            template.description = description

        template.amount = new_amount
        template.transaction_type = txn_type.value
        template.frequency = freq.value
        template.end_date = new_end
        if is_past_end(template.next_occurrence, new_end):
            template.is_active = False

        self.db.flush()
        return template

    def pause_template(self, template_id: int) -> RecurringTransaction:
        template = self.get_template(template_id)
        template.is_active = False
        self.db.flush()
        return template

    def resume_template(self, template_id: int) -> RecurringTransaction:
        """Reactivate a paused template; one whose schedule already ended stays inactive"""
        template = self.get_template(template_id)
        if is_past_end(template.next_occurrence, template.end_date):
            raise ValidationError(
                f"Recurring transaction {template_id} ended on {template.end_date.isoformat()}"
            )
        template.is_active = True
        self.db.flush()
        return template

    def delete_template(self, template_id: int) -> None:
        """Remove a template; transactions it already produced are kept"""
        template = self.get_template(template_id)
        self.templates.delete_template(template)

    def due_templates(self, now: Optional[datetime] = None) -> List[RecurringTransaction]:
        """Templates that a processing run at `now` would materialize, by ascending id"""
        return self.templates.due_templates(to_utc_naive(now) if now else utc_now())

    # Processing

    def _materialize(self, template_id: int, run_at: datetime) -> Optional[tuple[int, bool]]:
        template = self.get_template(template_id)
        if not is_due(template, run_at):
            # Changed since the due set was read
            return None

        splits = []
        if template.category_id is not None:
            splits.append(CategorySplit(category_id=template.category_id, amount=template.amount))

        transaction = self.ledger.create_transaction(
            account_id=template.account_id,
            amount=template.amount,
            transaction_type=template.transaction_type,
            description=template.description,
            transaction_date=template.next_occurrence,
            splits=splits,
            recurring_id=template.id,
        )

        template.next_occurrence = advance(template.next_occurrence, template.frequency)
        deactivated = is_past_end(template.next_occurrence, template.end_date)
        if deactivated:
            template.is_active = False
        self.db.flush()

        return transaction.id, deactivated

    def process_due_recurring(self, now: Optional[datetime] = None) -> ProcessingReport:
        """
        Materialize every due template once.

        Flow:
        1. Snapshot the due set at `now` (ascending id)
        2. Per template: create the transaction dated at next_occurrence, advance
           next_occurrence by one frequency step, deactivate when the new value is
           past end_date, commit
        3. A failing template is rolled back (not advanced), reported and skipped

        Templates behind by several periods advance one period per run.

        Raises:
            SQLAlchemyError: Storage failures other than integrity violations
        """
        run_at = to_utc_naive(now) if now else utc_now()
        start_time = time.time()

        due_ids = [template.id for template in self.templates.due_templates(run_at)]
        report = ProcessingReport(run_at=run_at, due=len(due_ids))

        for template_id in due_ids:
            try:
                outcome = self._materialize(template_id, run_at)
                self.db.commit()
            except (DomainException, IntegrityError) as e:
                self.db.rollback()
                report.failures.append(TemplateFailure(template_id=template_id, reason=str(e)))
                logger.warning(
                    f"Recurring template failed: {e}",
                    extra={"template_id": template_id},
                )
                continue
            except Exception:
                self.db.rollback()
                raise

            if outcome is None:
                continue
            transaction_id, deactivated = outcome
            report.processed += 1
            report.created_transaction_ids.append(transaction_id)
            if deactivated:
                report.deactivated_template_ids.append(template_id)

        duration = time.time() - start_time
        record_recurring_run(report.transactions_created, report.failed, duration)
        log_recurring_run(report, duration * 1000)
        return report
