"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from pocket_ledger.config import settings
from pocket_ledger.domain.models import ProcessingReport


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_recurring_run(report: ProcessingReport, duration_ms: float) -> None:
    """Log one summary record per recurring processing run"""
    level = logging.WARNING if report.failures else logging.INFO
    logging.getLogger("pocket_ledger.recurring").log(
        level,
        "Recurring processing completed",
        extra={
            "step": "recurring_run_complete",
            "run_at": report.run_at.isoformat(),
            "due": report.due,
            "processed": report.processed,
            "transactions_created": report.transactions_created,
            "deactivated_template_ids": report.deactivated_template_ids,
            "failed_template_ids": [f.template_id for f in report.failures],
            "duration_ms": duration_ms,
        },
    )
