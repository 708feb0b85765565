"""Prometheus metrics for monitoring ledger writes, conversions and recurring runs"""

from prometheus_client import Counter, Histogram

# Ledger metrics
transaction_counter = Counter(
    "ledger_transactions_total",
    "Ledger transaction writes",
    ["operation", "type"],  # operation: create | delete | update
)

# Conversion metrics
conversion_counter = Counter(
    "currency_conversions_total",
    "Currency conversions by resolution method",
    ["method"],  # identity | direct | inverse | triangulated
)

conversion_failure_counter = Counter(
    "currency_conversion_failures_total",
    "Conversions with no rate path",
)

rate_observation_counter = Counter(
    "exchange_rate_observations_total",
    "Exchange rate observations received",
    ["outcome"],  # stored | duplicate
)

# Recurring scheduler metrics
recurring_template_counter = Counter(
    "recurring_templates_processed_total",
    "Recurring templates handled by processing runs",
    ["outcome"],  # created | failed
)

recurring_run_histogram = Histogram(
    "recurring_run_duration_seconds",
    "Duration of recurring processing runs",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transaction(operation: str, transaction_type: str) -> None:
    transaction_counter.labels(operation=operation, type=transaction_type).inc()


def record_conversion(method: str) -> None:
    conversion_counter.labels(method=method).inc()


def record_rate_observation(created: bool) -> None:
    rate_observation_counter.labels(outcome="stored" if created else "duplicate").inc()


def record_recurring_run(created: int, failed: int, duration_seconds: float) -> None:
    """Record per-run template outcomes and latency"""
    if created:
        recurring_template_counter.labels(outcome="created").inc(created)
    if failed:
        recurring_template_counter.labels(outcome="failed").inc(failed)
    recurring_run_histogram.observe(duration_seconds)
