"""Prometheus metrics for monitoring boleto issuance, bank calls and the accrual batch"""

from prometheus_client import Counter, Histogram

# Issuance metrics
issuance_counter = Counter(
    "receivables_issuance_total",
    "Boleto issuance attempts by outcome",
    ["provider", "outcome"],  # issued | error
)

# Bank API metrics
bank_request_latency_histogram = Histogram(
    "bank_request_latency_seconds",
    "Bank issuance API response time",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

token_refresh_counter = Counter(
    "bank_token_refresh_total",
    "OAuth2 tokens obtained from the bank",
    ["provider"],
)

# Accrual batch metrics
status_sweep_counter = Counter(
    "receivables_status_sweep_total",
    "Installments moved from PENDING to OVERDUE",
)

accrual_updated_counter = Counter(
    "receivables_accrual_updated_total",
    "Installments whose overdue amount was rewritten",
)

accrual_failure_counter = Counter(
    "receivables_accrual_failures_total",
    "Installments skipped because the overdue computation failed",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_issuance(provider: str, success: bool) -> None:
    """Record issuance outcome for monitoring bank failure rates"""
    outcome = "issued" if success else "error"
    issuance_counter.labels(provider=provider, outcome=outcome).inc()
