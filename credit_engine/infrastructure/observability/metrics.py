"""Prometheus metrics for decision outcomes, fraud screening and scoring latency"""

from prometheus_client import Counter, Histogram

# Decision metrics
decision_counter = Counter(
    "credit_decision_total",
    "Total instant credit decisions made",
    ["outcome"],  # approve | decline | review
)

fraud_flag_counter = Counter(
    "credit_fraud_flags_total",
    "Fraud screenings by recommendation",
    ["recommendation"],  # proceed | investigate | reject
)

batch_failure_counter = Counter(
    "credit_batch_item_failures_total",
    "Batch items that failed to decide or score",
)

scoring_duration_histogram = Histogram(
    "credit_scoring_duration_seconds",
    "Time spent scoring a single application",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_decision(outcome: str) -> None:
    decision_counter.labels(outcome=outcome).inc()


def record_fraud_screening(recommendation: str) -> None:
    fraud_flag_counter.labels(recommendation=recommendation).inc()


def record_batch_failures(count: int) -> None:
    if count:
        batch_failure_counter.inc(count)
