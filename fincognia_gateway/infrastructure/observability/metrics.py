"""Prometheus metrics for ingestion outcomes, semantic parser health and forecast risk"""

from prometheus_client import Counter, Histogram

from fincognia_gateway.domain.models import IngestionSummary

# Ingestion metrics
ingestion_message_counter = Counter(
    "fincognia_ingested_messages_total",
    "Messages seen by the ingestion pipeline",
    ["outcome"],  # saved | skipped_by_llm | no_amount | error | non_candidate
)

ingestion_run_counter = Counter(
    "fincognia_ingestion_runs_total",
    "Ingestion runs completed",
)

# Semantic parser metrics
semantic_parser_latency_histogram = Histogram(
    "semantic_parser_latency_seconds",
    "Semantic parser batch response time",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

semantic_parser_failure_counter = Counter(
    "semantic_parser_failures_total",
    "Semantic parser batches that fell back to regex-only extraction",
)

# Analytics metrics
forecast_risk_counter = Counter(
    "fincognia_forecast_risk_total",
    "Forecasts produced by risk level",
    ["period", "risk_level"],
)

recurring_pattern_counter = Counter(
    "fincognia_recurring_patterns_total",
    "Recurring patterns detected",
    ["frequency"],  # weekly | monthly | yearly
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_ingestion(summary: IngestionSummary) -> None:
    """Record per-outcome message counts for one ingestion run"""
    ingestion_run_counter.inc()
    outcomes = {
        "saved": summary.saved,
        "skipped_by_llm": summary.skipped_by_llm,
        "no_amount": summary.no_amount,
        "error": summary.errors,
        "non_candidate": summary.total - summary.candidates,
    }
    for outcome, count in outcomes.items():
        if count > 0:
            ingestion_message_counter.labels(outcome=outcome).inc(count)
