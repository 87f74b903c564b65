"""Prometheus metrics for Mongster.

Defines operational metrics for the capture pipeline.
"""

from prometheus_client import Counter, Histogram, Gauge

# SMTP acceptor
messages_accepted_total = Counter(
    "mongster_messages_accepted_total",
    "SMTP transactions handled by the acceptor",
    ["status"]  # status: accepted|rejected|deferred
)

# Mail store
messages_stored = Gauge(
    "mongster_messages_stored",
    "Number of messages currently held by the mail store"
)

messages_cleared_total = Counter(
    "mongster_messages_cleared_total",
    "Total messages removed by clear, truncate or tail"
)

store_operation_duration_seconds = Histogram(
    "mongster_store_operation_duration_seconds",
    "Time spent in mail store operations in seconds",
    ["operation"],  # insert|list|clear|count|truncate|tail|raw|ping
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

store_errors_total = Counter(
    "mongster_store_errors_total",
    "Mail store operations that failed with a database error",
    ["operation"]
)
