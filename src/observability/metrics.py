"""Prometheus metrics for ingestion, retrieval and upstream calls.

Exposed by the API at /metrics.
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

DOCUMENTS_PROCESSED = Counter(
    "hr_documents_processed_total",
    "Uploaded documents processed",
    ["status"],  # success, error
)

CHUNKS_INDEXED = Counter(
    "hr_chunks_indexed_total",
    "Document chunks embedded and stored in the vector index",
)

CHAT_QUERIES = Counter(
    "hr_chat_queries_total",
    "Chat queries answered",
    ["confidence_level"],  # high, medium, low, none
)

UPSTREAM_LATENCY = Histogram(
    "hr_upstream_request_duration_seconds",
    "Latency of calls to external services",
    ["service", "operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

TOKENS_TOTAL = Counter(
    "hr_llm_tokens_total",
    "Tokens consumed by chat completions",
    ["model", "token_type"],  # token_type: input, output
)


@contextmanager
def track_latency(service: str, operation: str) -> Iterator[None]:
    """Record the duration of an upstream call, successful or not."""
    start = time.perf_counter()
    try:
        yield
    finally:
        UPSTREAM_LATENCY.labels(service=service, operation=operation).observe(
            time.perf_counter() - start
        )
