"""Prometheus metrics for the invoice editor API.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Auto-fill extraction outcomes and latency
- Document exports by format

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.openmetrics.exposition import CONTENT_TYPE_LATEST

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Auto-fill metrics
extraction_requests_total = Counter(
    "extraction_requests_total",
    "Total auto-fill extraction requests",
    ["status"],  # success, configuration, extraction, busy, empty_prompt
)

extraction_processing_duration_seconds = Histogram(
    "extraction_processing_duration_seconds",
    "Auto-fill extraction duration in seconds",
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0),
)

# Export metrics
invoice_exports_total = Counter(
    "invoice_exports_total",
    "Total invoice document exports",
    ["format"],  # pdf, print
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
