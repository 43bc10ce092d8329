from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

# Dedicated registry so that importing the package never touches the global one;
# applications can mount it next to their own collectors.
registry = CollectorRegistry()

calls_total = Counter(
    "memoize_calls_total",
    "Memoized calls by how they were answered",
    ["function", "result"],
    registry=registry,
)
fetches_total = Counter("memoize_fetches_total", "Fetches started", ["function"], registry=registry)
fetch_failures_total = Counter("memoize_fetch_failures_total", "Fetches that raised", ["function"], registry=registry)
on_error_failures_total = Counter(
    "memoize_on_error_failures_total", "on_error handlers that raised", ["function"], registry=registry
)
fetch_latency_seconds = Histogram(
    "memoize_fetch_latency_seconds",
    "Fetch latency seconds",
    ["function"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1, 5),
    registry=registry,
)
entries = Gauge("memoize_entries", "Cache entries held", ["function"], registry=registry)


def export_metrics() -> bytes:
    """Return the latest metrics payload (Prometheus text format)."""
    return generate_latest(registry)
