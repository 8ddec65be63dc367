"""
Prometheus metrics for the file format adapter layer

Counts decoded and encoded records per format, malformed inputs and
per-record encode failures, and times sink preparation.
"""
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Private registry so embedding hosts keep control of their default registry
REGISTRY = CollectorRegistry()


# =======================
# READ PATH
# =======================

records_decoded_total = Counter(
    name="file_formats_records_decoded_total",
    documentation="Total number of records decoded from input splits",
    labelnames=["format"],
    registry=REGISTRY,
)

malformed_inputs_total = Counter(
    name="file_formats_malformed_inputs_total",
    documentation="Total number of raw values that failed to decode",
    labelnames=["format"],
    registry=REGISTRY,
)

splits_read_total = Counter(
    name="file_formats_splits_read_total",
    documentation="Total number of file splits opened by record readers",
    labelnames=["format"],
    registry=REGISTRY,
)

# =======================
# WRITE PATH
# =======================

records_encoded_total = Counter(
    name="file_formats_records_encoded_total",
    documentation="Total number of records transformed into output key/value pairs",
    labelnames=["format", "reference_name"],
    registry=REGISTRY,
)

encode_failures_total = Counter(
    name="file_formats_encode_failures_total",
    documentation="Total number of records rejected by the output formatter",
    labelnames=["format", "reference_name"],
    registry=REGISTRY,
)

prepare_run_duration_seconds = Histogram(
    name="file_formats_prepare_run_duration_seconds",
    documentation="Time spent preparing a sink run in seconds",
    labelnames=["format"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
    registry=REGISTRY,
)


def record_decoded(format_name: str, count: int = 1) -> None:
    records_decoded_total.labels(format=format_name).inc(count)


def record_malformed(format_name: str) -> None:
    malformed_inputs_total.labels(format=format_name).inc()


def record_split_opened(format_name: str) -> None:
    splits_read_total.labels(format=format_name).inc()


def record_encoded(format_name: str, reference_name: str) -> None:
    records_encoded_total.labels(format=format_name, reference_name=reference_name).inc()


def record_encode_failure(format_name: str, reference_name: str) -> None:
    encode_failures_total.labels(format=format_name, reference_name=reference_name).inc()


def observe_prepare_run(format_name: str, duration_seconds: float) -> None:
    prepare_run_duration_seconds.labels(format=format_name).observe(duration_seconds)


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus exposition format

    Returns:
        Metrics data as bytes
    """
    return generate_latest(REGISTRY)


def get_sample_value(name: str, labels: dict[str, str]) -> float | None:
    """Read a single sample from the registry (used by tests and the CLI)."""
    return REGISTRY.get_sample_value(name, labels)
