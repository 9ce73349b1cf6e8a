"""Prometheus metrics for the bucket blueprint validator."""

from prometheus_client import Counter, Histogram

# Validation run metrics
validation_runs_total = Counter(
    "bucket_blueprint_validation_runs_total",
    "Total number of validation runs",
    ["result"],
)

validation_duration_seconds = Histogram(
    "bucket_blueprint_validation_duration_seconds",
    "Duration of validation phases in seconds",
    ["phase"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Check and violation metrics
checks_total = Counter(
    "bucket_blueprint_checks_total",
    "Total number of checks evaluated",
    ["status"],
)

violations_total = Counter(
    "bucket_blueprint_violations_total",
    "Total number of violations reported",
    ["severity", "kind"],
)

# Render metrics
renders_total = Counter(
    "bucket_blueprint_renders_total",
    "Total number of composition renders",
    ["result"],
)
