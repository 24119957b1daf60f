"""
Prometheus metrics collection for geofix

Counts points, violations and adjustments per run and times batches, so a
long correction run can be inspected from a metrics scrape or a text dump.
"""
from typing import Iterable

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from geofix.core.models import AdjustmentRecord, PointCorrectionResult, ValidationResult

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# POINT METRICS
# =======================

points_processed_total = Counter(
    name="geofix_points_processed_total",
    documentation="Total number of monitoring points processed",
    labelnames=["status"],  # status: success, error, skipped
    registry=REGISTRY,
)

point_processing_latency_seconds = Histogram(
    name="geofix_point_processing_latency_seconds",
    documentation="Time spent validating and correcting a single point",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

violations_total = Counter(
    name="geofix_violations_total",
    documentation="Total number of validation violations",
    labelnames=["validation_type", "severity"],
    registry=REGISTRY,
)

adjustments_total = Counter(
    name="geofix_adjustments_total",
    documentation="Total number of adjustments applied",
    labelnames=["kind", "axis"],
    registry=REGISTRY,
)

# =======================
# BATCH METRICS
# =======================

batch_duration_seconds = Histogram(
    name="geofix_batch_duration_seconds",
    documentation="Time spent processing one batch of points",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

batches_processed_total = Counter(
    name="geofix_batches_processed_total",
    documentation="Total number of batches processed",
    registry=REGISTRY,
)

memory_cleanups_total = Counter(
    name="geofix_memory_cleanups_total",
    documentation="Total number of explicit garbage collection passes",
    registry=REGISTRY,
)

partial_runs_total = Counter(
    name="geofix_partial_runs_total",
    documentation="Total number of runs stopped by the processing time budget",
    registry=REGISTRY,
)

unprocessed_points = Gauge(
    name="geofix_unprocessed_points",
    documentation="Points left unprocessed by the latest run",
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def get_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def record_validation_results(results: Iterable[ValidationResult]) -> None:
    """
    Count violations by validation type and severity.

    Args:
        results: Results of one point's validation
    """
    for result in results:
        if result.is_violation:
            violations_total.labels(
                validation_type=result.validation_type,
                severity=result.severity.value,
            ).inc()


def record_adjustments(records: Iterable[AdjustmentRecord]) -> None:
    for record in records:
        adjustments_total.labels(kind=record.kind.value, axis=record.axis.value).inc()


def record_point_result(result: PointCorrectionResult, duration_seconds: float) -> None:
    """
    Record the outcome of one point.

    Args:
        result: The point's correction result
        duration_seconds: Time spent on the point
    """
    points_processed_total.labels(status=result.status.value).inc()
    point_processing_latency_seconds.observe(duration_seconds)


def record_batch(duration_seconds: float) -> None:
    batches_processed_total.inc()
    batch_duration_seconds.observe(duration_seconds)


def record_memory_cleanup() -> None:
    memory_cleanups_total.inc()


def record_run_completion(completed: bool, unprocessed: int) -> None:
    """
    Record how a run ended.

    Args:
        completed: False when the run stopped on its time budget
        unprocessed: Number of points never started
    """
    if not completed:
        partial_runs_total.inc()
    unprocessed_points.set(unprocessed)
