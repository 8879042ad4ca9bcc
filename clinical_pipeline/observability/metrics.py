"""
Prometheus metrics collection for the clinical data cleaning pipeline

This module provides metrics instrumentation for monitoring
pipeline runs, stage effects and data quality.
"""
from pathlib import Path

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    write_to_textfile,
)

from clinical_pipeline.core.models import QualityMetrics, StageResult


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

pipeline_runs_total = Counter(
    name="pipeline_runs_total",
    documentation="Total number of pipeline runs by final state",
    labelnames=["status"],  # status: exported, failed
    registry=REGISTRY,
)

step_duration_seconds = Histogram(
    name="pipeline_step_duration_seconds",
    documentation="Time spent in each pipeline step in seconds",
    labelnames=["step"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

records_imported_total = Counter(
    name="pipeline_records_imported_total",
    documentation="Total number of raw records read",
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

stage_records_removed_total = Counter(
    name="pipeline_stage_records_removed_total",
    documentation="Records removed by cleaning stages",
    labelnames=["stage", "rule_id"],
    registry=REGISTRY,
)

rule_hits_total = Counter(
    name="pipeline_rule_hits_total",
    documentation="Records affected by rule evaluations",
    labelnames=["stage", "severity"],
    registry=REGISTRY,
)

dataset_completeness_pct = Gauge(
    name="pipeline_dataset_completeness_pct",
    documentation="Completeness of the last cleaned dataset in percent",
    registry=REGISTRY,
)

dataset_records = Gauge(
    name="pipeline_dataset_records",
    documentation="Rows in the last cleaned dataset",
    registry=REGISTRY,
)


def record_stage_results(results: list[StageResult]) -> None:
    """Count the effect of stage results."""
    for result in results:
        if result.records_removed:
            stage_records_removed_total.labels(stage=result.stage_name, rule_id=result.rule_id).inc(
                result.records_removed
            )
        if result.records_affected:
            rule_hits_total.labels(stage=result.stage_name, severity=result.severity).inc(
                result.records_affected
            )


def record_step_duration(step: str, seconds: float) -> None:
    step_duration_seconds.labels(step=step).observe(seconds)


def record_quality(metrics: QualityMetrics) -> None:
    dataset_completeness_pct.set(metrics.completeness_pct)
    dataset_records.set(metrics.total_records)


def record_run(status: str) -> None:
    pipeline_runs_total.labels(status=status).inc()


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus text format

    Returns:
        Metrics in Prometheus exposition format
    """
    return generate_latest(REGISTRY)


def write_metrics(path: str | Path) -> None:
    """Write current metrics to a node-exporter style text file."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(path), REGISTRY)
