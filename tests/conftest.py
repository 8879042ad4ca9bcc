"""
Pytest configuration and fixtures for clinical-pipeline tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import csv
from pathlib import Path
from typing import Callable, Generator

import pytest
from pyspark.sql import SparkSession

from clinical_pipeline.batch.writers import AuditTrailWriter, QualityReportWriter
from clinical_pipeline.core.rules import PipelineConfig


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require Spark"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that run on a local Spark session"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that run the CLI"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    spark = (
        SparkSession.builder
        .appName("clinical-pipeline-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.adaptive.enabled", "true")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")  # Disable UI for tests
        .getOrCreate()
    )

    # Set log level to WARN to reduce test output noise
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    # Cleanup
    spark.stop()


@pytest.fixture(scope="function")
def spark(spark_session) -> SparkSession:
    """
    Function-scoped Spark session that clears cached data between tests

    Args:
        spark_session: Session-scoped Spark session

    Returns:
        SparkSession for individual test
    """
    spark_session.catalog.clearCache()
    return spark_session


# =======================
# DATA FIXTURES
# =======================

PATIENT_HEADER = ["Patient_ID", "Age", "Sex"]


@pytest.fixture
def write_csv(tmp_path) -> Callable[..., Path]:
    """
    Write rows to a CSV file under tmp_path

    Returns:
        Function (rows, header=PATIENT_HEADER, name="input.csv") -> Path
    """
    def _write(rows, header=PATIENT_HEADER, name="input.csv") -> Path:
        path = tmp_path / name
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture
def scenario_a_rows() -> list[list[str]]:
    """One duplicate, one missing key, one age out of range."""
    return [
        ["P001", "45", "M"],
        ["P002", "62", "F"],
        ["P002", "62", "F"],
        ["NA", "50", "F"],
        ["P004", "200", "M"],
    ]


@pytest.fixture
def patients_df(spark):
    """Small typed patient DataFrame (string key, integer age, string sex)."""
    return spark.createDataFrame(
        [
            ("P001", 45, "M"),
            ("P002", 62, "F"),
            ("P002", 62, "F"),
            (None, 50, "F"),
            ("P004", 200, "M"),
        ],
        "Patient_ID string, Age int, Sex string",
    )


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture
def pipeline_config(tmp_path) -> PipelineConfig:
    """Default rules with output directories under tmp_path"""
    return PipelineConfig(
        audit_dir=str(tmp_path / "audit_trails"),
        report_dir=str(tmp_path / "data_quality"),
    )


@pytest.fixture
def audit_writer(pipeline_config) -> AuditTrailWriter:
    return AuditTrailWriter(pipeline_config.audit_dir)


@pytest.fixture
def report_writer(pipeline_config) -> QualityReportWriter:
    return QualityReportWriter(pipeline_config.report_dir)
