"""
Batch cleaning pipeline orchestration.

Coordinates the flow: import → validate → clean → quality check → export
"""

import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, Field
from pyspark.sql import DataFrame, SparkSession

from clinical_pipeline.batch.readers import CSVReader
from clinical_pipeline.batch.stages import (
    CategoricalStandardize,
    Deduplicate,
    MissingValueReport,
    RangeFilter,
    RequireKey,
    Stage,
    ValidationChecks,
)
from clinical_pipeline.batch.writers import AuditTrailWriter, CSVWriter, QualityReportWriter
from clinical_pipeline.core.exceptions import FatalStageError, PipelineCancelled
from clinical_pipeline.core.models import AuditLog, QualityMetrics, StageResult
from clinical_pipeline.core.rules import PipelineConfig
from clinical_pipeline.observability import metrics
from clinical_pipeline.observability.logger import get_logger, log_operation
from clinical_pipeline.quality import compute_quality_metrics

logger = get_logger(__name__)


class PipelineState(str, Enum):
    """Pipeline lifecycle. FAILED is terminal and reachable from any step."""

    PENDING = "pending"
    IMPORTED = "imported"
    VALIDATED = "validated"
    CLEANED = "cleaned"
    QUALITY_CHECKED = "quality_checked"
    EXPORTED = "exported"
    FAILED = "failed"


class PipelineRunResult(BaseModel):
    """
    Outcome of a successful run.

    Attributes:
        run_id: Run-scoped identifier shared by all persisted artifacts
        state: Final state (EXPORTED)
        audit_log: Finalized audit log
        metrics: Quality metrics of the cleaned dataset
        dataset: Cleaned DataFrame
        output_path: Cleaned CSV
        audit_path: Persisted audit trail
        report_paths: Quality report name -> path
    """

    run_id: str
    state: PipelineState
    audit_log: AuditLog
    metrics: QualityMetrics
    dataset: Any = Field(default=None, exclude=True)
    output_path: Path
    audit_path: Path
    report_paths: Dict[str, Path] = Field(default_factory=dict)

    class Config:
        arbitrary_types_allowed = True


class PipelineRunner:
    """
    Runs the cleaning stages in their fixed order over one dataset.

    Flow:
    1. Import: read the raw CSV
    2. Validate: read-only checks (missing, duplicates, range, categories)
    3. Clean: Deduplicate → RequireKey → RangeFilter → CategoricalStandardize
    4. Quality check: missing value report and quality metrics
    5. Export: cleaned CSV and quality reports

    Deduplicate runs before the filters so a duplicated invalid row is
    counted once; standardization runs after all filtering.

    A fatal error moves the runner to FAILED, persists the audit log built so
    far and re-raises; nothing is exported. A missing input file is raised
    before the audit log exists.
    """

    STEPS = ("import", "validate", "clean", "quality_check", "export")

    def __init__(
        self,
        spark: SparkSession,
        config: Optional[PipelineConfig] = None,
        audit_writer: Optional[AuditTrailWriter] = None,
        report_writer: Optional[QualityReportWriter] = None,
    ):
        """
        Initialize pipeline runner.

        Args:
            spark: Active Spark session
            config: Rule parameters (defaults when None)
            audit_writer: Audit trail sink (config.audit_dir when None)
            report_writer: Quality report sink (config.report_dir when None)
        """
        self.spark = spark
        self.config = config or PipelineConfig()
        self.reader = CSVReader(spark)
        self.csv_writer = CSVWriter()
        self.audit_writer = audit_writer or AuditTrailWriter(self.config.audit_dir)
        self.report_writer = report_writer or QualityReportWriter(self.config.report_dir)

        self.state = PipelineState.PENDING
        self.audit_log: Optional[AuditLog] = None
        self.audit_path: Optional[Path] = None
        self._stop_requested = threading.Event()

    def cleaning_stages(self) -> List[Stage]:
        """Cleaning stages in execution order."""
        return [
            Deduplicate(),
            RequireKey(self.config.key_field),
            RangeFilter(self.config.range_field, self.config.range_min, self.config.range_max),
            CategoricalStandardize(self.config.category),
        ]

    def request_stop(self) -> None:
        """Ask the run to stop at the next step boundary. Safe from any thread."""
        self._stop_requested.set()

    def run(self, input_path: str | Path, output_path: str | Path) -> PipelineRunResult:
        """
        Run every step on input_path and export to output_path.

        Returns:
            PipelineRunResult of the exported run

        Raises:
            InputNotFound: If input_path does not exist
            FatalStageError: If a step fails (incl. SchemaMismatch, PipelineCancelled)
        """
        self.state = PipelineState.PENDING
        self.audit_path = None
        input_path = str(input_path)

        df = self.reader.read(input_path, null_value=self.config.null_value)
        audit_log = AuditLog(source=input_path)
        self.audit_log = audit_log

        logger.info(
            f"Starting pipeline run {audit_log.run_id} for {input_path}",
            extra={"run_id": audit_log.run_id}
        )

        try:
            with self._step("import", PipelineState.IMPORTED, audit_log):
                records = df.count()
                self._record(audit_log, [
                    StageResult(
                        stage_name="Import",
                        rule_id="import",
                        records_before=records,
                        records_after=records,
                        severity="informational",
                        details={"source": input_path, "columns": df.columns, "total_variables": len(df.columns)},
                    )
                ])
                metrics.records_imported_total.inc(records)

            with self._step("validate", PipelineState.VALIDATED, audit_log):
                df = self._apply(ValidationChecks(self.config), df, audit_log)

            with self._step("clean", PipelineState.CLEANED, audit_log):
                for stage in self.cleaning_stages():
                    df = self._apply(stage, df, audit_log)

            with self._step("quality_check", PipelineState.QUALITY_CHECKED, audit_log):
                summary, result = MissingValueReport().evaluate(df)
                self._record(audit_log, [result])
                quality = compute_quality_metrics(df, audit_log, summary)
                metrics.record_quality(quality)

            with self._step("export", PipelineState.EXPORTED, audit_log):
                output = self.csv_writer.write(df, output_path, null_value=self.config.null_value)
                report_paths = self.report_writer.write(quality, summary, audit_log.run_id)

        except FatalStageError as e:
            if e.result is not None:
                self._record(audit_log, [e.result])
            self._fail(audit_log, e)
            raise
        except Exception as e:
            self._fail(audit_log, e)
            raise

        self.audit_path = self.audit_writer.persist(audit_log)
        metrics.record_run(PipelineState.EXPORTED.value)

        logger.info(
            f"Pipeline run {audit_log.run_id} exported {quality.total_records} of "
            f"{quality.records_imported} records",
            extra={"run_id": audit_log.run_id, "completeness_pct": quality.completeness_pct}
        )

        return PipelineRunResult(
            run_id=audit_log.run_id,
            state=self.state,
            audit_log=audit_log,
            metrics=quality,
            dataset=df,
            output_path=output,
            audit_path=self.audit_path,
            report_paths=report_paths,
        )

    @contextmanager
    def _step(self, step: str, reached: PipelineState, audit_log: AuditLog) -> Iterator[None]:
        """Run one step; on success move to `reached`."""
        if self._stop_requested.is_set():
            raise PipelineCancelled(step)

        with log_operation(step, logger=logger, run_id=audit_log.run_id) as operation:
            yield

        metrics.record_step_duration(step, operation.duration)
        self.state = reached

    def _apply(self, stage: Stage, df: DataFrame, audit_log: AuditLog) -> DataFrame:
        df, results = stage.apply(df)
        self._record(audit_log, results)
        return df

    @staticmethod
    def _record(audit_log: AuditLog, results: List[StageResult]) -> None:
        audit_log.extend(results)
        metrics.record_stage_results(results)

    def _fail(self, audit_log: AuditLog, error: Exception) -> None:
        """Move to FAILED and persist the partial audit trail."""
        failed_after = self.state
        self.state = PipelineState.FAILED
        try:
            self.audit_path = self.audit_writer.persist(audit_log)
        except OSError as persist_error:
            self.audit_path = None
            logger.error(
                f"Could not persist audit trail for failed run {audit_log.run_id}: {persist_error}",
                extra={"run_id": audit_log.run_id},
                exc_info=True,
            )
        metrics.record_run(PipelineState.FAILED.value)

        logger.error(
            f"Pipeline run {audit_log.run_id} failed after state '{failed_after.value}': {error}",
            extra={"run_id": audit_log.run_id, "audit_path": str(self.audit_path)}
        )
