"""
Quality report export: metrics summary (JSON) and missing values by variable (CSV).
"""

import csv
import json
from pathlib import Path

from clinical_pipeline.core.models import MissingValueSummary, QualityMetrics
from clinical_pipeline.observability.logger import get_logger

logger = get_logger(__name__)


class QualityReportWriter:
    """
    Writes run-scoped quality reports under a directory.
    """

    def __init__(self, report_dir: str | Path):
        self.report_dir = Path(report_dir)

    def write(
        self,
        metrics: QualityMetrics,
        missing: MissingValueSummary,
        run_id: str
    ) -> dict[str, Path]:
        """
        Write both reports.

        Returns:
            Report name -> written path
        """
        self.report_dir.mkdir(parents=True, exist_ok=True)

        metrics_path = self.report_dir / f"quality_metrics_{run_id}.json"
        payload = metrics.model_dump(mode="json")
        payload["issue_counts"] = metrics.issue_counts()
        payload["run_id"] = run_id
        with open(metrics_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

        missing_path = self.report_dir / f"missing_by_variable_{run_id}.csv"
        with open(missing_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["variable", "n_missing", "pct_missing"])
            for column in missing.columns:
                writer.writerow([column.variable, column.n_missing, column.pct_missing])

        logger.info(
            f"Quality reports written to {self.report_dir}",
            extra={"run_id": run_id, "metrics_path": str(metrics_path), "missing_path": str(missing_path)}
        )
        return {"quality_metrics": metrics_path, "missing_by_variable": missing_path}
