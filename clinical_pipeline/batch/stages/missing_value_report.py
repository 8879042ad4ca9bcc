"""
MissingValueReport stage: read-only per-column missing value counts.
"""

from pyspark.sql import DataFrame
from pyspark.sql import functions as F
from pyspark.sql.types import DoubleType, FloatType

from clinical_pipeline.core.models import ColumnMissing, MissingValueSummary, StageResult
from clinical_pipeline.core.validators import column_ref
from clinical_pipeline.observability.logger import get_logger

from .base import Stage

logger = get_logger(__name__)


def summarize_missing(df: DataFrame) -> MissingValueSummary:
    """
    Count missing cells per column in a single aggregation.

    Nulls are missing in every column; NaN is also missing in floating
    point columns.
    """
    conditions = []
    for field in df.schema.fields:
        condition = column_ref(field.name).isNull()
        if isinstance(field.dataType, (DoubleType, FloatType)):
            condition = condition | F.isnan(column_ref(field.name))
        conditions.append(condition)

    aggregations = [F.count(F.lit(1)).alias("total")]
    aggregations += [
        F.sum(F.when(condition, 1).otherwise(0)).alias(f"col_{idx}")
        for idx, condition in enumerate(conditions)
    ]
    if conditions:
        any_missing = conditions[0]
        for condition in conditions[1:]:
            any_missing = any_missing | condition
        aggregations.append(F.sum(F.when(any_missing, 1).otherwise(0)).alias("rows_with_missing"))

    row = df.agg(*aggregations).collect()[0]
    total = int(row["total"])

    columns = []
    for idx, name in enumerate(df.columns):
        n_missing = int(row[f"col_{idx}"] or 0)
        pct = round(n_missing / total * 100, 2) if total else 0.0
        columns.append(ColumnMissing(variable=name, n_missing=n_missing, pct_missing=pct))

    # sorted() is stable: ties keep column order
    columns = sorted(columns, key=lambda c: c.n_missing, reverse=True)

    return MissingValueSummary(
        total_records=total,
        columns=columns,
        rows_with_missing=int(row["rows_with_missing"] or 0) if conditions else 0,
    )


class MissingValueReport(Stage):
    """
    Reports missing values by variable without filtering anything.

    Used as a diagnostic mid-pipeline and on the final dataset for the
    quality report.
    """

    name = "MissingValueReport"
    rule_id = "missing_values"

    def apply(self, df: DataFrame) -> tuple[DataFrame, list[StageResult]]:
        _, result = self.evaluate(df)
        return df, [result]

    def evaluate(self, df: DataFrame) -> tuple[MissingValueSummary, StageResult]:
        """Summary of df together with its audit entry."""
        summary = summarize_missing(df)

        logger.info(
            f"{summary.variables_with_missing} of {summary.total_variables} variables have missing values",
            extra={"stage": self.name, "total_missing": summary.total_missing}
        )

        return summary, self.result(
            self.rule_id, summary.total_records, summary.total_records, summary.rows_with_missing,
            severity="informational",
            missing_by_variable=summary.by_variable(),
            pct_missing={c.variable: c.pct_missing for c in summary.columns},
        )
