"""
Quality reporter: summary metrics from the cleaned dataset and the audit log.
"""

from pyspark.sql import DataFrame

from clinical_pipeline.batch.stages import summarize_missing
from clinical_pipeline.core.models import AuditLog, MissingValueSummary, QualityMetrics


def completeness_pct(summary: MissingValueSummary) -> float:
    """100 * (1 - missing cells / all cells), rounded to 2 decimals; 100 for an empty table."""
    cells = summary.total_records * summary.total_variables
    if cells == 0:
        return 100.0
    return round(100 * (1 - summary.total_missing / cells), 2)


def compute_quality_metrics(
    df: DataFrame,
    audit_log: AuditLog,
    summary: MissingValueSummary | None = None
) -> QualityMetrics:
    """
    Compute QualityMetrics for the cleaned dataset.

    Issue counts come from the audit log: duplicates and out-of-range rows
    were removed during cleaning and cannot be recounted from df.

    Args:
        df: Cleaned dataset
        audit_log: Audit log of the run that produced df
        summary: Missing value summary of df, computed when not given

    Returns:
        Immutable QualityMetrics
    """
    if summary is None:
        summary = summarize_missing(df)

    out_of_range: dict[str, int] = {}
    for entry in audit_log.find("RangeFilter"):
        field = entry.field_name or entry.rule_id
        out_of_range[field] = out_of_range.get(field, 0) + entry.records_affected

    imports = audit_log.find("Import")
    records_imported = imports[0].records_after if imports else None
    retention = None
    if records_imported:
        retention = round(100 * summary.total_records / records_imported, 2)

    return QualityMetrics(
        total_records=summary.total_records,
        total_variables=summary.total_variables,
        completeness_pct=completeness_pct(summary),
        duplicate_count=audit_log.count_affected("Deduplicate"),
        out_of_range_count_by_field=out_of_range,
        records_imported=records_imported,
        missing_key_count=audit_log.count_affected("RequireKey"),
        unexpected_category_count=audit_log.count_affected("CategoricalStandardize", severity="informational"),
        variables_with_missing=summary.variables_with_missing,
        missing_by_variable=summary.by_variable(),
        retention_rate_pct=retention,
        total_issues=audit_log.count_affected("Validate"),
    )
