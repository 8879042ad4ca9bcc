"""
Read-only quality summaries: per-column missingness and final QualityMetrics.
"""

from pydantic import BaseModel, Field


class ColumnMissing(BaseModel):
    """Missing-value count for one variable."""

    variable: str
    n_missing: int = Field(..., ge=0)
    pct_missing: float = Field(..., ge=0.0, le=100.0)

    class Config:
        frozen = True


class MissingValueSummary(BaseModel):
    """
    Missing values by variable, sorted by n_missing descending.

    Attributes:
        total_records: Rows in the dataset the summary was computed on
        columns: One entry per column, in descending order of missing count
        rows_with_missing: Rows holding at least one missing cell
    """

    total_records: int = Field(..., ge=0)
    columns: list[ColumnMissing] = Field(default_factory=list)
    rows_with_missing: int = Field(0, ge=0)

    @property
    def total_variables(self) -> int:
        return len(self.columns)

    @property
    def total_missing(self) -> int:
        return sum(c.n_missing for c in self.columns)

    @property
    def variables_with_missing(self) -> int:
        return sum(1 for c in self.columns if c.n_missing > 0)

    def by_variable(self) -> dict[str, int]:
        return {c.variable: c.n_missing for c in self.columns}

    class Config:
        frozen = True


class QualityMetrics(BaseModel):
    """
    Snapshot of dataset quality after cleaning.

    Issue counts are read from the audit log rather than recomputed from the
    cleaned dataset, where the offending rows no longer exist.

    Attributes:
        total_records: Rows in the cleaned dataset
        total_variables: Columns in the cleaned dataset
        completeness_pct: 100 * (1 - missing cells / all cells), 2 decimals
        duplicate_count: Rows removed by Deduplicate
        out_of_range_count_by_field: Rows removed by each RangeFilter, keyed by field
        records_imported: Rows read from the raw input
        missing_key_count: Rows removed by RequireKey
        unexpected_category_count: Values left unmapped by CategoricalStandardize
        variables_with_missing: Columns of the cleaned dataset with any missing cell
        missing_by_variable: Missing cells per column of the cleaned dataset
        retention_rate_pct: total_records / records_imported * 100, 2 decimals
        total_issues: Sum of hits across the read-only validation checks
    """

    total_records: int = Field(..., ge=0)
    total_variables: int = Field(..., ge=0)
    completeness_pct: float = Field(..., ge=0.0, le=100.0)
    duplicate_count: int = Field(0, ge=0)
    out_of_range_count_by_field: dict[str, int] = Field(default_factory=dict)
    records_imported: int | None = None
    missing_key_count: int = Field(0, ge=0)
    unexpected_category_count: int = Field(0, ge=0)
    variables_with_missing: int = Field(0, ge=0)
    missing_by_variable: dict[str, int] = Field(default_factory=dict)
    retention_rate_pct: float | None = None
    total_issues: int = Field(0, ge=0)

    @property
    def out_of_range_count(self) -> int:
        return sum(self.out_of_range_count_by_field.values())

    def issue_counts(self) -> dict[str, int]:
        """Issue counts per category."""
        return {
            "duplicate": self.duplicate_count,
            "missing_key": self.missing_key_count,
            "out_of_range": self.out_of_range_count,
            "unexpected_category": self.unexpected_category_count,
        }

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "total_records": 2,
                "total_variables": 3,
                "completeness_pct": 100.0,
                "duplicate_count": 1,
                "out_of_range_count_by_field": {"Age": 1},
                "records_imported": 5,
                "missing_key_count": 1,
                "retention_rate_pct": 40.0,
            }
        }
