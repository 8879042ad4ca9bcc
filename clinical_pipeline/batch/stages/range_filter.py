"""
RangeFilter stage: drops rows whose numeric field is missing or out of bounds.
"""

from pyspark.sql import DataFrame

from clinical_pipeline.core.models import StageResult
from clinical_pipeline.core.validators import RangeValidator
from clinical_pipeline.observability.logger import get_logger

from .base import Stage

logger = get_logger(__name__)


def format_bound(value: float) -> str:
    return f"{value:g}"


class RangeFilter(Stage):
    """
    Keeps rows whose field parses as a number within [min_value, max_value].

    Works on any numeric column (age, lab values); missing and non-numeric
    values are removed along with out-of-range ones.
    """

    name = "RangeFilter"

    def __init__(self, field_name: str, min_value: float, max_value: float):
        self.field_name = field_name
        self.min_value = min_value
        self.max_value = max_value
        self.validator = RangeValidator(field_name, {"min": min_value, "max": max_value})

    @property
    def rule_id(self) -> str:
        return f"range:{self.field_name}[{format_bound(self.min_value)},{format_bound(self.max_value)}]"

    def apply(self, df: DataFrame) -> tuple[DataFrame, list[StageResult]]:
        self.require_columns(df, self.field_name)

        records_before = df.count()
        kept = df.filter(~self.validator.failure_condition(self.column_type(df, self.field_name)))
        records_after = kept.count()
        removed = records_before - records_after

        logger.info(
            f"Removed {removed} records with {self.field_name} missing or outside "
            f"[{format_bound(self.min_value)}, {format_bound(self.max_value)}]",
            extra={"stage": self.name, "records_before": records_before, "records_after": records_after}
        )

        return kept, [
            self.result(
                self.rule_id, records_before, records_after, removed,
                field_name=self.field_name, min=self.min_value, max=self.max_value,
            )
        ]

    def __repr__(self) -> str:
        return f"RangeFilter(field_name={self.field_name!r}, min={self.min_value}, max={self.max_value})"
