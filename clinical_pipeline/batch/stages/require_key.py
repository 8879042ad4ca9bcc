"""
RequireKey stage: drops rows whose key field is missing.
"""

from pyspark.sql import DataFrame

from clinical_pipeline.core.exceptions import FatalStageError
from clinical_pipeline.core.models import StageResult
from clinical_pipeline.core.validators import RequiredFieldValidator
from clinical_pipeline.observability.logger import get_logger

from .base import Stage

logger = get_logger(__name__)


class RequireKey(Stage):
    """
    Removes rows whose key (e.g. a patient identifier) is null or blank.

    A dataset left without any row cannot be cleaned further, so reaching
    zero rows raises FatalStageError. The error carries the StageResult so
    the audit trail still records the evaluation.
    """

    name = "RequireKey"

    def __init__(self, key_field: str):
        self.key_field = key_field
        self.validator = RequiredFieldValidator(key_field)

    @property
    def rule_id(self) -> str:
        return f"required_key:{self.key_field}"

    def apply(self, df: DataFrame) -> tuple[DataFrame, list[StageResult]]:
        self.require_columns(df, self.key_field)

        records_before = df.count()
        missing = self.validator.failure_condition(self.column_type(df, self.key_field))
        kept = df.filter(~missing)
        records_after = kept.count()
        removed = records_before - records_after

        if records_after == 0:
            result = self.result(
                self.rule_id, records_before, records_after, removed,
                field_name=self.key_field, severity="fatal",
            )
            raise FatalStageError(
                self.name,
                f"No records with a non-missing '{self.key_field}' remain ({removed} removed)",
                result=result,
            )

        logger.info(
            f"Removed {removed} records with missing {self.key_field}",
            extra={"stage": self.name, "records_before": records_before, "records_after": records_after}
        )

        return kept, [
            self.result(self.rule_id, records_before, records_after, removed, field_name=self.key_field)
        ]

    def __repr__(self) -> str:
        return f"RequireKey(key_field={self.key_field!r})"
