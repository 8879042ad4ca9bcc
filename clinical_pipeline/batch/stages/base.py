"""
Base stage interface for all cleaning and validation steps.

A stage takes a DataFrame and returns a new DataFrame plus the StageResults
describing what it did. Spark DataFrames are immutable, so the input is never
modified and remains available to the caller.
"""

from abc import ABC, abstractmethod
from typing import Any

from pyspark.sql import DataFrame
from pyspark.sql.types import DataType

from clinical_pipeline.core.exceptions import SchemaMismatch
from clinical_pipeline.core.models import Severity, StageResult


class Stage(ABC):
    """
    Abstract base class for pipeline stages.

    Subclasses set `name` and implement apply(). Reapplying a stage to its
    own output must leave the data unchanged and report zero affected rows.
    """

    name: str = "Stage"

    @abstractmethod
    def apply(self, df: DataFrame) -> tuple[DataFrame, list[StageResult]]:
        """
        Run the stage.

        Args:
            df: Input dataset

        Returns:
            Tuple of (output dataset, results in evaluation order)

        Raises:
            FatalStageError: If the output is unusable for later stages
        """

    def require_columns(self, df: DataFrame, *columns: str) -> None:
        """
        Raises:
            SchemaMismatch: If any column is absent from df
        """
        for column in columns:
            if column not in df.columns:
                raise SchemaMismatch(self.name, column, df.columns)

    @staticmethod
    def column_type(df: DataFrame, column: str) -> DataType:
        return df.schema[column].dataType

    def result(
        self,
        rule_id: str,
        records_before: int,
        records_after: int,
        records_affected: int,
        field_name: str | None = None,
        severity: Severity = "correctable",
        **details: Any
    ) -> StageResult:
        return StageResult(
            stage_name=self.name,
            rule_id=rule_id,
            records_before=records_before,
            records_after=records_after,
            records_affected=records_affected,
            field_name=field_name,
            severity=severity,
            details=details,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
