"""
CategoricalStandardize stage: recodes a categorical field through a mapping.
"""

from pyspark.sql import DataFrame
from pyspark.sql.types import StringType

from clinical_pipeline.core.models import StageResult
from clinical_pipeline.core.validators import column_ref
from clinical_pipeline.core.rules import CategoryMapping
from clinical_pipeline.observability.logger import get_logger

from .base import Stage

logger = get_logger(__name__)


class CategoricalStandardize(Stage):
    """
    Rewrites values of a categorical field (e.g. "M" -> "Male").

    Never removes rows. The main result counts rewritten values; every
    distinct value outside the expected set additionally yields an
    informational unexpected-category result and passes through unchanged.
    """

    name = "CategoricalStandardize"

    def __init__(self, mapping: CategoryMapping):
        self.mapping = mapping
        self.field_name = mapping.field_name

    @property
    def rule_id(self) -> str:
        return f"standardize:{self.field_name}"

    @property
    def unexpected_rule_id(self) -> str:
        return f"unexpected_category:{self.field_name}"

    def apply(self, df: DataFrame) -> tuple[DataFrame, list[StageResult]]:
        self.require_columns(df, self.field_name)

        records = df.count()
        data_type = self.column_type(df, self.field_name)

        if not isinstance(data_type, StringType):
            logger.warning(
                f"Column {self.field_name} is {data_type.simpleString()}, not a string; left unchanged",
                extra={"stage": self.name}
            )
            return df, [
                self.result(
                    self.rule_id, records, records, 0,
                    field_name=self.field_name, skipped=f"column type is {data_type.simpleString()}",
                )
            ]

        column = column_ref(self.field_name)
        keys = self.mapping.rewritten_keys
        rewritten = df.filter(column.isin(keys)).count() if keys else 0

        unexpected = self._unexpected_values(df)
        standardized = df.withColumn(self.field_name, self.mapping.to_column())

        logger.info(
            f"Standardized {rewritten} values of {self.field_name}",
            extra={"stage": self.name, "records": records}
        )

        results = [
            self.result(
                self.rule_id, records, records, rewritten,
                field_name=self.field_name, mapping=dict(self.mapping.mapping),
            )
        ]
        for value, count in unexpected:
            logger.warning(
                f"Unexpected category {value!r} in {self.field_name} ({count} records), left unmapped",
                extra={"stage": self.name, "category": value, "count": count}
            )
            results.append(
                self.result(
                    self.unexpected_rule_id, records, records, count,
                    field_name=self.field_name, severity="informational", value=value,
                )
            )
        return standardized, results

    def _unexpected_values(self, df: DataFrame) -> list[tuple[str, int]]:
        """Distinct non-missing values outside the known set, with their counts."""
        column = column_ref(self.field_name)
        known = sorted(self.mapping.known_values)

        condition = column.isNotNull()
        if known:
            condition = condition & ~column.isin(known)

        rows = df.filter(condition).groupBy(column_ref(self.field_name)).count().collect()
        return sorted((row[self.field_name], row["count"]) for row in rows)

    def __repr__(self) -> str:
        return f"CategoricalStandardize(field_name={self.field_name!r}, mapping={self.mapping.mapping})"
