"""
Deduplicate stage: drops exact duplicate rows, keeping the first occurrence.
"""

from pyspark.sql import DataFrame, Window
from pyspark.sql import functions as F

from clinical_pipeline.core.models import StageResult
from clinical_pipeline.core.validators import column_ref
from clinical_pipeline.observability.logger import get_logger

from .base import Stage

logger = get_logger(__name__)

ORDINAL_COLUMN = "__row_ordinal"
RANK_COLUMN = "__duplicate_rank"


def tag_row_order(df: DataFrame) -> DataFrame:
    """
    Add an ordinal column that increases with input order.

    monotonically_increasing_id() is increasing across partitions in
    partition order, so sorting on it restores the global input order.
    """
    return df.withColumn(ORDINAL_COLUMN, F.monotonically_increasing_id())


def count_duplicates(df: DataFrame) -> int:
    """Rows that repeat an earlier row across all columns (missing equals missing)."""
    return df.count() - df.distinct().count()


class Deduplicate(Stage):
    """
    Removes rows identical to an earlier row across every column.

    Each duplicate group keeps its row with the lowest input ordinal, and the
    output is sorted back into input order, so the filter is stable even
    though Spark evaluates the groups in parallel.
    """

    name = "Deduplicate"
    rule_id = "duplicate_rows"

    def apply(self, df: DataFrame) -> tuple[DataFrame, list[StageResult]]:
        columns = df.columns
        records_before = df.count()

        window = Window.partitionBy(*[column_ref(c) for c in columns]).orderBy(ORDINAL_COLUMN)
        deduplicated = (
            tag_row_order(df)
            .withColumn(RANK_COLUMN, F.row_number().over(window))
            .filter(F.col(RANK_COLUMN) == 1)
            .orderBy(ORDINAL_COLUMN)
            .drop(RANK_COLUMN, ORDINAL_COLUMN)
        )
        records_after = deduplicated.count()
        removed = records_before - records_after

        logger.info(
            f"Removed {removed} duplicate records",
            extra={"stage": self.name, "records_before": records_before, "records_after": records_after}
        )

        return deduplicated, [
            self.result(self.rule_id, records_before, records_after, removed)
        ]
