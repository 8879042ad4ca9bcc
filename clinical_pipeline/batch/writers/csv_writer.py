"""
CSV writer producing a single cleaned CSV file from a Spark DataFrame.
"""

import csv
import shutil
import uuid
from pathlib import Path

from pyspark.sql import DataFrame

from clinical_pipeline.observability.logger import get_logger

logger = get_logger(__name__)


class CSVWriter:
    """
    Writes a DataFrame as one CSV file with a header row.

    Spark writes a directory of part files; the writer coalesces to one
    partition, writes into a staging directory next to the target and moves
    the single part file into place. Row order is preserved.
    """

    def write(self, df: DataFrame, output_path: str | Path, null_value: str = "NA") -> Path:
        """
        Write df to output_path, replacing any existing file.

        Args:
            df: Dataset to export
            output_path: Target CSV file
            null_value: Token written for missing values

        Returns:
            Path of the written file
        """
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        staging = output.parent / f".{output.name}.parts-{uuid.uuid4().hex[:8]}"

        try:
            df.coalesce(1).write \
                .mode("overwrite") \
                .option("header", "true") \
                .option("nullValue", null_value) \
                .csv(str(staging))

            part = next(iter(sorted(staging.glob("part-*.csv"))), None)
            if part is None:
                # Some Spark versions write no part file for an empty DataFrame
                with open(output, "w", newline="") as f:
                    csv.writer(f).writerow(df.columns)
            else:
                shutil.move(str(part), str(output))
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        logger.info(f"Cleaned data written to {output}", extra={"path": str(output)})
        return output
