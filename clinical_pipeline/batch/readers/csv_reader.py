"""
Spark CSV import for raw clinical tables.
"""

from pathlib import Path

from pyspark.sql import DataFrame, SparkSession

from clinical_pipeline.core.exceptions import InputNotFound
from clinical_pipeline.observability.logger import get_logger

logger = get_logger(__name__)


class CSVReader:
    """
    Loads a headed, comma-separated file into a DataFrame with inferred column types.

    Both empty fields and the configured null token (``NA`` by default)
    become nulls, so every later stage sees a single representation of
    a missing value.
    """

    def __init__(self, spark: SparkSession, delimiter: str = ","):
        self.spark = spark
        self.delimiter = delimiter

    def read(self, file_path, null_value: str = "NA") -> DataFrame:
        """
        Read one CSV file.

        Raises:
            InputNotFound: If `file_path` is not an existing file
        """
        path = Path(file_path)
        if not path.is_file():
            raise InputNotFound(str(path))

        options = {
            "header": "true",
            "inferSchema": "true",
            "sep": self.delimiter,
            "nullValue": null_value,
            "encoding": "UTF-8",
            "mode": "PERMISSIVE",
        }
        df = self.spark.read.options(**options).csv(str(path))

        logger.info(
            f"Imported {path.name} with columns {df.columns}",
            extra={"path": str(path), "columns": df.columns, "null_value": null_value},
        )
        return df
