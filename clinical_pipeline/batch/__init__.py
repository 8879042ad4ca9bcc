"""
Spark batch cleaning: readers, stages, writers and the pipeline runner.

The runner is imported from clinical_pipeline.batch.pipeline.
"""

from .readers import CSVReader
from .writers import AuditTrailWriter, CSVWriter, QualityReportWriter

__all__ = [
    "CSVReader",
    "AuditTrailWriter",
    "CSVWriter",
    "QualityReportWriter",
]
