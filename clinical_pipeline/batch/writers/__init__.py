"""
Batch output writers.
"""

from .audit_writer import AuditTrailWriter, read_audit_trail
from .csv_writer import CSVWriter
from .report_writer import QualityReportWriter

__all__ = [
    "AuditTrailWriter",
    "CSVWriter",
    "QualityReportWriter",
    "read_audit_trail",
]
