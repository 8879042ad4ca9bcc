"""
Core data models for the clinical data cleaning pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .audit_log import AuditLog, new_run_id
from .quality import ColumnMissing, MissingValueSummary, QualityMetrics
from .stage_result import Severity, StageResult
from .validation_result import ValidationResult
from .validation_rule import ValidationRule

__all__ = [
    "AuditLog",
    "ColumnMissing",
    "MissingValueSummary",
    "QualityMetrics",
    "Severity",
    "StageResult",
    "ValidationResult",
    "ValidationRule",
    "new_run_id",
]
