"""
Cleaning and validation stages.
"""

from .base import Stage
from .categorical_standardize import CategoricalStandardize
from .deduplicate import Deduplicate, count_duplicates
from .missing_value_report import MissingValueReport, summarize_missing
from .range_filter import RangeFilter
from .require_key import RequireKey
from .validation_checks import ValidationChecks

__all__ = [
    "Stage",
    "CategoricalStandardize",
    "Deduplicate",
    "MissingValueReport",
    "RangeFilter",
    "RequireKey",
    "ValidationChecks",
    "count_duplicates",
    "summarize_missing",
]
