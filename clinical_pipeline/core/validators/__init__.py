"""
Validation rule implementations.

Provides validators for required fields, numeric ranges and categorical sets.
"""

from .base_validator import (
    BaseValidator,
    ValidationError,
    column_ref,
    is_missing,
    numeric_column,
    quote_identifier,
)
from .category_validator import CategoryValidator
from .range_validator import RangeValidator
from .required_field_validator import RequiredFieldValidator

__all__ = [
    "BaseValidator",
    "ValidationError",
    "column_ref",
    "is_missing",
    "numeric_column",
    "quote_identifier",
    "RequiredFieldValidator",
    "RangeValidator",
    "CategoryValidator",
]
