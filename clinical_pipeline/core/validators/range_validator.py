"""
RangeValidator - validates numeric values are within an inclusive range.
"""

from typing import Any

from pyspark.sql import Column
from pyspark.sql import functions as F
from pyspark.sql.types import DataType

from .base_validator import BaseValidator, ValidationError, column_ref, is_missing, numeric_column


class RangeValidator(BaseValidator):
    """
    Validates that a numeric field is within [min, max].

    Parameters:
    - min: Minimum value (inclusive)
    - max: Maximum value (inclusive)
    - allow_missing: Whether a missing value passes (default False)

    Strings are parsed as numbers; a value that cannot be parsed fails.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        self.min_value = self.parameters.get("min")
        self.max_value = self.parameters.get("max")
        self.allow_missing = self.parameters.get("allow_missing", False)

        if self.min_value is None and self.max_value is None:
            raise ValueError("RangeValidator requires at least one of: min, max")

        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ValueError(f"RangeValidator min {self.min_value} is greater than max {self.max_value}")

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                raise ValidationError(
                    rule_name="range",
                    field_name=self.field_name,
                    message=f"Value {value!r} is not numeric"
                )

        if is_missing(value):
            if self.allow_missing:
                return
            raise ValidationError(
                rule_name="range",
                field_name=self.field_name,
                message="Field value is missing"
            )

        if not isinstance(value, int | float):
            raise ValidationError(
                rule_name="range",
                field_name=self.field_name,
                message=f"Value must be numeric, got {type(value).__name__}"
            )

        if self.min_value is not None and value < self.min_value:
            raise ValidationError(
                rule_name="range",
                field_name=self.field_name,
                message=f"Value {value} is less than minimum {self.min_value}"
            )

        if self.max_value is not None and value > self.max_value:
            raise ValidationError(
                rule_name="range",
                field_name=self.field_name,
                message=f"Value {value} exceeds maximum {self.max_value}"
            )

    def failure_condition(self, data_type: DataType | None = None) -> Column:
        raw = column_ref(self.field_name)
        numeric = numeric_column(self.field_name)

        missing = raw.isNull() | F.isnan(numeric)
        not_numeric = ~missing & numeric.isNull()
        out_of_range = self.below_min_condition() | self.above_max_condition()

        if self.allow_missing:
            return not_numeric | (~missing & ~not_numeric & out_of_range)
        return missing | numeric.isNull() | out_of_range

    def below_min_condition(self) -> Column:
        """Rows holding a parsable value under min; false everywhere else."""
        if self.min_value is None:
            return F.lit(False)
        return F.coalesce(numeric_column(self.field_name) < F.lit(float(self.min_value)), F.lit(False))

    def above_max_condition(self) -> Column:
        """Rows holding a parsable value over max; false everywhere else."""
        if self.max_value is None:
            return F.lit(False)
        numeric = numeric_column(self.field_name)
        return F.coalesce(~F.isnan(numeric) & (numeric > F.lit(float(self.max_value))), F.lit(False))

    @property
    def rule_type(self) -> str:
        return "range"
