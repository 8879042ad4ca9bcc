"""
CategoryValidator - validates categorical values belong to an expected set.
"""

from typing import Any

from pyspark.sql import Column
from pyspark.sql.types import DataType

from .base_validator import BaseValidator, ValidationError, column_ref, is_missing


class CategoryValidator(BaseValidator):
    """
    Validates that a field holds one of the allowed categories.

    Parameters:
    - allowed: List of accepted values (compared as strings, case-sensitive)

    Missing values pass; presence is the job of required_field.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        allowed = self.parameters.get("allowed")
        if not allowed:
            raise ValueError("CategoryValidator requires a non-empty 'allowed' list")
        self.allowed = [str(value) for value in allowed]

    def validate(self, value: Any, record: dict[str, Any]) -> None:
        if is_missing(value):
            return

        if str(value) not in self.allowed:
            raise ValidationError(
                rule_name="category",
                field_name=self.field_name,
                message=f"Unexpected category {value!r}, expected one of {self.allowed}"
            )

    def failure_condition(self, data_type: DataType | None = None) -> Column:
        column = column_ref(self.field_name).cast("string")
        return column.isNotNull() & ~column.isin(self.allowed)

    @property
    def rule_type(self) -> str:
        return "category"
