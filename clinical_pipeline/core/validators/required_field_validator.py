"""
RequiredFieldValidator - ensures a field is present and not null/empty.
"""

from typing import Any, Dict

from pyspark.sql import Column
from pyspark.sql import functions as F
from pyspark.sql.types import DataType, DoubleType, FloatType, StringType

from .base_validator import BaseValidator, ValidationError, column_ref, is_missing


class RequiredFieldValidator(BaseValidator):
    """
    Validates that a required field is present and not null/empty.

    Fails if:
    - Field is missing from the record
    - Field value is None or NaN
    - Field value is a blank string (configurable)
    """

    def __init__(self, field_name: str, parameters: Dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.allow_empty_string = self.parameters.get("allow_empty_string", False)

    def validate(self, value: Any, record: Dict[str, Any]) -> None:
        if self.field_name not in record:
            raise ValidationError(
                rule_name="required_field",
                field_name=self.field_name,
                message="Field is missing from record"
            )

        if is_missing(value):
            raise ValidationError(
                rule_name="required_field",
                field_name=self.field_name,
                message="Field value is null"
            )

        if not self.allow_empty_string and isinstance(value, str) and value.strip() == "":
            raise ValidationError(
                rule_name="required_field",
                field_name=self.field_name,
                message="Field value is empty string"
            )

    def failure_condition(self, data_type: DataType | None = None) -> Column:
        column = column_ref(self.field_name)
        condition = column.isNull()

        if isinstance(data_type, (DoubleType, FloatType)):
            condition = condition | F.isnan(column)
        elif isinstance(data_type, StringType) and not self.allow_empty_string:
            condition = condition | (F.trim(column) == "")

        return condition

    @property
    def rule_type(self) -> str:
        return "required_field"
