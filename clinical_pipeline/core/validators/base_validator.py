"""
Base validator interface for all validation rules.

Every validator evaluates the same predicate two ways: validate() checks a
single record in plain Python, failure_condition() builds the equivalent
Spark column expression used by the stages to evaluate the rule over a whole
DataFrame.
"""

import math
from abc import ABC, abstractmethod
from typing import Any

from pyspark.sql import Column
from pyspark.sql import functions as F
from pyspark.sql.types import DataType


class ValidationError(Exception):
    """Raised when a validation rule fails."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


def is_missing(value: Any) -> bool:
    """None and NaN both count as missing."""
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Each validator implements a specific validation rule type
    (required_field, range, category).
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        """
        Initialize validator.

        Args:
            field_name: Name of the field to validate
            parameters: Rule-specific parameters (e.g., min/max for range)
        """
        self.field_name = field_name
        self.parameters = parameters or {}

    @abstractmethod
    def validate(self, value: Any, record: dict[str, Any]) -> None:
        """
        Validate a value against this rule.

        Args:
            value: The field value to validate
            record: The entire record (for context-dependent validation)

        Raises:
            ValidationError: If validation fails
        """

    @abstractmethod
    def failure_condition(self, data_type: DataType | None = None) -> Column:
        """
        Spark expression that is true exactly for the rows failing this rule.

        The expression never evaluates to null, so both it and its negation
        can be passed to DataFrame.filter().

        Args:
            data_type: Spark type of the validated column, when known
        """

    def is_valid(self, record: dict[str, Any]) -> bool:
        """Convenience wrapper returning a bool instead of raising."""
        try:
            self.validate(record.get(self.field_name), record)
        except ValidationError:
            return False
        return True

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, params={self.parameters})"


def quote_identifier(name: str) -> str:
    """Backtick-quote a column name for use inside a SQL expression."""
    return "`" + name.replace("`", "``") + "`"


def column_ref(name: str) -> Column:
    """Column by its literal name, so dots are not read as struct access."""
    return F.col(quote_identifier(name))


def numeric_column(field_name: str) -> Column:
    """
    Column parsed as double, null where the value cannot be parsed.

    try_cast keeps this working when the session runs with ANSI mode on.
    """
    return F.expr(f"try_cast({quote_identifier(field_name)} AS DOUBLE)")
