"""
ValidationResult model representing the outcome of validating a record (ephemeral).
"""

from typing import List

from pydantic import BaseModel, Field, field_validator


class ValidationResult(BaseModel):
    """
    Outcome of validating one record against the rule set.

    Attributes:
        record_key: Key field value of the record, if it has one
        passed: False when any fatal or correctable rule failed
        passed_rules: Rules that succeeded
        failed_rules: Fatal or correctable rules that failed
        warnings: Informational rules that failed (never fail the record)
    """

    record_key: str | None = None
    passed: bool
    passed_rules: List[str] = Field(default_factory=list)
    failed_rules: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @field_validator('failed_rules')
    @classmethod
    def check_passed_consistency(cls, v, info):
        """Validate that passed=True implies failed_rules is empty."""
        if info.data.get('passed') and len(v) > 0:
            raise ValueError("passed=True but failed_rules is not empty")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "record_key": "P004",
                "passed": False,
                "passed_rules": ["Patient_ID_required"],
                "failed_rules": ["Age_range"],
                "warnings": ["Sex_category"],
            }
        }
