"""
ValidationRule model representing a configurable check applied to records.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from .stage_result import Severity


class ValidationRule(BaseModel):
    """
    A named, configurable predicate over a record.

    Attributes:
        rule_name: Human-readable name ("Patient_ID_required")
        rule_type: Type: "required_field", "range", "category"
        field_name: Which field this rule applies to
        parameters: Rule-specific params (e.g., {"min": 0, "max": 120})
        enabled: Whether rule is active
        severity: "fatal", "correctable" or "informational"
    """

    rule_name: str = Field(..., min_length=1)
    rule_type: Literal["required_field", "range", "category"]
    field_name: str = Field(..., min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True
    severity: Severity = "correctable"

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "rule_name": "Age_range",
                "rule_type": "range",
                "field_name": "Age",
                "parameters": {"min": 0, "max": 120},
                "enabled": True,
                "severity": "correctable"
            }
        }
