"""
StageResult model representing the effect of one rule evaluated by a stage.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

Severity = Literal["fatal", "correctable", "informational"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StageResult(BaseModel):
    """
    Audit entry describing one stage's effect on the dataset.

    Attributes:
        stage_name: Stage that produced the entry ("Deduplicate", "RequireKey", ...)
        rule_id: Identifier of the rule evaluated ("range:Age[0,120]")
        records_before: Row count entering the stage
        records_after: Row count leaving the stage
        records_affected: Rows removed, rewritten or flagged by the rule
        field_name: Column the rule applies to, if any
        severity: "fatal", "correctable" or "informational"
        details: Rule-specific diagnostics (frequencies, summary statistics, ...)
        timestamp: When the rule was evaluated
    """

    stage_name: str = Field(..., min_length=1)
    rule_id: str = Field(..., min_length=1)
    records_before: int = Field(..., ge=0)
    records_after: int = Field(..., ge=0)
    records_affected: int = Field(0, ge=0)
    field_name: str | None = None
    severity: Severity = "correctable"
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("records_after")
    @classmethod
    def check_no_growth(cls, v, info):
        """Stages never add rows."""
        before = info.data.get("records_before")
        if before is not None and v > before:
            raise ValueError(f"records_after ({v}) exceeds records_before ({before})")
        return v

    @property
    def records_removed(self) -> int:
        return self.records_before - self.records_after

    def to_audit_entry(self) -> dict[str, Any]:
        """Serialize to the durable audit trail layout."""
        return {
            "stage": self.stage_name,
            "rule_id": self.rule_id,
            "records_before": self.records_before,
            "records_after": self.records_after,
            "records_affected": self.records_affected,
            "timestamp": self.timestamp.isoformat(),
            "field_name": self.field_name,
            "severity": self.severity,
            "details": self.details,
        }

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "stage_name": "RangeFilter",
                "rule_id": "range:Age[0,120]",
                "records_before": 3,
                "records_after": 2,
                "records_affected": 1,
                "field_name": "Age",
                "severity": "correctable",
                "details": {"min": 0, "max": 120},
            }
        }
