"""
AuditLog model: the ordered, append-only record of one pipeline run.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from clinical_pipeline.core.exceptions import AuditLogFinalized

from .stage_result import Severity, StageResult, utcnow


def new_run_id() -> str:
    """Run-scoped identifier, unique across concurrent runs."""
    return f"{utcnow().strftime('%Y%m%dT%H%M%SZ')}-{uuid.uuid4().hex[:6]}"


class AuditLog(BaseModel):
    """
    Ordered sequence of StageResults for one pipeline run.

    Entries can only be appended. Once finalize() has been called (the
    runner does so right before persisting) the log rejects further entries.

    Attributes:
        run_id: Run-scoped identifier used to name persisted artifacts
        source: Input the run was started on
        started_at: Creation time
        finalized_at: Persistence time, None while the run is in flight
        entries: StageResults in evaluation order
    """

    run_id: str = Field(default_factory=new_run_id)
    source: str | None = None
    started_at: datetime = Field(default_factory=utcnow)
    finalized_at: datetime | None = None
    entries: list[StageResult] = Field(default_factory=list)

    @property
    def finalized(self) -> bool:
        return self.finalized_at is not None

    def append(self, result: StageResult) -> None:
        if self.finalized:
            raise AuditLogFinalized(f"Audit log {self.run_id} was finalized at {self.finalized_at}")
        self.entries.append(result)

    def extend(self, results: list[StageResult]) -> None:
        for result in results:
            self.append(result)

    def finalize(self) -> None:
        if not self.finalized:
            self.finalized_at = utcnow()

    def find(
        self,
        stage_name: str,
        rule_id: str | None = None,
        severity: Severity | None = None,
    ) -> list[StageResult]:
        """Entries for a stage, optionally narrowed by rule id prefix and severity."""
        return [
            entry for entry in self.entries
            if entry.stage_name == stage_name
            and (rule_id is None or entry.rule_id.startswith(rule_id))
            and (severity is None or entry.severity == severity)
        ]

    def count_affected(self, stage_name: str, severity: Severity | None = None) -> int:
        return sum(entry.records_affected for entry in self.find(stage_name, severity=severity))

    def render_summary(self) -> list[str]:
        """Human readable narration, one line per entry."""
        lines = []
        for entry in self.entries:
            line = (
                f"{entry.stage_name} [{entry.rule_id}] "
                f"before={entry.records_before} after={entry.records_after} "
                f"affected={entry.records_affected}"
            )
            if entry.severity != "correctable":
                line += f" ({entry.severity})"
            lines.append(line)
        return lines
