"""
Audit trail persistence.

Writes a finalized AuditLog as JSON lines, one object per StageResult, to a
file named after the run id so concurrent runs never share a file.
"""

import json
from pathlib import Path
from typing import Any

from clinical_pipeline.core.models import AuditLog
from clinical_pipeline.observability.logger import get_logger

logger = get_logger(__name__)


class AuditTrailWriter:
    """
    Persists audit logs under a directory.

    Usage:
        writer = AuditTrailWriter("reports/audit_trails")
        path = writer.persist(audit_log)  # finalizes the log
    """

    def __init__(self, audit_dir: str | Path):
        self.audit_dir = Path(audit_dir)

    def path_for(self, run_id: str) -> Path:
        return self.audit_dir / f"audit_trail_{run_id}.jsonl"

    def persist(self, audit_log: AuditLog) -> Path:
        """
        Finalize audit_log and write it.

        Returns:
            Path of the audit trail file

        Raises:
            FileExistsError: If a trail for this run id was already written
        """
        audit_log.finalize()
        self.audit_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(audit_log.run_id)

        with open(path, "x", encoding="utf-8") as f:
            for entry in audit_log.entries:
                f.write(json.dumps(entry.to_audit_entry(), default=str) + "\n")

        logger.info(
            f"Audit trail with {len(audit_log.entries)} entries written to {path}",
            extra={"run_id": audit_log.run_id, "path": str(path)}
        )
        return path


def read_audit_trail(path: str | Path) -> list[dict[str, Any]]:
    """Load a persisted audit trail, one dict per entry, in order."""
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]
