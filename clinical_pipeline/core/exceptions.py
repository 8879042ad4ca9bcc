"""
Exception hierarchy for the cleaning pipeline.

Only fatal errors are raised to the caller. Correctable rule violations and
informational findings are recorded as StageResults in the audit log instead.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clinical_pipeline.core.models import StageResult


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class InputNotFound(PipelineError, FileNotFoundError):
    """Raised when the raw input file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Input file not found: {path}")


class ConfigurationError(PipelineError, ValueError):
    """Raised when the pipeline configuration is invalid."""


class FatalStageError(PipelineError):
    """
    Raised when a stage leaves the dataset unusable for later stages.

    Attributes:
        stage_name: Stage that failed
        result: StageResult describing the failing evaluation, if one exists
    """

    def __init__(self, stage_name: str, message: str, result: "StageResult | None" = None):
        self.stage_name = stage_name
        self.message = message
        self.result = result
        super().__init__(f"[{stage_name}] {message}")


class SchemaMismatch(FatalStageError):
    """Raised when a column required by a stage is absent from the dataset."""

    def __init__(self, stage_name: str, column: str, available: list[str]):
        self.column = column
        self.available = list(available)
        super().__init__(
            stage_name,
            f"Required column '{column}' not found. Available columns: {', '.join(available)}"
        )


class PipelineCancelled(FatalStageError):
    """Raised at a step boundary after a stop was requested."""

    def __init__(self, next_step: str):
        super().__init__(next_step, "Pipeline run cancelled before step started")


class AuditLogFinalized(PipelineError):
    """Raised when appending to an audit log that has already been persisted."""
