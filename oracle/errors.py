"""
Engine error taxonomy.

- Degraded input (no embeddings, empty history, empty pool) is never an error.
- InputValidationError: malformed input, raised before any stage runs.
- ScoringError / EmbeddingDimensionError: per-candidate faults; the scorer
  excludes the candidate and keeps going.
- RunSuperseded: cooperative cancellation between stages; never surfaced.
- PipelineError: any other internal fault; the run fails as a whole.
"""

from typing import Optional


class OracleError(Exception):
    """Base class for all engine errors."""


class InputValidationError(OracleError):
    """A snapshot, candidate or message field failed validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}" if field else message)


class ScoringError(OracleError):
    """A single candidate could not be scored."""


class EmbeddingDimensionError(ScoringError):
    """Two embeddings that must be compared have incompatible shapes or values."""

    def __init__(self, left_dim: int, right_dim: int, detail: Optional[str] = None):
        self.left_dim = left_dim
        self.right_dim = right_dim
        super().__init__(detail or f"embedding dimension mismatch: {left_dim} != {right_dim}")


class RunSuperseded(OracleError):
    """Raised between stages when a newer input has replaced the running one."""

    def __init__(self, run_id: int):
        self.run_id = run_id
        super().__init__(f"run {run_id} superseded")


class PipelineError(OracleError):
    """Unhandled internal fault; the run transitions to Failed."""
