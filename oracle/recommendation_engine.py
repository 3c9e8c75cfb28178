"""
Oracle Recommendation Engine

Thin facade over the modular pipeline:
- Taste profile, taste clusters, franchises (stages/taste_profile, clusters, franchise)
- Candidate scoring (stages/scoring)
- Shelf assembly (stages/shelves)
- Orchestration (stages/orchestrator, worker)

All implementation lives in models/, utils/, and stages/.
This module re-exports the public API and offers a synchronous entry point.
"""

import logging
from typing import Any, Mapping, Optional, Union

from oracle.errors import InputValidationError, PipelineError
from oracle.models.config import DEFAULT_CONFIG, OracleConfig
from oracle.models.messages import RecoWorkerFailure, RecoWorkerInput, RecoWorkerResult
from oracle.stages.orchestrator import ProgressCallback, run_pipeline
from oracle.worker import RecoWorker, WorkerState

logger = logging.getLogger(__name__)


def compute_recommendations(
    payload: Union[Mapping[str, Any], RecoWorkerInput],
    config: Optional[OracleConfig] = None,
    progress: Optional[ProgressCallback] = None,
) -> Union[RecoWorkerResult, RecoWorkerFailure]:
    """
    Run the pipeline in the calling thread and return exactly one outcome message.

    Malformed input gives a validation failure; any other fault gives an
    internal failure. A failure never carries a partial result.
    """
    try:
        return run_pipeline(payload, config=config, progress=progress)
    except InputValidationError as exc:
        logger.warning("[engine] INVALID_INPUT field=%s message=%s", exc.field, exc.message)
        return RecoWorkerFailure(kind="validation", message=exc.message, field=exc.field)
    except Exception as exc:
        error = PipelineError(f"{type(exc).__name__}: {exc}")
        logger.exception("[engine] RUN_FAILED error=%s", error)
        return RecoWorkerFailure(kind="internal", message=str(error))


__all__ = [
    "DEFAULT_CONFIG",
    "OracleConfig",
    "RecoWorker",
    "WorkerState",
    "compute_recommendations",
    "run_pipeline",
]
