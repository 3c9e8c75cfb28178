"""
Oracle — game recommendation engine.

Single entry point for the engine package:
- models/: snapshots, candidates, profile, scoring, shelves, messages, OracleConfig
- stages/: taste profile, clusters, franchises, scoring, shelves, orchestrator
- utils/: similarity, score normalisation, genre and title helpers
- worker: background RecoWorker with supersession
"""

from oracle.computed_params import compute_parameters
from oracle.errors import (
    EmbeddingDimensionError,
    InputValidationError,
    OracleError,
    PipelineError,
    RunSuperseded,
    ScoringError,
)
from oracle.models import (
    DEFAULT_CONFIG,
    CandidateGame,
    OracleConfig,
    RecoShelf,
    RecoWorkerFailure,
    RecoWorkerInput,
    RecoWorkerProgress,
    RecoWorkerResult,
    ScoredGame,
    ShelfType,
    TasteProfile,
    UserGameSnapshot,
    resolve_config,
)
from oracle.recommendation_engine import compute_recommendations
from oracle.stages import run_pipeline
from oracle.worker import RecoWorker, WorkerState

__version__ = "1.0.0"

__all__ = [
    "CandidateGame",
    "DEFAULT_CONFIG",
    "EmbeddingDimensionError",
    "InputValidationError",
    "OracleConfig",
    "OracleError",
    "PipelineError",
    "RecoShelf",
    "RecoWorker",
    "RecoWorkerFailure",
    "RecoWorkerInput",
    "RecoWorkerProgress",
    "RecoWorkerResult",
    "RunSuperseded",
    "ScoredGame",
    "ScoringError",
    "ShelfType",
    "TasteProfile",
    "UserGameSnapshot",
    "WorkerState",
    "compute_parameters",
    "compute_recommendations",
    "resolve_config",
    "run_pipeline",
]
