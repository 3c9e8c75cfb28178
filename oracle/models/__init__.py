"""
Data models for the recommendation engine.

Input models (snapshots, candidates, RecoWorkerInput) are frozen; output
models are built fresh by each run. All models use camelCase on the wire.
"""

from .candidate import CandidateGame, PriceInfo
from .config import DEFAULT_CONFIG, LAYER_NAMES, OracleConfig, resolve_config
from .franchise import FranchiseCluster, FranchiseEntry
from .messages import (
    RecoWorkerFailure,
    RecoWorkerInput,
    RecoWorkerMessage,
    RecoWorkerProgress,
    RecoWorkerResult,
    parse_worker_input,
)
from .profile import FeatureWeight, TasteCluster, TasteProfile
from .scoring import LayerScores, MatchReasons, ScoredGame
from .shelf import RecoShelf, ShelfType
from .snapshot import (
    ACTIVE_STATUSES,
    EngagementPattern,
    GameStatus,
    UserGameSnapshot,
)

__all__ = [
    "ACTIVE_STATUSES",
    "CandidateGame",
    "DEFAULT_CONFIG",
    "EngagementPattern",
    "FeatureWeight",
    "FranchiseCluster",
    "FranchiseEntry",
    "GameStatus",
    "LAYER_NAMES",
    "LayerScores",
    "MatchReasons",
    "OracleConfig",
    "PriceInfo",
    "RecoShelf",
    "RecoWorkerFailure",
    "RecoWorkerInput",
    "RecoWorkerMessage",
    "RecoWorkerProgress",
    "RecoWorkerResult",
    "ScoredGame",
    "ShelfType",
    "TasteCluster",
    "TasteProfile",
    "UserGameSnapshot",
    "resolve_config",
]
