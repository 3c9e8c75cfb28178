"""
Worker messages — the engine's only interface to its callers.

Input: RecoWorkerInput. Output: zero or more RecoWorkerProgress messages,
then exactly one RecoWorkerResult or RecoWorkerFailure.
"""

from typing import Any, List, Literal, Mapping, Optional, Union

from pydantic import Field, ValidationError

from oracle.errors import InputValidationError

from .candidate import CandidateGame
from .common import FrozenModel, OracleModel
from .profile import TasteProfile
from .shelf import RecoShelf
from .snapshot import UserGameSnapshot


class RecoWorkerInput(FrozenModel):
    """One engine invocation. `now` is epoch milliseconds; `current_hour` is local (0-23)."""

    user_games: List[UserGameSnapshot] = Field(default_factory=list)
    candidates: List[CandidateGame] = Field(default_factory=list)
    now: int = Field(ge=0)
    current_hour: int = Field(default=12, ge=0, le=23)
    # Omitted: computed from the candidate pool.
    embedding_coverage: Optional[float] = Field(default=None, ge=0, le=1)
    dismissed_game_ids: List[str] = Field(default_factory=list)
    taste_centroid: Optional[List[float]] = None
    # Offset applied to session timestamps to get the user's local hour.
    utc_offset_minutes: int = Field(default=0, ge=-720, le=840)

    def effective_coverage(self) -> float:
        if self.embedding_coverage is not None:
            return self.embedding_coverage
        if not self.candidates:
            return 0.0
        with_embedding = sum(1 for c in self.candidates if c.has_embedding)
        return with_embedding / len(self.candidates)


class RecoWorkerProgress(OracleModel):
    type: Literal["progress"] = "progress"
    stage: str
    percent: int = Field(ge=0, le=100)


class RecoWorkerResult(OracleModel):
    type: Literal["result"] = "result"
    taste_profile: TasteProfile
    shelves: List[RecoShelf] = Field(default_factory=list)
    compute_time_ms: int = 0
    # Candidates dropped by per-candidate scoring faults.
    excluded_candidates: int = 0


class RecoWorkerFailure(OracleModel):
    type: Literal["error"] = "error"
    kind: Literal["validation", "internal"]
    message: str
    field: Optional[str] = None


RecoWorkerMessage = Union[RecoWorkerProgress, RecoWorkerResult, RecoWorkerFailure]


def _loc_to_field(loc) -> str:
    return ".".join(str(part) for part in loc)


def parse_worker_input(payload: Union[Mapping[str, Any], RecoWorkerInput]) -> RecoWorkerInput:
    """
    Validate a raw input message.

    Raises InputValidationError naming the first offending field as a dotted
    path (e.g. ``candidates.3.gameId``).
    """
    if isinstance(payload, RecoWorkerInput):
        return payload
    try:
        return RecoWorkerInput.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise InputValidationError(_loc_to_field(first.get("loc", ())), first.get("msg", "invalid value")) from exc
