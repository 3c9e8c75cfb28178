"""
UserGameSnapshot — one library/journey game as seen by the engine.

Built by the library collaborator on every invocation (from UI dicts via
UserGameSnapshot.model_validate) and never mutated by the engine.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field, ValidationInfo, field_validator

from .common import FrozenModel


class GameStatus(str, Enum):
    WANT_TO_PLAY = "Want to Play"
    PLAYING = "Playing"
    PLAYING_NOW = "Playing Now"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"
    DROPPED = "Dropped"


class EngagementPattern(str, Enum):
    """Closed set of session-curve shapes (see stages.engagement.classify_engagement_curve)."""

    HONEYMOON = "honeymoon"      # front-loaded, then abandoned
    LONG_TAIL = "long-tail"      # spread over many weeks
    BINGE_DROP = "binge-drop"    # all sessions in 2-3 days, then nothing
    SLOW_BURN = "slow-burn"      # session length grows over time
    UNKNOWN = "unknown"          # insufficient data


ACTIVE_STATUSES = frozenset({GameStatus.PLAYING, GameStatus.PLAYING_NOW, GameStatus.ON_HOLD})


class UserGameSnapshot(FrozenModel):
    """
    Read-only record of one game's history and engagement at invocation time.

    session_timestamps are epoch milliseconds (session start), aligned
    index-by-index with session_durations (minutes).
    """

    game_id: str = Field(min_length=1)
    title: str = ""
    genres: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    game_modes: List[str] = Field(default_factory=list)
    perspectives: List[str] = Field(default_factory=list)
    developer: str = ""
    publisher: str = ""
    release_date: str = ""

    status: GameStatus = GameStatus.WANT_TO_PLAY
    status_trajectory: List[GameStatus] = Field(default_factory=list)

    hours_played: float = Field(default=0.0, ge=0)
    rating: float = Field(default=0.0, ge=0, le=5)
    added_at: str = ""
    removed_at: Optional[str] = None

    session_count: int = Field(default=0, ge=0)
    avg_session_minutes: float = Field(default=0.0, ge=0)
    last_session_date: Optional[str] = None
    active_to_idle_ratio: float = Field(default=1.0, ge=0, le=1)

    similar_game_titles: List[str] = Field(default_factory=list)
    engagement_pattern: EngagementPattern = EngagementPattern.UNKNOWN
    session_timestamps: List[float] = Field(default_factory=list)
    session_durations: List[float] = Field(default_factory=list)

    embedding: Optional[List[float]] = None

    @field_validator("session_durations")
    @classmethod
    def durations_align_with_timestamps(cls, durations: List[float], info: ValidationInfo) -> List[float]:
        timestamps = info.data.get("session_timestamps")
        if timestamps is not None and len(timestamps) != len(durations):
            raise ValueError(
                f"expected {len(timestamps)} durations to match sessionTimestamps, got {len(durations)}"
            )
        if any(d < 0 for d in durations):
            raise ValueError("session durations must be non-negative")
        return durations

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)
