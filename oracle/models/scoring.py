"""
Scoring output models — LayerScores, MatchReasons, ScoredGame.
"""

from typing import List, Optional

from pydantic import Field

from .candidate import CandidateGame, PriceInfo
from .common import OracleModel


class LayerScores(OracleModel):
    """Raw per-layer values (before weighting) for one candidate."""

    content_similarity: float = 0.0
    semantic_similarity: float = 0.0
    cluster_semantic_sim: float = 0.0
    graph_signal: float = 0.0
    quality_signal: float = 0.0
    popularity_signal: float = 0.0
    recency_boost: float = 0.0
    diversity_bonus: float = 0.0
    trajectory_multiplier: float = 1.0
    negative_signal: float = 0.0
    time_of_day_boost: float = 0.0
    engagement_curve_bonus: float = 0.0
    franchise_boost: float = 0.0
    studio_loyalty_boost: float = 0.0
    sequencing_boost: float = 0.0


class MatchReasons(OracleModel):
    shared_genres: List[str] = Field(default_factory=list)
    shared_themes: List[str] = Field(default_factory=list)
    shared_modes: List[str] = Field(default_factory=list)
    similar_to: List[str] = Field(default_factory=list)    # seed titles, strongest first
    metacritic_score: Optional[float] = None
    popularity_rank: Optional[int] = None
    is_hidden_gem: bool = False
    is_stretch_pick: bool = False
    franchise_of: Optional[str] = None
    is_franchise_entry: bool = False
    is_on_sale: bool = False
    is_free: bool = False
    semantic_retrieved: bool = False
    best_cluster_label: Optional[str] = None
    explanation: str = ""


class ScoredGame(OracleModel):
    """One candidate (or, for unfinished business, one owned game) with its score breakdown."""

    game_id: str
    title: str = ""
    cover_url: Optional[str] = None
    header_image: Optional[str] = None
    developer: str = ""
    publisher: str = ""
    genres: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    game_modes: List[str] = Field(default_factory=list)
    platforms: List[str] = Field(default_factory=list)
    metacritic_score: Optional[float] = None
    player_count: Optional[int] = None
    release_date: str = ""
    coming_soon: bool = False
    score: float = Field(default=0.0, ge=0, le=1)
    layer_scores: LayerScores = Field(default_factory=LayerScores)
    reasons: MatchReasons = Field(default_factory=MatchReasons)
    price: Optional[PriceInfo] = None

    @classmethod
    def from_candidate(cls, candidate: CandidateGame, **kwargs) -> "ScoredGame":
        return cls(
            game_id=candidate.game_id,
            title=candidate.title,
            cover_url=candidate.cover_url,
            header_image=candidate.header_image,
            developer=candidate.developer,
            publisher=candidate.publisher,
            genres=list(candidate.genres),
            themes=list(candidate.themes),
            game_modes=list(candidate.game_modes),
            platforms=list(candidate.platforms),
            metacritic_score=candidate.metacritic_score,
            player_count=candidate.player_count,
            release_date=candidate.release_date,
            coming_soon=candidate.coming_soon,
            price=candidate.price,
            **kwargs,
        )
