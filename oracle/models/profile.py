"""
Taste profile models — FeatureWeight, TasteCluster, TasteProfile.

Built fresh by stages.taste_profile and stages.clusters on every run; never persisted.
"""

from typing import List, Optional

from pydantic import Field

from .common import OracleModel


class FeatureWeight(OracleModel):
    """Engagement-weighted affinity for one value of one dimension (e.g. genre "RPG")."""

    name: str
    weight: float = 0.0        # normalised so the top value in its dimension is 1.0
    game_count: int = 0
    total_hours: float = 0.0
    avg_rating: float = 0.0    # over contributing games with a rating


class TasteCluster(OracleModel):
    """A coherent "mood" in the library: a group of games sharing dominant tags."""

    id: int
    label: str
    profile: "TasteProfile"
    game_count: int = 0
    top_games: List[str] = Field(default_factory=list)
    # Mean member embedding; None when no member carries one.
    semantic_centroid: Optional[List[float]] = None


class TasteProfile(OracleModel):
    genres: List[FeatureWeight] = Field(default_factory=list)
    themes: List[FeatureWeight] = Field(default_factory=list)
    game_modes: List[FeatureWeight] = Field(default_factory=list)
    perspectives: List[FeatureWeight] = Field(default_factory=list)
    developers: List[FeatureWeight] = Field(default_factory=list)
    publishers: List[FeatureWeight] = Field(default_factory=list)
    eras: List[FeatureWeight] = Field(default_factory=list)

    total_games: int = 0
    total_hours: float = 0.0
    avg_rating: float = 0.0
    top_genre: str = ""
    top_theme: str = ""

    clusters: List[TasteCluster] = Field(default_factory=list)
    loyal_developers: List[str] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "TasteProfile":
        """Valid all-zero profile (empty history)."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.total_games == 0


TasteCluster.model_rebuild()
