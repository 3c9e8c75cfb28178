"""
CandidateGame — one scorable catalog entry.

Produced by the catalog collaborator (deduplicated, optionally annotated with
embeddings) and treated as read-only by every stage.
"""

from typing import List, Optional

from pydantic import Field

from .common import FrozenModel


class PriceInfo(FrozenModel):
    is_free: bool = False
    final_formatted: Optional[str] = None
    discount_percent: Optional[float] = Field(default=None, ge=0, le=100)


class CandidateGame(FrozenModel):
    """
    Catalog game eligible for scoring.

    All quality/popularity signals are optional to support partial metadata
    from different platforms. semantic_retrieved marks candidates found via
    embedding-similarity search rather than tag filtering.
    """

    game_id: str = Field(min_length=1)
    title: str = ""
    cover_url: Optional[str] = None
    header_image: Optional[str] = None
    developer: str = ""
    publisher: str = ""
    genres: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)
    game_modes: List[str] = Field(default_factory=list)
    perspectives: List[str] = Field(default_factory=list)
    platforms: List[str] = Field(default_factory=list)

    metacritic_score: Optional[float] = Field(default=None, ge=0, le=100)
    player_count: Optional[int] = Field(default=None, ge=0)
    recommendations: Optional[int] = Field(default=None, ge=0)
    achievements: Optional[int] = Field(default=None, ge=0)
    review_positivity: Optional[float] = Field(default=None, ge=0, le=1)
    review_volume: Optional[int] = Field(default=None, ge=0)
    estimated_hours: Optional[float] = Field(default=None, ge=0)

    release_date: str = ""
    coming_soon: bool = False
    price: Optional[PriceInfo] = None
    similar_game_titles: List[str] = Field(default_factory=list)

    embedding: Optional[List[float]] = None
    semantic_retrieved: bool = False

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    @property
    def is_on_sale(self) -> bool:
        return bool(self.price and self.price.discount_percent and self.price.discount_percent > 0)

    @property
    def is_free(self) -> bool:
        return bool(self.price and self.price.is_free)
