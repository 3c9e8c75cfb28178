"""
RecoShelf — a named, ordered group of scored games.
"""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from .common import OracleModel
from .scoring import ScoredGame


class ShelfType(str, Enum):
    HERO = "hero"
    BECAUSE_YOU_LOVED = "because-you-loved"
    DEEP_IN_GENRE = "deep-in-genre"
    HIDDEN_GEMS = "hidden-gems"
    STRETCH_PICKS = "stretch-picks"
    TRENDING_NOW = "trending-now"
    CRITICS_CHOICE = "critics-choice"
    UNFINISHED_BUSINESS = "unfinished-business"
    FOR_YOUR_MOOD = "for-your-mood"
    NEW_RELEASES_FOR_YOU = "new-releases-for-you"
    COMING_SOON_FOR_YOU = "coming-soon-for-you"
    FINISH_AND_TRY = "finish-and-try"
    COMPLETE_THE_SERIES = "complete-the-series"
    UPCOMING_SEQUELS = "upcoming-sequels"
    DEALS_FOR_YOU = "deals-for-you"
    FREE_FOR_YOU = "free-for-you"
    FROM_STUDIOS_YOU_LOVE = "from-studios-you-love"


class RecoShelf(OracleModel):
    type: ShelfType
    title: str
    subtitle: Optional[str] = None
    # Seed title for because-you-loved shelves.
    seed_game_title: Optional[str] = None
    games: List[ScoredGame] = Field(default_factory=list)
