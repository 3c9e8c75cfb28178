"""
Franchise models — FranchiseEntry and FranchiseCluster.

Produced by stages.franchise; consumed by the franchise/sequencing layers and
the complete-the-series / upcoming-sequels shelves.
"""

from typing import List, Optional

from pydantic import Field

from .common import OracleModel


class FranchiseEntry(OracleModel):
    game_id: str
    title: str
    release_date: str = ""
    is_user_owned: bool = False
    sequence_index: int = 0    # 0-based position in franchise chronology
    coming_soon: bool = False


class FranchiseCluster(OracleModel):
    """Series grouped by a normalised base title; entries ordered by release date."""

    base_name: str
    display_name: str
    entries: List[FranchiseEntry] = Field(default_factory=list)
    user_played_ids: List[str] = Field(default_factory=list)
    user_avg_rating: float = 0.0
    user_total_hours: float = 0.0
    developer: str = ""

    @property
    def owned_count(self) -> int:
        return sum(1 for e in self.entries if e.is_user_owned)

    @property
    def unowned_entries(self) -> List[FranchiseEntry]:
        return [e for e in self.entries if not e.is_user_owned]

    def next_unowned_entry(self) -> Optional[FranchiseEntry]:
        """First unowned entry after the latest owned one (None when nothing is owned)."""
        latest_owned = -1
        for entry in self.entries:
            if entry.is_user_owned:
                latest_owned = entry.sequence_index
        if latest_owned < 0:
            return None
        for entry in self.entries:
            if entry.sequence_index > latest_owned and not entry.is_user_owned:
                return entry
        return None

    def is_actively_engaged(self, min_rating: float = 3.0, min_hours: float = 10.0) -> bool:
        if self.user_total_hours <= 0:
            return False
        return self.user_avg_rating >= min_rating or self.user_total_hours >= min_hours
