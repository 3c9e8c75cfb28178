"""
Franchise Detector — group titles into ordered series.

Snapshot games and candidates are both entries; entries present in the
snapshot list are owned. This stage never scores: it only produces the
structure consumed by the franchise/sequencing layers and shelves.
"""

import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple

from oracle.models.candidate import CandidateGame
from oracle.models.config import OracleConfig
from oracle.models.franchise import FranchiseCluster, FranchiseEntry
from oracle.models.snapshot import UserGameSnapshot
from oracle.utils.titles import franchise_base, franchise_display_name
from oracle.utils.scores import to_epoch_ms

logger = logging.getLogger(__name__)


class _Bucket:
    def __init__(self):
        self.entries: Dict[str, dict] = {}
        self.developers: Counter = Counter()
        self.dev_display: Dict[str, str] = {}
        self.ratings: List[float] = []
        self.hours = 0.0


def _entry_sort_key(entry: dict) -> Tuple[bool, int, str, str]:
    released = to_epoch_ms(entry["release_date"])
    return (released is None, released or 0, entry["title"].lower(), entry["game_id"])


def detect_franchises(
    snapshots: List[UserGameSnapshot],
    candidates: List[CandidateGame],
    config: OracleConfig,
) -> List[FranchiseCluster]:
    """
    Group snapshots and candidates sharing a franchise_base into clusters of at
    least franchise_min_entries entries, ordered by release date (undated last).
    """
    buckets: Dict[str, _Bucket] = {}

    def add(game_id, title, release_date, owned, developer, rating=0.0, hours=0.0, coming_soon=False):
        base = franchise_base(title)
        if not base:
            return
        bucket = buckets.setdefault(base, _Bucket())
        if game_id in bucket.entries:
            return
        bucket.entries[game_id] = {
            "game_id": game_id,
            "title": title,
            "release_date": release_date,
            "owned": owned,
            "coming_soon": coming_soon,
        }
        if developer and developer.strip():
            key = developer.strip().lower()
            bucket.developers[key] += 1
            bucket.dev_display.setdefault(key, developer.strip())
        if owned:
            if rating > 0:
                bucket.ratings.append(rating)
            bucket.hours += hours

    for snap in snapshots:
        add(snap.game_id, snap.title, snap.release_date, True, snap.developer, snap.rating, snap.hours_played)
    for cand in candidates:
        add(cand.game_id, cand.title, cand.release_date, False, cand.developer, coming_soon=cand.coming_soon)

    clusters: List[FranchiseCluster] = []
    for base, bucket in buckets.items():
        if len(bucket.entries) < config.franchise_min_entries:
            continue
        ordered = sorted(bucket.entries.values(), key=_entry_sort_key)
        entries = [
            FranchiseEntry(
                game_id=e["game_id"],
                title=e["title"],
                release_date=e["release_date"],
                is_user_owned=e["owned"],
                sequence_index=idx,
                coming_soon=e["coming_soon"],
            )
            for idx, e in enumerate(ordered)
        ]
        developer = ""
        if bucket.developers:
            # most_common keeps first-inserted order among equal counts
            developer = bucket.dev_display[bucket.developers.most_common(1)[0][0]]
        clusters.append(
            FranchiseCluster(
                base_name=base,
                display_name=franchise_display_name(entries[0].title) or base.title(),
                entries=entries,
                user_played_ids=[e.game_id for e in entries if e.is_user_owned],
                user_avg_rating=sum(bucket.ratings) / len(bucket.ratings) if bucket.ratings else 0.0,
                user_total_hours=bucket.hours,
                developer=developer,
            )
        )

    clusters.sort(key=lambda c: (-c.user_total_hours, c.base_name))
    logger.debug("[franchise] DETECTED clusters=%d owned=%d", len(clusters),
                 sum(1 for c in clusters if c.user_played_ids))
    return clusters


class FranchiseIndex:
    """Lookup of franchise clusters by member game id and by base name."""

    def __init__(self, clusters: List[FranchiseCluster]):
        self.clusters = clusters
        self._by_game: Dict[str, FranchiseCluster] = {}
        self._by_base: Dict[str, FranchiseCluster] = {}
        for cluster in clusters:
            self._by_base[cluster.base_name] = cluster
            for entry in cluster.entries:
                self._by_game.setdefault(entry.game_id, cluster)

    def cluster_for(self, game_id: str, title: str = "") -> Optional[FranchiseCluster]:
        cluster = self._by_game.get(game_id)
        if cluster is None and title:
            cluster = self._by_base.get(franchise_base(title))
        return cluster
