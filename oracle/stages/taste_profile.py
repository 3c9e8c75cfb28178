"""
Taste Profile Builder — aggregate the user's history into weighted feature dimensions.

Each snapshot's engagement weight is accumulated into every feature value it
touches (one accumulation per value per dimension); each dimension is then
normalised by its maximum so the top value is 1.0 in every dimension.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from oracle.models.config import OracleConfig
from oracle.models.profile import FeatureWeight, TasteProfile
from oracle.models.snapshot import UserGameSnapshot
from oracle.utils.genres import genre_displays, norm
from oracle.utils.scores import release_year

from .engagement import engagement_score

logger = logging.getLogger(__name__)

EngagementWeights = Dict[str, float]


def era_bucket(date_str: str) -> Optional[str]:
    year = release_year(date_str)
    if year is None:
        return None
    if year >= 2023:
        return "2023+"
    if year >= 2020:
        return "2020-2022"
    if year >= 2015:
        return "2015-2019"
    if year >= 2010:
        return "2010-2014"
    if year >= 2000:
        return "2000-2009"
    return "pre-2000"


def compute_engagement_weights(
    snapshots: Iterable[UserGameSnapshot],
    now_ms: int,
    config: OracleConfig,
) -> EngagementWeights:
    """Engagement weight per game id, computed once per run and shared by every stage."""
    return {s.game_id: engagement_score(s, now_ms, config) for s in snapshots}


def _lower_values(values: Iterable[str]) -> List[str]:
    seen = []
    for value in values:
        key = norm(value)
        if key and key not in seen:
            seen.append(key)
    return seen


def build_feature_weights(
    snapshots: List[UserGameSnapshot],
    weights: EngagementWeights,
    extractor: Callable[[UserGameSnapshot], List[str]],
) -> List[FeatureWeight]:
    """
    Accumulate engagement per feature value, then normalise by the dimension maximum.

    Sorted by weight descending, then name, so the output is deterministic.
    """
    acc: Dict[str, Dict[str, float]] = {}
    for snap in snapshots:
        engagement = weights.get(snap.game_id, 0.0)
        for name in extractor(snap):
            bucket = acc.setdefault(
                name, {"weight": 0.0, "count": 0, "hours": 0.0, "rating_sum": 0.0, "rated": 0}
            )
            bucket["weight"] += engagement
            bucket["count"] += 1
            bucket["hours"] += snap.hours_played
            if snap.rating > 0:
                bucket["rating_sum"] += snap.rating
                bucket["rated"] += 1

    if not acc:
        return []
    max_weight = max(b["weight"] for b in acc.values())
    features = [
        FeatureWeight(
            name=name,
            weight=b["weight"] / max_weight if max_weight > 0 else 0.0,
            game_count=int(b["count"]),
            total_hours=b["hours"],
            avg_rating=b["rating_sum"] / b["rated"] if b["rated"] else 0.0,
        )
        for name, b in acc.items()
    ]
    features.sort(key=lambda f: (-f.weight, f.name))
    return features


def build_taste_profile(
    snapshots: List[UserGameSnapshot],
    now_ms: int,
    config: OracleConfig,
    weights: Optional[EngagementWeights] = None,
) -> TasteProfile:
    """
    Build a TasteProfile from snapshots (clusters are filled in by stages.clusters).

    Empty input gives a valid all-zero profile.
    """
    if not snapshots:
        return TasteProfile.empty()
    if weights is None:
        weights = compute_engagement_weights(snapshots, now_ms, config)

    genres = build_feature_weights(snapshots, weights, lambda s: genre_displays(s.genres))
    themes = build_feature_weights(snapshots, weights, lambda s: _lower_values(s.themes))
    modes = build_feature_weights(snapshots, weights, lambda s: _lower_values(s.game_modes))
    perspectives = build_feature_weights(snapshots, weights, lambda s: _lower_values(s.perspectives))
    developers = build_feature_weights(snapshots, weights, lambda s: _lower_values([s.developer]))
    publishers = build_feature_weights(snapshots, weights, lambda s: _lower_values([s.publisher]))
    eras = build_feature_weights(
        snapshots, weights, lambda s: [b for b in [era_bucket(s.release_date)] if b]
    )

    total_hours = sum(s.hours_played for s in snapshots)
    rated = [s.rating for s in snapshots if s.rating > 0]
    avg_rating = sum(rated) / len(rated) if rated else 0.0

    loyal = [
        d.name
        for d in developers
        if d.game_count >= config.loyal_developer_min_games
        and d.avg_rating >= config.loyal_developer_min_rating
    ]
    logger.debug(
        "[profile] BUILT games=%d genres=%d themes=%d loyal_developers=%d",
        len(snapshots), len(genres), len(themes), len(loyal),
    )

    return TasteProfile(
        genres=genres,
        themes=themes,
        game_modes=modes,
        perspectives=perspectives,
        developers=developers,
        publishers=publishers,
        eras=eras,
        total_games=len(snapshots),
        total_hours=total_hours,
        avg_rating=avg_rating,
        top_genre=genres[0].name if genres else "",
        top_theme=themes[0].name if themes else "",
        loyal_developers=loyal,
    )
