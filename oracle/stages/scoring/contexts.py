"""
Per-run scoring context — everything the layers need, built once before the candidate loop.

Nothing here depends on a single candidate; layers.py reads these tables for
each candidate in turn.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set

from oracle.models.candidate import CandidateGame
from oracle.models.config import OracleConfig
from oracle.models.franchise import FranchiseCluster
from oracle.models.profile import TasteCluster, TasteProfile
from oracle.models.snapshot import EngagementPattern, GameStatus, UserGameSnapshot
from oracle.utils.genres import genre_key, genre_keys, norm
from oracle.utils.scores import days_since, to_epoch_ms
from oracle.utils.similarity import FeatureVector, mean_vector
from oracle.utils.titles import normalize_title

from ..engagement import (
    CURVE_MULTIPLIERS,
    effective_pattern,
    status_trajectory_multiplier,
)
from ..franchise import FranchiseIndex
from ..taste_profile import EngagementWeights

logger = logging.getLogger(__name__)

ABANDON_PATTERNS = frozenset({EngagementPattern.HONEYMOON, EngagementPattern.BINGE_DROP})
COMMIT_PATTERNS = frozenset({EngagementPattern.LONG_TAIL, EngagementPattern.SLOW_BURN})

# Dropped games with fewer hours than this count as abandoned.
ABANDON_MAX_HOURS = 5.0
# On Hold games with fewer hours than this count as negative.
NEGATIVE_ON_HOLD_HOURS = 2.0
# Ratings in (0, X] count as negative.
NEGATIVE_MAX_RATING = 2.0


@dataclass
class SeedGame:
    """A user game that can pull candidates in through the graph layer."""

    game_id: str
    title: str
    weight: float
    title_key: str
    similar_keys: FrozenSet[str]
    tags: FrozenSet[str]


@dataclass
class ScoringContext:
    config: OracleConfig
    weights: Dict[str, float]
    profile: TasteProfile
    clusters: List[TasteCluster]
    franchises: FranchiseIndex
    now_ms: int
    owned_ids: Set[str]

    profile_vector: FeatureVector = field(default_factory=dict)
    profile_genre_keys: Set[str] = field(default_factory=set)
    profile_theme_keys: Set[str] = field(default_factory=set)
    profile_mode_keys: Set[str] = field(default_factory=set)
    loyal_developers: Set[str] = field(default_factory=set)
    taste_centroid: Optional[List[float]] = None

    seeds: List[SeedGame] = field(default_factory=list)

    negative_vector: FeatureVector = field(default_factory=dict)
    negative_strength: float = 0.0

    abandon_rate: float = 0.0
    commit_rate: float = 0.0
    # (curve multiplier, genre keys) of long-tail / slow-burn games.
    committed_genres: List[tuple] = field(default_factory=list)

    time_of_day_affinity: Dict[str, float] = field(default_factory=dict)

    transitions: Dict[str, Dict[str, int]] = field(default_factory=dict)
    recent_genres: List[List[str]] = field(default_factory=list)

    max_player_count: int = 0
    max_recommendations: int = 0
    max_review_volume: int = 0
    popularity_rank: Dict[str, int] = field(default_factory=dict)


def tag_set(genres, themes, modes) -> FrozenSet[str]:
    tags = {f"g:{k}" for k in genre_keys(genres)}
    tags.update(f"t:{norm(t)}" for t in themes if norm(t))
    tags.update(f"m:{norm(m)}" for m in modes if norm(m))
    return frozenset(tags)


def candidate_vector(candidate: CandidateGame) -> FeatureVector:
    """Binary tag vector with the same prefixed keys as the profile vector."""
    vec: FeatureVector = {}
    for key in genre_keys(candidate.genres):
        vec[f"g:{key}"] = 1.0
    for prefix, values in (("t", candidate.themes), ("m", candidate.game_modes), ("p", candidate.perspectives)):
        for value in values:
            if norm(value):
                vec[f"{prefix}:{norm(value)}"] = 1.0
    if norm(candidate.developer):
        vec[f"d:{norm(candidate.developer)}"] = 1.0
    return vec


def profile_vector(profile: TasteProfile, developer_limit: int) -> FeatureVector:
    vec: FeatureVector = {}
    for prefix, features in (
        ("g", profile.genres),
        ("t", profile.themes),
        ("m", profile.game_modes),
        ("p", profile.perspectives),
        ("d", profile.developers[:developer_limit]),
    ):
        for feature in features:
            vec[f"{prefix}:{norm(feature.name)}"] = feature.weight
    return vec


def build_taste_centroid(
    snapshots: List[UserGameSnapshot],
    weights: EngagementWeights,
    supplied: Optional[List[float]],
) -> Optional[List[float]]:
    """Input centroid when supplied, else the engagement-weighted mean of snapshot embeddings."""
    if supplied:
        return list(supplied)
    with_embedding = [s for s in snapshots if s.embedding]
    if not with_embedding:
        return None
    return mean_vector(
        [s.embedding for s in with_embedding],
        [weights.get(s.game_id, 0.0) for s in with_embedding],
    )


def is_negative_game(snapshot: UserGameSnapshot, now_ms: int, config: OracleConfig) -> bool:
    if snapshot.removed_at:
        return True
    if snapshot.status == GameStatus.DROPPED:
        return True
    if 0 < snapshot.rating <= NEGATIVE_MAX_RATING:
        return True
    if snapshot.status == GameStatus.ON_HOLD and snapshot.hours_played < NEGATIVE_ON_HOLD_HOURS:
        return True
    if snapshot.status == GameStatus.WANT_TO_PLAY and snapshot.session_count == 0:
        age = days_since(snapshot.added_at, now_ms)
        if age is not None and age > config.stale_wishlist_days:
            return True
    return False


def _negative_profile(snapshots, now_ms, config):
    negatives = [s for s in snapshots if is_negative_game(s, now_ms, config)]
    if not negatives:
        return {}, 0.0
    vec: FeatureVector = {}
    for snap in negatives:
        keys = [f"g:{k}" for k in genre_keys(snap.genres)]
        keys += [f"t:{norm(t)}" for t in snap.themes if norm(t)]
        if norm(snap.developer):
            keys.append(f"d:{norm(snap.developer)}")
        for key in keys:
            vec[key] = vec.get(key, 0.0) + 1.0
    top = max(vec.values(), default=1.0) or 1.0
    vec = {k: v / top for k, v in vec.items()}
    strength = min(len(negatives) / len(snapshots), config.negative_max_strength)
    return vec, strength


def _trajectory_rates(snapshots):
    played = [s for s in snapshots if s.session_count > 0 or s.hours_played > 0]
    if not played:
        return 0.0, 0.0
    abandoned = 0
    committed = 0
    for snap in played:
        pattern = effective_pattern(snap)
        if pattern in ABANDON_PATTERNS or (
            snap.status == GameStatus.DROPPED and snap.hours_played < ABANDON_MAX_HOURS
        ):
            abandoned += 1
        elif pattern in COMMIT_PATTERNS:
            committed += 1
    return abandoned / len(played), committed / len(played)


def time_bucket(hour: int) -> str:
    if hour < 6:
        return "night"
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    return "evening"


def local_hour(timestamp_ms: float, utc_offset_minutes: int) -> int:
    minutes = int(timestamp_ms // 60000) + utc_offset_minutes
    return (minutes // 60) % 24


def _time_of_day_affinity(snapshots, current_hour, utc_offset_minutes, min_sessions):
    bucket = time_bucket(current_hour)
    affinity: Dict[str, float] = {}
    in_bucket = 0
    for snap in snapshots:
        keys = genre_keys(snap.genres)
        for ts in snap.session_timestamps:
            if time_bucket(local_hour(ts, utc_offset_minutes)) != bucket:
                continue
            in_bucket += 1
            for key in keys:
                affinity[key] = affinity.get(key, 0.0) + 1.0
    if in_bucket < min_sessions:
        return {}
    return {k: v / in_bucket for k, v in affinity.items()}


def _sequencing_tables(snapshots, min_sessions):
    sessions = []
    for snap in snapshots:
        keys = genre_keys(snap.genres)
        for ts in snap.session_timestamps:
            sessions.append((ts, snap.game_id, keys))
    if len(sessions) < min_sessions:
        return {}, []
    sessions.sort(key=lambda s: (s[0], s[1]))

    transitions: Dict[str, Dict[str, int]] = {}
    for (_, game_a, genres_a), (_, game_b, genres_b) in zip(sessions, sessions[1:]):
        if game_a == game_b:
            continue
        for src in genres_a:
            row = transitions.setdefault(src, {})
            for dst in genres_b:
                row[dst] = row.get(dst, 0) + 1

    recent = [
        s for s in snapshots if to_epoch_ms(s.last_session_date) is not None
    ]
    recent.sort(key=lambda s: (-to_epoch_ms(s.last_session_date), s.game_id))
    return transitions, [genre_keys(s.genres) for s in recent[:3]]


def _pool_stats(ctx: ScoringContext, candidates: List[CandidateGame]) -> None:
    ctx.max_player_count = max((c.player_count or 0 for c in candidates), default=0)
    ctx.max_recommendations = max((c.recommendations or 0 for c in candidates), default=0)
    ctx.max_review_volume = max((c.review_volume or 0 for c in candidates), default=0)
    ranked = sorted(
        (c for c in candidates if c.player_count),
        key=lambda c: (-c.player_count, c.game_id),
    )
    ctx.popularity_rank = {c.game_id: idx + 1 for idx, c in enumerate(ranked)}


def build_scoring_context(
    snapshots: List[UserGameSnapshot],
    candidates: List[CandidateGame],
    profile: TasteProfile,
    clusters: List[TasteCluster],
    franchises: List[FranchiseCluster],
    engagement: EngagementWeights,
    now_ms: int,
    current_hour: int,
    embedding_coverage: float,
    config: OracleConfig,
    taste_centroid: Optional[List[float]] = None,
    utc_offset_minutes: int = 0,
) -> ScoringContext:
    """Build every per-run table used by the scoring layers."""
    ctx = ScoringContext(
        config=config,
        weights=config.layer_weights(embedding_coverage),
        profile=profile,
        clusters=clusters,
        franchises=FranchiseIndex(franchises),
        now_ms=now_ms,
        owned_ids={s.game_id for s in snapshots},
    )
    ctx.profile_vector = profile_vector(profile, config.content_developer_limit)
    ctx.profile_genre_keys = {genre_key(f.name) for f in profile.genres}
    ctx.profile_theme_keys = {norm(f.name) for f in profile.themes}
    ctx.profile_mode_keys = {norm(f.name) for f in profile.game_modes}
    ctx.loyal_developers = {norm(d) for d in profile.loyal_developers}
    ctx.taste_centroid = build_taste_centroid(snapshots, engagement, taste_centroid)

    seeds = []
    for snap in snapshots:
        weight = engagement.get(snap.game_id, 0.0) * status_trajectory_multiplier(snap)
        if weight <= 0:
            continue
        seeds.append(
            SeedGame(
                game_id=snap.game_id,
                title=snap.title,
                weight=weight,
                title_key=normalize_title(snap.title),
                similar_keys=frozenset(k for k in (normalize_title(t) for t in snap.similar_game_titles) if k),
                tags=tag_set(snap.genres, snap.themes, snap.game_modes),
            )
        )
    seeds.sort(key=lambda s: (-s.weight, s.game_id))
    ctx.seeds = seeds

    ctx.negative_vector, ctx.negative_strength = _negative_profile(snapshots, now_ms, config)
    ctx.abandon_rate, ctx.commit_rate = _trajectory_rates(snapshots)
    ctx.committed_genres = [
        (CURVE_MULTIPLIERS[effective_pattern(s)], set(genre_keys(s.genres)))
        for s in snapshots
        if effective_pattern(s) in COMMIT_PATTERNS
    ]
    ctx.time_of_day_affinity = _time_of_day_affinity(
        snapshots, current_hour, utc_offset_minutes, config.time_of_day_min_sessions
    )
    ctx.transitions, ctx.recent_genres = _sequencing_tables(snapshots, config.sequencing_min_sessions)
    _pool_stats(ctx, candidates)

    logger.debug(
        "[scoring] CONTEXT seeds=%d negative_strength=%.3f abandon_rate=%.3f commit_rate=%.3f "
        "has_centroid=%s tod_genres=%d",
        len(ctx.seeds), ctx.negative_strength, ctx.abandon_rate, ctx.commit_rate,
        ctx.taste_centroid is not None, len(ctx.time_of_day_affinity),
    )
    return ctx
