"""
Scoring layers — one function per named layer, each returning its raw value.

Every function is pure given the candidate and the per-run ScoringContext.
Values are in [0, 1] except the trajectory multiplier (a factor in
[trajectory_min, trajectory_max]).
"""

import math
from typing import List, Optional, Tuple

from oracle.models.candidate import CandidateGame
from oracle.utils.genres import genre_keys
from oracle.utils.scores import clamp01, days_since, log_scale, recency_score
from oracle.utils.similarity import FeatureVector, cosine_similarity, jaccard, sparse_cosine
from oracle.utils.titles import normalize_title

from .contexts import ScoringContext, tag_set

# Graph contributions per seed, strongest match first.
GRAPH_DIRECT = 1.0
GRAPH_REVERSE = 0.8
GRAPH_SHARED_SIMILAR = 0.4
GRAPH_CO_OCCURRENCE = 0.3
GRAPH_SATURATION = 3.0

# Neutral value for a quality/popularity component without data.
MISSING_COMPONENT = 0.3
MAINTENANCE_YEARS = 15.0


def content_similarity(vec: FeatureVector, ctx: ScoringContext) -> float:
    return clamp01(sparse_cosine(ctx.profile_vector, vec))


def semantic_similarity(candidate: CandidateGame, ctx: ScoringContext) -> float:
    """Cosine to the taste centroid; EmbeddingDimensionError propagates to the scorer."""
    if not candidate.embedding or not ctx.taste_centroid:
        return 0.0
    return clamp01(cosine_similarity(candidate.embedding, ctx.taste_centroid))


def cluster_similarity(candidate: CandidateGame, ctx: ScoringContext) -> Tuple[float, Optional[str]]:
    """Max cosine to any cluster centroid of matching dimension, and that cluster's label."""
    if not candidate.embedding:
        return 0.0, None
    best, label = 0.0, None
    for cluster in ctx.clusters:
        centroid = cluster.semantic_centroid
        if not centroid or len(centroid) != len(candidate.embedding):
            continue
        sim = clamp01(cosine_similarity(candidate.embedding, centroid))
        if sim > best:
            best, label = sim, cluster.label
    return best, label


def graph_signal(candidate: CandidateGame, ctx: ScoringContext) -> Tuple[float, List[str]]:
    """
    Similar-games graph signal from the user's seed games.

    Per seed: candidate listed in the seed's similar games (1.0), seed listed in
    the candidate's (0.8), a similar title in common (0.4), else tag
    co-occurrence with at least graph_min_shared_tags shared tags (0.3 x Jaccard).
    Returns (clamp01(sum / 3), seed titles ordered by contribution).
    """
    title_key = normalize_title(candidate.title)
    similar_keys = {k for k in (normalize_title(t) for t in candidate.similar_game_titles) if k}
    tags = None
    total = 0.0
    hits = []
    for order, seed in enumerate(ctx.seeds):
        if title_key and title_key in seed.similar_keys:
            strength = GRAPH_DIRECT
        elif seed.title_key and seed.title_key in similar_keys:
            strength = GRAPH_REVERSE
        elif similar_keys & seed.similar_keys:
            strength = GRAPH_SHARED_SIMILAR
        else:
            if tags is None:
                tags = tag_set(candidate.genres, candidate.themes, candidate.game_modes)
            if len(tags & seed.tags) >= ctx.config.graph_min_shared_tags:
                total += seed.weight * jaccard(tags, seed.tags) * GRAPH_CO_OCCURRENCE
            continue
        contribution = seed.weight * strength
        total += contribution
        hits.append((-contribution, order, seed.title))
    hits.sort()
    similar_to = []
    for _, _, title in hits:
        if title not in similar_to:
            similar_to.append(title)
        if len(similar_to) >= ctx.config.graph_max_similar:
            break
    return clamp01(total / GRAPH_SATURATION), similar_to


def quality_signal(candidate: CandidateGame, ctx: ScoringContext) -> float:
    """
    Blend of critic score, user recommendations, review sentiment, achievement
    depth and maintenance (age). Review weight moves to critic and
    recommendations when the candidate has no review data.
    """
    critic = (
        clamp01((candidate.metacritic_score - 50) / 50)
        if candidate.metacritic_score
        else MISSING_COMPONENT
    )
    recos = (
        log_scale(candidate.recommendations, ctx.max_recommendations)
        if candidate.recommendations and ctx.max_recommendations > 0
        else MISSING_COMPONENT
    )
    achievements = clamp01(candidate.achievements / 100) if candidate.achievements else MISSING_COMPONENT
    age_days = days_since(candidate.release_date, ctx.now_ms)
    maintenance = (
        MISSING_COMPONENT if age_days is None
        else clamp01(1 - max(0.0, age_days) / 365.25 / MAINTENANCE_YEARS)
    )

    has_reviews = candidate.review_positivity is not None and bool(candidate.review_volume)
    if has_reviews:
        volume = log_scale(candidate.review_volume, ctx.max_review_volume)
        reviews = clamp01(candidate.review_positivity) * 0.7 + volume * 0.3
        return clamp01(
            critic * 0.30 + recos * 0.20 + reviews * 0.20 + achievements * 0.15 + maintenance * 0.15
        )
    return clamp01(critic * 0.40 + recos * 0.30 + achievements * 0.15 + maintenance * 0.15)


def popularity_signal(candidate: CandidateGame, ctx: ScoringContext) -> float:
    """Log-scaled player count (or review volume), debiased so mega-hits gain less."""
    if candidate.player_count:
        raw = log_scale(candidate.player_count, ctx.max_player_count)
    elif candidate.review_volume:
        raw = log_scale(candidate.review_volume, ctx.max_review_volume)
    else:
        return MISSING_COMPONENT
    return clamp01(raw * (1.0 - raw * ctx.config.popularity_debias))


def recency_boost(candidate: CandidateGame, ctx: ScoringContext) -> float:
    age_days = days_since(candidate.release_date, ctx.now_ms)
    if age_days is None:
        return 1.0 if candidate.coming_soon else ctx.config.undated_recency
    return recency_score(age_days, ctx.config.recency_lambda)


def length_score(candidate: CandidateGame, ctx: ScoringContext) -> Optional[float]:
    """How long the candidate is in [0, 1]; None when unknown."""
    if candidate.estimated_hours:
        return clamp01(candidate.estimated_hours / ctx.config.long_game_hours)
    if candidate.achievements:
        return clamp01(candidate.achievements / 100)
    return None


def trajectory_multiplier(candidate: CandidateGame, ctx: ScoringContext) -> float:
    """
    Long candidates are scaled down for users who abandon games early and up
    for users who stick with them.
    """
    length = length_score(candidate, ctx)
    if length is None:
        return 1.0
    factor = 1.0 + length * (0.2 * ctx.commit_rate - 0.5 * ctx.abandon_rate)
    return min(ctx.config.trajectory_max, max(ctx.config.trajectory_min, factor))


def negative_signal(vec: FeatureVector, ctx: ScoringContext) -> float:
    if ctx.negative_strength <= 0:
        return 0.0
    return clamp01(sparse_cosine(ctx.negative_vector, vec) * ctx.negative_strength)


def time_of_day_boost(candidate: CandidateGame, ctx: ScoringContext) -> float:
    if not ctx.time_of_day_affinity:
        return 0.0
    values = [ctx.time_of_day_affinity[k] for k in genre_keys(candidate.genres) if k in ctx.time_of_day_affinity]
    return clamp01(sum(values) / len(values)) if values else 0.0


def engagement_curve_bonus(candidate: CandidateGame, ctx: ScoringContext) -> float:
    """(curve multiplier - 1) x genre overlap with the user's long-tail / slow-burn games."""
    keys = set(genre_keys(candidate.genres))
    if not keys:
        return 0.0
    bonus = 0.0
    for multiplier, genres in ctx.committed_genres:
        overlap = len(keys & genres)
        if overlap:
            bonus = max(bonus, (multiplier - 1.0) * overlap / len(keys))
    return clamp01(bonus)


def franchise_boost(candidate: CandidateGame, ctx: ScoringContext) -> Tuple[float, Optional[str]]:
    """Boost for belonging to a franchise the user owns part of, and the franchise display name."""
    cluster = ctx.franchises.cluster_for(candidate.game_id, candidate.title)
    if cluster is None or cluster.owned_count == 0 or candidate.game_id in ctx.owned_ids:
        return 0.0, None
    if cluster.user_avg_rating >= 4:
        rating_mult = 1.5
    elif cluster.user_avg_rating >= 3:
        rating_mult = 1.0
    else:
        rating_mult = 0.5
    completion = min(cluster.owned_count / len(cluster.entries), 0.8)
    return clamp01((0.4 + completion * 0.5) * rating_mult), cluster.display_name


def studio_loyalty_boost(candidate: CandidateGame, ctx: ScoringContext) -> float:
    if not ctx.loyal_developers:
        return 0.0
    if candidate.developer.strip().lower() in ctx.loyal_developers:
        return 1.0
    if candidate.publisher.strip().lower() in ctx.loyal_developers:
        return 0.6
    return 0.0


def sequencing_boost(candidate: CandidateGame, ctx: ScoringContext) -> float:
    """
    1.0 for the next unowned entry of an actively engaged franchise; otherwise
    half of the session genre-transition affinity from recently played games.
    """
    cluster = ctx.franchises.cluster_for(candidate.game_id, candidate.title)
    if cluster is not None and cluster.is_actively_engaged(
        ctx.config.franchise_active_min_rating, ctx.config.franchise_active_min_hours
    ):
        nxt = cluster.next_unowned_entry()
        if nxt is not None and nxt.game_id == candidate.game_id:
            return 1.0

    if not ctx.transitions or not ctx.recent_genres:
        return 0.0
    keys = genre_keys(candidate.genres)
    total = 0.0
    count = 0
    for genres in ctx.recent_genres:
        for src in genres:
            row = ctx.transitions.get(src)
            if not row:
                continue
            row_total = sum(row.values())
            for key in keys:
                total += row.get(key, 0) / row_total
                count += 1
    if count == 0:
        return 0.0
    return 0.5 * clamp01(total / count * 2)


def check_finite(name: str, value: float) -> float:
    """Reject NaN/inf layer values (the scorer excludes the candidate)."""
    if not math.isfinite(value):
        raise ArithmeticError(f"layer {name} produced non-finite value {value}")
    return value
