"""
Candidate scoring orchestration: per-candidate layers, composite, diversity, explanations.

composite = clamp01((sum(w_i * layer_i) - w_negative * negative) * trajectory)
Submodules used: contexts, layers, diversity, explanations.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from oracle.errors import ScoringError
from oracle.models.candidate import CandidateGame
from oracle.models.scoring import LayerScores, MatchReasons, ScoredGame
from oracle.utils.genres import genre_displays, genre_key, genre_keys, norm
from oracle.utils.scores import clamp01

from . import layers
from .contexts import ScoringContext, candidate_vector
from .diversity import apply_diversity_bonus
from .explanations import build_explanation

logger = logging.getLogger(__name__)

# Config layer name -> LayerScores field.
LAYER_FIELDS = {
    "content": "content_similarity",
    "semantic": "semantic_similarity",
    "cluster": "cluster_semantic_sim",
    "graph": "graph_signal",
    "quality": "quality_signal",
    "popularity": "popularity_signal",
    "recency": "recency_boost",
    "diversity": "diversity_bonus",
    "time_of_day": "time_of_day_boost",
    "engagement_curve": "engagement_curve_bonus",
    "franchise": "franchise_boost",
    "studio_loyalty": "studio_loyalty_boost",
    "sequencing": "sequencing_boost",
}


@dataclass
class ScoringResult:
    scored: List[ScoredGame] = field(default_factory=list)
    excluded: int = 0


def composite_score(layer_scores: LayerScores, weights: Dict[str, float], negative_weight: float) -> float:
    total = sum(w * getattr(layer_scores, LAYER_FIELDS[name]) for name, w in weights.items())
    total -= negative_weight * layer_scores.negative_signal
    return clamp01(total * layer_scores.trajectory_multiplier)


def score_candidate(candidate: CandidateGame, ctx: ScoringContext) -> ScoredGame:
    """
    Compute every layer for one candidate (diversity bonus is assigned later).

    Raises ScoringError (incl. EmbeddingDimensionError), ValueError or
    ArithmeticError when the candidate's data cannot be scored.
    """
    cfg = ctx.config
    vec = candidate_vector(candidate)

    content = layers.content_similarity(vec, ctx)
    cluster_sim, cluster_label = layers.cluster_similarity(candidate, ctx)
    graph, similar_to = layers.graph_signal(candidate, ctx)
    quality = layers.quality_signal(candidate, ctx)
    popularity = layers.popularity_signal(candidate, ctx)
    franchise, franchise_name = layers.franchise_boost(candidate, ctx)

    layer_scores = LayerScores(
        content_similarity=content,
        semantic_similarity=layers.semantic_similarity(candidate, ctx),
        cluster_semantic_sim=cluster_sim,
        graph_signal=graph,
        quality_signal=quality,
        popularity_signal=popularity,
        recency_boost=layers.recency_boost(candidate, ctx),
        trajectory_multiplier=layers.trajectory_multiplier(candidate, ctx),
        negative_signal=layers.negative_signal(vec, ctx),
        time_of_day_boost=layers.time_of_day_boost(candidate, ctx),
        engagement_curve_bonus=layers.engagement_curve_bonus(candidate, ctx),
        franchise_boost=franchise,
        studio_loyalty_boost=layers.studio_loyalty_boost(candidate, ctx),
        sequencing_boost=layers.sequencing_boost(candidate, ctx),
    )
    for name, value in layer_scores.model_dump().items():
        layers.check_finite(name, value)

    shared_genres = [g for g in genre_displays(candidate.genres) if genre_key(g) in ctx.profile_genre_keys]
    has_genres = bool(genre_keys(candidate.genres))
    reasons = MatchReasons(
        shared_genres=shared_genres,
        shared_themes=[t for t in candidate.themes if norm(t) in ctx.profile_theme_keys],
        shared_modes=[m for m in candidate.game_modes if norm(m) in ctx.profile_mode_keys],
        similar_to=similar_to,
        metacritic_score=candidate.metacritic_score,
        popularity_rank=ctx.popularity_rank.get(candidate.game_id),
        is_hidden_gem=(
            quality >= cfg.hidden_gem_min_quality and popularity <= cfg.hidden_gem_max_popularity
        ),
        is_stretch_pick=(
            bool(ctx.profile_genre_keys)
            and has_genres
            and not shared_genres
            and content <= cfg.stretch_max_content
        ),
        franchise_of=franchise_name,
        is_franchise_entry=franchise_name is not None,
        is_on_sale=candidate.is_on_sale,
        is_free=candidate.is_free,
        semantic_retrieved=candidate.semantic_retrieved,
        best_cluster_label=cluster_label,
    )
    game = ScoredGame.from_candidate(candidate, layer_scores=layer_scores, reasons=reasons)
    game.score = composite_score(layer_scores, ctx.weights, cfg.weight_negative)
    return game


def score_candidates(
    candidates: List[CandidateGame],
    ctx: ScoringContext,
    dismissed: Optional[Set[str]] = None,
    on_progress: Optional[Callable[[float], None]] = None,
    check_cancelled: Optional[Callable[[], None]] = None,
) -> ScoringResult:
    """
    Score every candidate that is neither dismissed nor owned.

    Candidates whose scoring raises are excluded and counted. Output is sorted
    by composite score descending with game id as the tiebreaker.
    """
    dismissed = dismissed or set()
    eligible = [c for c in candidates if c.game_id not in dismissed and c.game_id not in ctx.owned_ids]
    result = ScoringResult()
    step = max(1, len(eligible) // 5)

    for idx, candidate in enumerate(eligible):
        if idx % step == 0:
            if check_cancelled is not None:
                check_cancelled()
            if on_progress is not None:
                on_progress(idx / len(eligible))
        try:
            result.scored.append(score_candidate(candidate, ctx))
        except (ScoringError, ValueError, ArithmeticError) as exc:
            result.excluded += 1
            logger.warning(
                "[scoring] CANDIDATE_EXCLUDED game_id=%s reason=%s", candidate.game_id, exc
            )

    negative_weight = ctx.config.weight_negative
    apply_diversity_bonus(
        result.scored,
        window=ctx.config.diversity_window,
        weight=ctx.weights["diversity"],
        rescore=lambda g: composite_score(g.layer_scores, ctx.weights, negative_weight),
    )
    result.scored.sort(key=lambda s: (-s.score, s.game_id))
    for game in result.scored:
        game.reasons.explanation = build_explanation(game, ctx.profile)

    if result.excluded:
        logger.info("[scoring] EXCLUDED_TOTAL count=%d scored=%d", result.excluded, len(result.scored))
    return result
