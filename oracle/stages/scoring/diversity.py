"""
Diversity bonus — greedy MMR-style selection over the top candidates.

Implemented as an in-processing selection loop: each slot picks the best
remaining candidate by base score plus weighted bonus, where the bonus is
1 - (max genre Jaccard to the already-selected candidates). Max similarities
are updated incrementally as candidates are selected.
"""

from typing import Callable, Dict, FrozenSet, List

from oracle.models.scoring import ScoredGame
from oracle.utils.genres import genre_keys
from oracle.utils.similarity import jaccard


def apply_diversity_bonus(
    scored: List[ScoredGame],
    window: int,
    weight: float,
    rescore: Callable[[ScoredGame], float],
) -> List[ScoredGame]:
    """
    Assign diversity_bonus to the top `window` candidates (by current score,
    id as tiebreaker) and recompute their composite with `rescore`.

    Candidates outside the window keep a bonus of 0. Returns the selection
    order. Mutates the ScoredGame objects in place.
    """
    ranked = sorted(scored, key=lambda s: (-s.score, s.game_id))[: max(0, window)]
    genres: Dict[str, FrozenSet[str]] = {s.game_id: frozenset(genre_keys(s.genres)) for s in ranked}
    max_sim: Dict[str, float] = {s.game_id: 0.0 for s in ranked}
    remaining = list(ranked)
    selected: List[ScoredGame] = []

    while remaining:
        best_idx = 0
        best_value = float("-inf")
        for idx, cand in enumerate(remaining):
            value = cand.score + weight * (1.0 - max_sim[cand.game_id])
            if value > best_value:
                best_value = value
                best_idx = idx
        chosen = remaining.pop(best_idx)
        chosen.layer_scores.diversity_bonus = 1.0 - max_sim[chosen.game_id]
        selected.append(chosen)

        chosen_genres = genres[chosen.game_id]
        for cand in remaining:
            sim = jaccard(genres[cand.game_id], chosen_genres)
            if sim > max_sim[cand.game_id]:
                max_sim[cand.game_id] = sim

    for game in selected:
        game.score = rescore(game)
    return selected
