"""
Candidate Scorer: score candidates across weighted layers into ScoredGames.

Public API: build_scoring_context, score_candidates.
- contexts: per-run tables (profile vector, seeds, negative profile, time-of-day, sequencing).
- layers: one function per layer.
- diversity: greedy MMR diversity bonus.
- explanations: templated match explanations.
"""

from .contexts import ScoringContext, build_scoring_context
from .core import ScoringResult, composite_score, score_candidate, score_candidates

__all__ = [
    "ScoringContext",
    "ScoringResult",
    "build_scoring_context",
    "composite_score",
    "score_candidate",
    "score_candidates",
]
