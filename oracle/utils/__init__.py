"""Shared utilities for scoring, similarity, genre mapping and title normalisation."""

from .genres import genre_display, genre_key, genre_keys, to_canonical_genre
from .scores import clamp01, days_since, half_life_decay, log_scale, recency_score
from .similarity import cosine_similarity, jaccard, mean_vector, sparse_cosine
from .titles import franchise_base, franchise_display_name, normalize_title

__all__ = [
    "clamp01",
    "cosine_similarity",
    "days_since",
    "franchise_base",
    "franchise_display_name",
    "genre_display",
    "genre_key",
    "genre_keys",
    "half_life_decay",
    "jaccard",
    "log_scale",
    "mean_vector",
    "normalize_title",
    "recency_score",
    "sparse_cosine",
    "to_canonical_genre",
]
