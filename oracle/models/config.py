"""
Engine configuration — taste profile, clusters, franchises, scoring layers and shelves.

OracleConfig defaults are defined here. The server may pass a dict (e.g. from
the JSON file named by ORACLE_CONFIG_PATH); from_dict() merges it with these defaults.
"""

import math
from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator

# Layer names in composite order; each has a weight_<name> field below.
LAYER_NAMES = (
    "content",
    "semantic",
    "cluster",
    "graph",
    "quality",
    "popularity",
    "recency",
    "diversity",
    "time_of_day",
    "engagement_curve",
    "franchise",
    "studio_loyalty",
    "sequencing",
)

# Layers whose influence scales with embedding coverage.
EMBEDDING_LAYERS = ("semantic", "cluster")


class OracleConfig(BaseModel):
    """Configuration for the recommendation engine."""

    # -------------------------------------------------------------------------
    # Taste Profile: engagement weight per snapshot
    # base = 0.28*hours + 0.25*rating + 0.18*status + 0.14*depth + 0.10*decay + 0.05*(curve-1)
    # -------------------------------------------------------------------------

    # Hours at which the hours component saturates.
    max_hours_for_engagement: float = Field(default=500.0, gt=0)
    # Average session length (minutes) at which session depth saturates.
    session_depth_minutes: float = Field(default=240.0, gt=0)
    # Half-life (days) of the recency decay since last session.
    engagement_half_life_days: float = Field(default=180.0, gt=0)
    # Loyal developer: at least this many games with at least this average rating.
    loyal_developer_min_games: int = Field(default=3, ge=0)
    loyal_developer_min_rating: float = Field(default=4.0, ge=0)
    # Developers included in the content vector (highest weight first).
    content_developer_limit: int = Field(default=20, ge=0)

    # -------------------------------------------------------------------------
    # Taste Clusters
    # -------------------------------------------------------------------------

    # Min Jaccard similarity of top-2 tag signatures to join an existing group.
    cluster_similarity_threshold: float = Field(default=0.5, ge=0, le=1)
    # Groups smaller than this merge into the nearest larger group.
    min_cluster_members: int = Field(default=2, ge=0)
    # Max clusters retained (largest first).
    max_clusters: int = Field(default=4, gt=0)
    # Representative titles kept per cluster.
    cluster_top_games: int = Field(default=3, gt=0)

    # -------------------------------------------------------------------------
    # Franchises
    # -------------------------------------------------------------------------

    franchise_min_entries: int = Field(default=2, gt=0)
    # Actively engaged: owned hours > 0 and (avg rating >= X or hours >= Y).
    franchise_active_min_rating: float = Field(default=3.0, ge=0)
    franchise_active_min_hours: float = Field(default=10.0, ge=0)

    # -------------------------------------------------------------------------
    # Layer weights at full embedding coverage (must sum to 1.0)
    # composite = clamp01((sum(w_i * layer_i) - weight_negative * negative) * trajectory)
    # -------------------------------------------------------------------------

    weight_content: float = Field(default=0.13, ge=0)
    weight_semantic: float = Field(default=0.10, ge=0)
    weight_cluster: float = Field(default=0.05, ge=0)
    weight_graph: float = Field(default=0.14, ge=0)
    weight_quality: float = Field(default=0.14, ge=0)
    weight_popularity: float = Field(default=0.06, ge=0)
    weight_recency: float = Field(default=0.06, ge=0)
    weight_diversity: float = Field(default=0.05, ge=0)
    weight_time_of_day: float = Field(default=0.03, ge=0)
    weight_engagement_curve: float = Field(default=0.04, ge=0)
    weight_franchise: float = Field(default=0.10, ge=0)
    weight_studio_loyalty: float = Field(default=0.06, ge=0)
    weight_sequencing: float = Field(default=0.04, ge=0)

    # Penalty weight for the negative signal (outside the 1.0 budget).
    weight_negative: float = Field(default=0.06, ge=0)

    # Share of the weight freed by low embedding coverage that goes to content;
    # the remainder goes to graph.
    coverage_redistribution_content_share: float = Field(default=0.6, ge=0, le=1)

    # -------------------------------------------------------------------------
    # Scoring layers
    # -------------------------------------------------------------------------

    # recency = exp(-recency_lambda * days_old). ln2/730 gives a two year half-life.
    recency_lambda: float = Field(default=math.log(2) / 730, ge=0)
    # Recency for candidates without a release date.
    undated_recency: float = Field(default=0.3, ge=0, le=1)

    # Greedy MMR diversity selection runs over this many top candidates.
    diversity_window: int = Field(default=80, gt=0)

    # Graph layer: seed titles recorded per candidate, min shared tags for co-occurrence.
    graph_max_similar: int = Field(default=3, ge=0)
    graph_min_shared_tags: int = Field(default=3, ge=0)

    # Popularity is debiased by up to this fraction for mega-hits.
    popularity_debias: float = Field(default=0.25, ge=0, le=1)

    # Trajectory multiplier bounds.
    trajectory_min: float = Field(default=0.5, ge=0)
    trajectory_max: float = Field(default=1.2, ge=0)
    # Candidate length (hours) treated as "very long".
    long_game_hours: float = Field(default=60.0, ge=0)

    # Negative strength cap (share of negative games).
    negative_max_strength: float = Field(default=0.5, ge=0, le=1)
    # Wishlist entries older than this with no sessions count as negative.
    stale_wishlist_days: float = Field(default=180.0, ge=0)

    # Time-of-day layer: min sessions in the current bucket.
    time_of_day_min_sessions: int = Field(default=3, ge=0)
    # Sequencing fallback: min sessions to build genre transitions.
    sequencing_min_sessions: int = Field(default=4, ge=0)

    # -------------------------------------------------------------------------
    # Shelves
    # -------------------------------------------------------------------------

    shelf_size: int = Field(default=12, gt=0)
    max_shelves_per_game: int = Field(default=2, gt=0)
    min_shelf_size: int = Field(default=2, ge=0)
    max_because_shelves: int = Field(default=3, ge=0)
    # Because-you-loved seed: rating >= X or hours >= Y.
    because_seed_min_rating: float = Field(default=4.0, ge=0)
    because_seed_min_hours: float = Field(default=20.0, ge=0)
    # Stretch picks: no shared genre, content <= X; shelf needs quality and score floors.
    stretch_max_content: float = Field(default=0.25, ge=0, le=1)
    stretch_min_quality: float = Field(default=0.5, ge=0, le=1)
    stretch_min_score: float = Field(default=0.12, ge=0, le=1)
    # Hidden gems: quality >= X, popularity <= Y, score >= floor.
    hidden_gem_min_quality: float = Field(default=0.55, ge=0, le=1)
    hidden_gem_max_popularity: float = Field(default=0.45, ge=0, le=1)
    hidden_gem_min_score: float = Field(default=0.15, ge=0, le=1)
    critics_choice_min_metacritic: float = Field(default=85.0, ge=0, le=100)
    deal_min_discount: float = Field(default=20.0, ge=0, le=100)
    new_release_window_days: float = Field(default=90.0, ge=0)
    coming_soon_min_score: float = Field(default=0.15, ge=0, le=1)
    upcoming_shelf_size: int = Field(default=8, gt=0)
    finish_and_try_size: int = Field(default=8, gt=0)
    unfinished_size: int = Field(default=8, gt=0)
    # For-your-mood shelves need at least this many games.
    mood_min_size: int = Field(default=3, ge=0)
    trending_min_popularity: float = Field(default=0.6, ge=0, le=1)
    # Finish-and-try: min share of the candidate's genres shared with unfinished games.
    finish_and_try_min_overlap: float = Field(default=0.5, ge=0, le=1)

    @model_validator(mode="after")
    def check_weights_and_bounds(self):
        total = sum(getattr(self, f"weight_{name}") for name in LAYER_NAMES)
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Layer weights must sum to 1.0, got {total}")
        if self.trajectory_min > self.trajectory_max:
            raise ValueError(
                f"trajectory_min ({self.trajectory_min}) must not exceed trajectory_max ({self.trajectory_max})"
            )
        return self

    def layer_weights(self, embedding_coverage: float) -> Dict[str, float]:
        """
        Effective layer weights for a run.

        Semantic and cluster weights scale with embedding coverage; the freed
        share goes to content and graph so the total stays 1.0.
        """
        coverage = max(0.0, min(1.0, embedding_coverage))
        weights = {name: getattr(self, f"weight_{name}") for name in LAYER_NAMES}
        freed = 0.0
        for name in EMBEDDING_LAYERS:
            scaled = weights[name] * coverage
            freed += weights[name] - scaled
            weights[name] = scaled
        weights["content"] += freed * self.coverage_redistribution_content_share
        weights["graph"] += freed * (1.0 - self.coverage_redistribution_content_share)
        return weights

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "OracleConfig":
        """Create config from dictionary (e.g., loaded from JSON)."""
        flat = {}
        for section in ("profile", "clusters", "franchise", "scoring", "shelves"):
            if section in config_dict:
                flat.update(config_dict[section])
        if "weights" in config_dict:
            for key, value in config_dict["weights"].items():
                flat[key if key.startswith("weight_") else f"weight_{key}"] = value
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = OracleConfig()


def resolve_config(config: Optional["OracleConfig"]) -> "OracleConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
