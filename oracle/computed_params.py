"""
Computed parameters for the Oracle engine.

Derived, read-only values shown next to the tunable configuration. They are
recomputed whenever the configuration (or the embedding coverage being
inspected) changes and never feed back into a run.
"""

import math
from typing import Any, Dict, Optional

from oracle.models.config import LAYER_NAMES, OracleConfig, resolve_config


def compute_parameters(config: Optional[OracleConfig] = None, coverage: float = 1.0) -> Dict[str, Any]:
    """
    Compute derived parameters from an OracleConfig.

    Args:
        config: Engine configuration (defaults when None).
        coverage: Embedding coverage to evaluate the effective layer weights at.

    Returns:
        Dictionary of computed parameter values.
    """
    config = resolve_config(config)
    coverage = min(1.0, max(0.0, coverage))
    computed: Dict[str, Any] = {"embedding_coverage": coverage}

    # =========================================================================
    # Effective layer weights (semantic/cluster share scaled by coverage)
    # =========================================================================
    effective = config.layer_weights(coverage)
    computed["effective_layer_weights"] = {name: round(effective[name], 6) for name in LAYER_NAMES}
    computed["effective_weight_total"] = round(sum(effective.values()), 6)
    base_embedding = config.weight_semantic + config.weight_cluster
    computed["redistributed_weight"] = round(base_embedding * (1.0 - coverage), 6)

    ranked = sorted(effective.items(), key=lambda kv: (-kv[1], kv[0]))
    computed["dominant_layer"] = ranked[0][0] if ranked else None

    # =========================================================================
    # Recency half-life (derived from lambda; None when recency never decays)
    # =========================================================================
    if config.recency_lambda > 0:
        computed["recency_half_life_days"] = math.log(2) / config.recency_lambda
    else:
        computed["recency_half_life_days"] = None
    computed["engagement_half_life_days"] = config.engagement_half_life_days

    # =========================================================================
    # Negative signal and trajectory ranges
    # =========================================================================
    computed["max_negative_penalty"] = config.weight_negative * config.negative_max_strength
    computed["trajectory_range"] = [config.trajectory_min, config.trajectory_max]

    # =========================================================================
    # Shelf capacity
    # =========================================================================
    computed["max_games_per_shelf"] = config.shelf_size
    computed["max_because_shelves"] = config.max_because_shelves
    computed["max_cluster_shelves"] = config.max_clusters

    return computed
