"""
Taste Cluster Detector — partition the library into coherent "mood" groups.

Grouping is a single deterministic pass over snapshots ordered by
(addedAt, gameId): each snapshot's signature is its two highest-weighted
genre/theme tags, and it joins the existing group whose signature is most
similar (Jaccard >= threshold) or founds a new one.
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

from oracle.models.config import OracleConfig
from oracle.models.profile import TasteCluster, TasteProfile
from oracle.models.snapshot import UserGameSnapshot
from oracle.utils.genres import genre_key, norm
from oracle.utils.scores import to_epoch_ms
from oracle.utils.similarity import jaccard, mean_vector

from .taste_profile import EngagementWeights, build_taste_profile

logger = logging.getLogger(__name__)

Signature = FrozenSet[str]


class _Group:
    def __init__(self, index: int, signature: Signature):
        self.index = index
        self.signature = signature
        self.members: List[UserGameSnapshot] = []


def _tag_weights(profile: TasteProfile) -> Dict[str, float]:
    weights = {f"g:{norm(f.name)}": f.weight for f in profile.genres}
    weights.update({f"t:{f.name}": f.weight for f in profile.themes})
    return weights


def dominant_tags(snapshot: UserGameSnapshot, tag_weights: Dict[str, float], limit: int = 2) -> Signature:
    """Top `limit` genre/theme tags of a snapshot by profile weight (ties by tag order)."""
    tags: List[str] = []
    for raw in snapshot.genres:
        key = genre_key(raw)
        if key and f"g:{key}" not in tags:
            tags.append(f"g:{key}")
    for raw in snapshot.themes:
        key = norm(raw)
        if key and f"t:{key}" not in tags:
            tags.append(f"t:{key}")
    ranked = sorted(enumerate(tags), key=lambda it: (-tag_weights.get(it[1], 0.0), it[0]))
    return frozenset(tag for _, tag in ranked[:limit])


def _visit_key(snapshot: UserGameSnapshot) -> Tuple[bool, int, str]:
    added = to_epoch_ms(snapshot.added_at)
    return (added is None, added or 0, snapshot.game_id)


def group_snapshots(
    snapshots: List[UserGameSnapshot],
    tag_weights: Dict[str, float],
    threshold: float,
) -> List[_Group]:
    groups: List[_Group] = []
    for snap in sorted(snapshots, key=_visit_key):
        signature = dominant_tags(snap, tag_weights)
        if not signature:
            continue
        best: Optional[_Group] = None
        best_sim = -1.0
        for group in groups:
            sim = jaccard(signature, group.signature)
            if sim >= threshold and sim > best_sim:
                best, best_sim = group, sim
        if best is None:
            best = _Group(len(groups), signature)
            groups.append(best)
        best.members.append(snap)
    return groups


def merge_small_groups(groups: List[_Group], min_members: int) -> List[_Group]:
    """Fold groups below min_members into the nearest larger group (dropped when none exists)."""
    large = [g for g in groups if len(g.members) >= min_members]
    small = [g for g in groups if len(g.members) < min_members]
    if not large:
        return []
    for group in small:
        target = max(
            large,
            key=lambda g: (jaccard(group.signature, g.signature), len(g.members), -g.index),
        )
        target.members.extend(group.members)
    return large


def _cluster_label(profile: TasteProfile, used: List[str], fallback: str) -> str:
    label = profile.top_genre or profile.top_theme.title() or fallback
    if label in used and profile.top_theme and profile.top_genre:
        label = f"{profile.top_genre} & {profile.top_theme.title()}"
    return label


def _centroid(members: List[UserGameSnapshot], label: str) -> Optional[List[float]]:
    embeddings = [m.embedding for m in members if m.embedding]
    if not embeddings:
        return None
    dim = len(embeddings[0])
    skipped = sum(1 for e in embeddings if len(e) != dim)
    if skipped:
        logger.warning(
            "[clusters] CENTROID_DIM_MISMATCH label=%s dim=%d skipped=%d", label, dim, skipped
        )
    return mean_vector(embeddings)


def detect_taste_clusters(
    snapshots: List[UserGameSnapshot],
    profile: TasteProfile,
    weights: EngagementWeights,
    now_ms: int,
    config: OracleConfig,
) -> List[TasteCluster]:
    """
    Detect 2..max_clusters taste clusters, or none when the library has fewer
    than two coherent groups.
    """
    if len(snapshots) < config.min_cluster_members * 2:
        return []

    groups = group_snapshots(snapshots, _tag_weights(profile), config.cluster_similarity_threshold)
    groups = merge_small_groups(groups, config.min_cluster_members)
    groups.sort(key=lambda g: (-len(g.members), g.index))
    groups = groups[: config.max_clusters]
    if len(groups) < 2:
        logger.debug("[clusters] TOO_FEW_GROUPS count=%d", len(groups))
        return []

    clusters: List[TasteCluster] = []
    labels: List[str] = []
    for idx, group in enumerate(groups):
        sub_profile = build_taste_profile(group.members, now_ms, config, weights)
        label = _cluster_label(sub_profile, labels, f"Cluster {idx + 1}")
        labels.append(label)
        ranked = sorted(group.members, key=lambda m: (-weights.get(m.game_id, 0.0), m.game_id))
        clusters.append(
            TasteCluster(
                id=idx,
                label=label,
                profile=sub_profile,
                game_count=len(group.members),
                top_games=[m.title for m in ranked[: config.cluster_top_games]],
                semantic_centroid=_centroid(group.members, label),
            )
        )
    return clusters
