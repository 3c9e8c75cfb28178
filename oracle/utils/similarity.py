"""
Similarity utilities — dense cosine for embeddings, sparse cosine for tag vectors.
"""

from typing import AbstractSet, Dict, List, Optional, Sequence

import numpy as np

from oracle.errors import EmbeddingDimensionError

FeatureVector = Dict[str, float]


def cosine_similarity(v1: Optional[Sequence[float]], v2: Optional[Sequence[float]]) -> float:
    """
    Compute cosine similarity between two embedding vectors.

    Missing or empty vectors give 0.0. Vectors of different length raise
    EmbeddingDimensionError so the caller can exclude the offending item.
    """
    if v1 is None or v2 is None or len(v1) == 0 or len(v2) == 0:
        return 0.0
    if len(v1) != len(v2):
        raise EmbeddingDimensionError(len(v1), len(v2))
    a = np.asarray(v1, dtype=float)
    b = np.asarray(v2, dtype=float)
    norm_product = np.linalg.norm(a) * np.linalg.norm(b)
    if not np.isfinite(norm_product):
        raise EmbeddingDimensionError(len(v1), len(v2), "non-finite embedding values")
    return float(np.dot(a, b) / norm_product) if norm_product > 0 else 0.0


def mean_vector(
    vectors: List[Sequence[float]],
    weights: Optional[List[float]] = None,
) -> Optional[List[float]]:
    """
    (Weighted) mean of vectors sharing the first vector's dimension.

    Vectors with another dimension are ignored. Returns None when nothing usable remains.
    """
    if not vectors:
        return None
    dim = len(vectors[0])
    if dim == 0:
        return None
    rows = []
    row_weights = []
    for idx, vec in enumerate(vectors):
        if len(vec) != dim:
            continue
        rows.append(np.asarray(vec, dtype=float))
        row_weights.append(weights[idx] if weights is not None else 1.0)
    total = sum(row_weights)
    if not rows or total <= 0:
        return None
    stacked = np.vstack(rows)
    pooled = np.average(stacked, axis=0, weights=np.asarray(row_weights))
    return [float(x) for x in pooled]


def sparse_cosine(a: FeatureVector, b: FeatureVector) -> float:
    """Cosine similarity between two sparse feature vectors keyed by tag."""
    if not a or not b:
        return 0.0
    if len(a) > len(b):
        a, b = b, a
    dot = sum(val * b[key] for key, val in a.items() if key in b)
    mag_a = sum(v * v for v in a.values())
    mag_b = sum(v * v for v in b.values())
    if mag_a == 0 or mag_b == 0:
        return 0.0
    return dot / (mag_a ** 0.5 * mag_b ** 0.5)


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """Jaccard similarity of two sets (0.0 when both are empty)."""
    if not a and not b:
        return 0.0
    intersection = len(a & b)
    union = len(a) + len(b) - intersection
    return intersection / union if union else 0.0
