"""
Pipeline stages: taste profile, clusters, franchises, scoring, shelves, orchestrator.

Public API: run_pipeline.
- engagement: engagement weight and session-curve classification.
- taste_profile: Taste Profile Builder.
- clusters: Taste Cluster Detector.
- franchise: Franchise Detector.
- scoring: Candidate Scorer (subpackage).
- shelves: Shelf Assembler.
- orchestrator: end-to-end run with progress and cancellation checks.
"""

from .engagement import classify_engagement_curve, engagement_score
from .orchestrator import run_pipeline

__all__ = [
    "classify_engagement_curve",
    "engagement_score",
    "run_pipeline",
]
