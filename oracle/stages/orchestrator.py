"""
Pipeline orchestrator — runs profile → clusters → franchises → scoring → shelves
and produces one RecoWorkerResult.

The main entry point is run_pipeline. It reads no clock other than for
computeTimeMs, performs no I/O, and never mutates its input. Progress is
reported through an optional callback; cooperative cancellation through an
optional check_cancelled callable that raises RunSuperseded.
"""

import logging
import time
from typing import Any, Callable, List, Mapping, Optional, Union

from oracle.models.candidate import CandidateGame
from oracle.models.config import OracleConfig, resolve_config
from oracle.models.messages import RecoWorkerInput, RecoWorkerResult, parse_worker_input

from .clusters import detect_taste_clusters
from .franchise import detect_franchises
from .scoring import build_scoring_context, score_candidates
from .shelves import build_shelves
from .taste_profile import build_taste_profile, compute_engagement_weights

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]

STAGE_PROFILE = ("Analyzing your library...", 15)
STAGE_CLUSTERS = ("Detecting taste clusters...", 30)
STAGE_FRANCHISES = ("Detecting game franchises...", 45)
STAGE_SCORING = ("Scoring candidates...", 46)
STAGE_SHELVES = ("Building shelves...", 95)
SCORING_END_PERCENT = 80


class _ProgressReporter:
    """Forwards progress only when the percentage strictly increases."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self.callback = callback
        self.last = -1

    def __call__(self, stage: str, percent: int) -> None:
        if self.callback is None or percent <= self.last:
            return
        self.last = percent
        self.callback(stage, percent)


def dedupe_candidates(candidates: List[CandidateGame]) -> List[CandidateGame]:
    """Keep the first candidate per game id."""
    seen = set()
    unique = []
    for candidate in candidates:
        if candidate.game_id in seen:
            logger.info("[pipeline] DUPLICATE_CANDIDATE game_id=%s", candidate.game_id)
            continue
        seen.add(candidate.game_id)
        unique.append(candidate)
    return unique


def run_pipeline(
    worker_input: Union[RecoWorkerInput, Mapping[str, Any]],
    config: Optional[OracleConfig] = None,
    progress: Optional[ProgressCallback] = None,
    check_cancelled: Optional[Callable[[], None]] = None,
) -> RecoWorkerResult:
    """
    Run the full recommendation pipeline for one input message.

    Raises InputValidationError for malformed input (before any stage runs)
    and RunSuperseded when check_cancelled signals a newer input.
    """
    started = time.perf_counter()
    config = resolve_config(config)
    inp = parse_worker_input(worker_input)
    report = _ProgressReporter(progress)

    def checkpoint(stage):
        if check_cancelled is not None:
            check_cancelled()
        report(*stage)

    snapshots = list(inp.user_games)
    dismissed = set(inp.dismissed_game_ids)
    pool = [c for c in dedupe_candidates(list(inp.candidates)) if c.game_id not in dismissed]

    # 1) Taste profile
    checkpoint(STAGE_PROFILE)
    engagement = compute_engagement_weights(snapshots, inp.now, config)
    profile = build_taste_profile(snapshots, inp.now, config, engagement)

    # 2) Taste clusters
    checkpoint(STAGE_CLUSTERS)
    profile.clusters = detect_taste_clusters(snapshots, profile, engagement, inp.now, config)

    # 3) Franchises
    checkpoint(STAGE_FRANCHISES)
    franchises = detect_franchises(snapshots, pool, config)

    # 4) Scoring
    checkpoint(STAGE_SCORING)
    excluded = 0
    shelves = []
    if pool:
        ctx = build_scoring_context(
            snapshots,
            pool,
            profile,
            profile.clusters,
            franchises,
            engagement,
            now_ms=inp.now,
            current_hour=inp.current_hour,
            embedding_coverage=inp.effective_coverage(),
            config=config,
            taste_centroid=inp.taste_centroid,
            utc_offset_minutes=inp.utc_offset_minutes,
        )
        span = SCORING_END_PERCENT - STAGE_SCORING[1]
        scoring = score_candidates(
            pool,
            ctx,
            dismissed,
            on_progress=lambda frac: report(STAGE_SCORING[0], STAGE_SCORING[1] + int(frac * span)),
            check_cancelled=check_cancelled,
        )
        excluded = scoring.excluded

        # 5) Shelves
        checkpoint(STAGE_SHELVES)
        shelves = build_shelves(
            scoring.scored,
            snapshots,
            profile,
            franchises,
            engagement,
            inp.now,
            config,
            dismissed,
        )
    else:
        logger.info("[pipeline] EMPTY_CANDIDATE_POOL user_games=%d", len(snapshots))
        checkpoint(STAGE_SHELVES)

    if check_cancelled is not None:
        check_cancelled()
    compute_time_ms = int(round((time.perf_counter() - started) * 1000))
    logger.info(
        "[pipeline] COMPLETED shelves=%d excluded=%d compute_time_ms=%d",
        len(shelves), excluded, compute_time_ms,
    )
    return RecoWorkerResult(
        taste_profile=profile,
        shelves=shelves,
        compute_time_ms=compute_time_ms,
        excluded_candidates=excluded,
    )
