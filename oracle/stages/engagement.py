"""
Engagement analysis — per-snapshot engagement weight and session-curve classification.

Pure functions of a snapshot and the run's `now`; no caching across runs.
"""

from typing import Optional, Sequence

from oracle.models.config import OracleConfig
from oracle.models.snapshot import EngagementPattern, GameStatus, UserGameSnapshot
from oracle.utils.scores import MS_PER_DAY, clamp01, half_life_decay, mean, to_epoch_ms

STATUS_WEIGHTS = {
    GameStatus.COMPLETED: 1.0,
    GameStatus.PLAYING_NOW: 0.9,
    GameStatus.PLAYING: 0.7,
    GameStatus.ON_HOLD: 0.3,
    GameStatus.WANT_TO_PLAY: 0.1,
    GameStatus.DROPPED: 0.05,
}

CURVE_MULTIPLIERS = {
    EngagementPattern.LONG_TAIL: 1.4,
    EngagementPattern.SLOW_BURN: 1.3,
    EngagementPattern.HONEYMOON: 0.9,
    EngagementPattern.BINGE_DROP: 0.6,
    EngagementPattern.UNKNOWN: 1.0,
}

# Multiplier for a full status history, keyed by lower-cased statuses joined with "|".
TRAJECTORY_MULTIPLIERS = {
    "want to play|playing|completed": 1.5,
    "want to play|playing now|completed": 1.6,
    "playing|completed": 1.3,
    "playing now|completed": 1.4,
    "want to play|playing": 1.1,
    "playing|on hold": 0.6,
    "playing|dropped": 0.4,
    "want to play": 0.3,
}

BINGE_SPAN_DAYS = 3
SPREAD_SPAN_DAYS = 14


def classify_engagement_curve(
    timestamps: Sequence[float],
    durations: Sequence[float],
    session_count: Optional[int] = None,
) -> EngagementPattern:
    """
    Classify a session history into one of the closed EngagementPattern values.

    - fewer than 3 sessions: unknown
    - all sessions within 3 days: binge-drop
    - 4+ sessions, second half 20% longer than the first, span >= 14 days: slow-burn
    - 5+ sessions, first three 50% longer than the rest: honeymoon
    - span >= 14 days: long-tail
    """
    count = session_count if session_count is not None else len(timestamps)
    if count < 3 or not timestamps:
        return EngagementPattern.UNKNOWN

    span_days = (max(timestamps) - min(timestamps)) / MS_PER_DAY
    if span_days <= BINGE_SPAN_DAYS:
        return EngagementPattern.BINGE_DROP

    is_spread = span_days >= SPREAD_SPAN_DAYS

    if len(durations) >= 4:
        half = len(durations) // 2
        if mean(durations[half:]) > mean(durations[:half]) * 1.2 and is_spread:
            return EngagementPattern.SLOW_BURN

    if len(durations) >= 5:
        if mean(durations[:3]) > mean(durations[3:]) * 1.5:
            return EngagementPattern.HONEYMOON

    if is_spread:
        return EngagementPattern.LONG_TAIL
    return EngagementPattern.UNKNOWN


def effective_pattern(snapshot: UserGameSnapshot) -> EngagementPattern:
    """Snapshot's pattern, re-classified from its sessions when it arrives as unknown."""
    if snapshot.engagement_pattern != EngagementPattern.UNKNOWN:
        return snapshot.engagement_pattern
    return classify_engagement_curve(
        snapshot.session_timestamps,
        snapshot.session_durations,
        snapshot.session_count,
    )


def curve_multiplier(snapshot: UserGameSnapshot) -> float:
    return CURVE_MULTIPLIERS[effective_pattern(snapshot)]


def last_activity_ms(snapshot: UserGameSnapshot) -> Optional[int]:
    ts = to_epoch_ms(snapshot.last_session_date)
    if ts is None:
        ts = to_epoch_ms(snapshot.added_at)
    return ts


def engagement_score(snapshot: UserGameSnapshot, now_ms: int, config: OracleConfig) -> float:
    """
    Engagement weight in [0, 1] for one snapshot.

    Combines hours, rating, status, session depth, recency decay and the
    session-curve multiplier.
    """
    hours = clamp01(min(snapshot.hours_played, config.max_hours_for_engagement) / config.max_hours_for_engagement)
    rating = snapshot.rating / 5.0
    status = STATUS_WEIGHTS.get(snapshot.status, 0.3)

    if snapshot.session_count > 0:
        depth = clamp01(snapshot.avg_session_minutes / config.session_depth_minutes)
    else:
        depth = hours * 0.3

    activity = last_activity_ms(snapshot)
    if activity is None:
        decay = 0.0
    else:
        decay = half_life_decay((now_ms - activity) / MS_PER_DAY, config.engagement_half_life_days)

    curve = curve_multiplier(snapshot)
    base = (
        hours * 0.28
        + rating * 0.25
        + status * 0.18
        + depth * 0.14
        + decay * 0.10
        + (curve - 1.0) * 0.05
    )
    return clamp01(base * curve)


def status_trajectory_multiplier(snapshot: UserGameSnapshot) -> float:
    """How strongly a game's status history endorses it as a seed (0.2 for removed, up to 1.6)."""
    if snapshot.removed_at:
        return 0.2
    if not snapshot.status_trajectory:
        return 1.0
    key = "|".join(s.value.lower() for s in snapshot.status_trajectory)
    if key in TRAJECTORY_MULTIPLIERS:
        return TRAJECTORY_MULTIPLIERS[key]
    if snapshot.status == GameStatus.COMPLETED:
        return 1.3
    if snapshot.status == GameStatus.ON_HOLD:
        return 0.6
    if snapshot.status in (GameStatus.PLAYING, GameStatus.PLAYING_NOW):
        return 1.0
    if snapshot.status == GameStatus.DROPPED:
        return 0.3
    return 0.5
