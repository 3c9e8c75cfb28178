"""
Engagement Tests

Session-curve classification, per-snapshot engagement weight and the
status-trajectory multiplier.
"""

import pytest

from oracle.models import EngagementPattern, GameStatus
from oracle.stages.engagement import (
    classify_engagement_curve,
    effective_pattern,
    engagement_score,
    status_trajectory_multiplier,
)
from oracle.utils.scores import MS_PER_DAY

from conftest import NOW_MS, sessions_every


class TestClassifyEngagementCurve:
    """The classifier always returns a member of the closed enumeration."""

    def test_too_few_sessions_is_unknown(self):
        ts, durations = sessions_every(10, 2, NOW_MS - 100 * MS_PER_DAY)
        assert classify_engagement_curve(ts, durations) == EngagementPattern.UNKNOWN

    def test_sessions_within_three_days_are_binge_drop(self):
        ts, durations = sessions_every(0.5, 5, NOW_MS - 100 * MS_PER_DAY)
        assert classify_engagement_curve(ts, durations) == EngagementPattern.BINGE_DROP

    def test_growing_sessions_over_weeks_are_slow_burn(self):
        ts, _ = sessions_every(7, 6, NOW_MS - 100 * MS_PER_DAY)
        durations = [30, 30, 30, 90, 90, 90]
        assert classify_engagement_curve(ts, durations) == EngagementPattern.SLOW_BURN

    def test_front_loaded_sessions_are_honeymoon(self):
        ts, _ = sessions_every(2, 6, NOW_MS - 100 * MS_PER_DAY)
        durations = [180, 180, 180, 20, 20, 20]
        assert classify_engagement_curve(ts, durations) == EngagementPattern.HONEYMOON

    def test_even_sessions_over_weeks_are_long_tail(self):
        ts, durations = sessions_every(7, 6, NOW_MS - 100 * MS_PER_DAY)
        assert classify_engagement_curve(ts, durations) == EngagementPattern.LONG_TAIL

    def test_explicit_pattern_wins_over_sessions(self, snapshot_factory):
        ts, durations = sessions_every(0.5, 5, NOW_MS - 100 * MS_PER_DAY)
        snap = snapshot_factory(
            "g",
            session_timestamps=ts,
            session_durations=durations,
            session_count=5,
            engagement_pattern=EngagementPattern.LONG_TAIL,
        )
        assert effective_pattern(snap) == EngagementPattern.LONG_TAIL


class TestEngagementScore:
    def test_score_is_bounded(self, snapshot_factory, config):
        snap = snapshot_factory(
            "g",
            hours_played=10000,
            rating=5,
            session_count=10,
            avg_session_minutes=10000,
            last_session_date="2025-06-01T00:00:00Z",
            engagement_pattern=EngagementPattern.LONG_TAIL,
        )
        assert 0.0 <= engagement_score(snap, NOW_MS, config) <= 1.0

    def test_loved_game_outweighs_dropped_game(self, snapshot_factory, config):
        loved = snapshot_factory("a", hours_played=80, rating=5, status=GameStatus.COMPLETED)
        dropped = snapshot_factory("b", hours_played=1, rating=1, status=GameStatus.DROPPED)
        assert engagement_score(loved, NOW_MS, config) > engagement_score(dropped, NOW_MS, config)

    def test_recent_activity_outweighs_stale_activity(self, snapshot_factory, config):
        recent = snapshot_factory("a", last_session_date="2025-05-30T00:00:00Z")
        stale = snapshot_factory("b", last_session_date="2021-05-30T00:00:00Z")
        assert engagement_score(recent, NOW_MS, config) > engagement_score(stale, NOW_MS, config)

    def test_binge_drop_is_penalised(self, snapshot_factory, config):
        plain = snapshot_factory("a")
        binge = snapshot_factory("b", engagement_pattern=EngagementPattern.BINGE_DROP)
        assert engagement_score(binge, NOW_MS, config) < engagement_score(plain, NOW_MS, config)


class TestStatusTrajectoryMultiplier:
    @pytest.mark.parametrize(
        "trajectory,status,expected",
        [
            ([], GameStatus.COMPLETED, 1.0),
            ([GameStatus.WANT_TO_PLAY, GameStatus.PLAYING, GameStatus.COMPLETED], GameStatus.COMPLETED, 1.5),
            ([GameStatus.PLAYING, GameStatus.DROPPED], GameStatus.DROPPED, 0.4),
            ([GameStatus.ON_HOLD, GameStatus.COMPLETED], GameStatus.COMPLETED, 1.3),
            ([GameStatus.ON_HOLD, GameStatus.DROPPED], GameStatus.DROPPED, 0.3),
        ],
    )
    def test_trajectory_table(self, snapshot_factory, trajectory, status, expected):
        snap = snapshot_factory("g", status=status, status_trajectory=trajectory)
        assert status_trajectory_multiplier(snap) == pytest.approx(expected)

    def test_removed_game_is_weak_seed(self, snapshot_factory):
        snap = snapshot_factory("g", removed_at="2025-01-01T00:00:00Z")
        assert status_trajectory_multiplier(snap) == pytest.approx(0.2)
