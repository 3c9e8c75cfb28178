"""
Score helpers — clamping, date parsing, decay and log scaling used by every stage.

All time arithmetic is relative to the run's ``now`` (epoch milliseconds) so a
pipeline run never reads the wall clock.
"""

import math
from datetime import datetime, timezone
from typing import Optional

MS_PER_DAY = 24 * 60 * 60 * 1000


def clamp01(value: float) -> float:
    """Clamp a value into [0, 1]."""
    return max(0.0, min(1.0, value))


def parse_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date or datetime string into an aware UTC datetime (None when unparseable)."""
    if not date_str:
        return None
    try:
        dt = datetime.fromisoformat(date_str.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_ms(date_str: Optional[str]) -> Optional[int]:
    """Epoch milliseconds for an ISO string, or None."""
    dt = parse_date(date_str)
    return int(dt.timestamp() * 1000) if dt is not None else None


def days_between(earlier_ms: float, later_ms: float) -> float:
    """Days elapsed from earlier_ms to later_ms (negative when earlier is in the future)."""
    return (later_ms - earlier_ms) / MS_PER_DAY


def days_since(date_str: Optional[str], now_ms: int) -> Optional[float]:
    """Days between an ISO date and now_ms, or None when the date is missing/invalid."""
    ts = to_epoch_ms(date_str)
    if ts is None:
        return None
    return days_between(ts, now_ms)


def release_year(date_str: Optional[str]) -> Optional[int]:
    dt = parse_date(date_str)
    return dt.year if dt is not None else None


def half_life_decay(age_days: float, half_life_days: float) -> float:
    """0.5 ** (age / half_life); ages in the future count as zero age."""
    if half_life_days <= 0:
        return 0.0
    return math.pow(0.5, max(0.0, age_days) / half_life_days)


def recency_score(days_old: float, lambda_val: float) -> float:
    """
    Recency score with exponential decay.
    Unreleased titles (negative age) score 1.0.
    """
    if days_old <= 0:
        return 1.0
    return math.exp(-lambda_val * days_old)


def log_scale(value: Optional[float], max_value: float) -> float:
    """log(value + 1) / log(max + 1), clamped to [0, 1]; 0 for missing values."""
    if not value or value <= 0 or max_value <= 0:
        return 0.0
    return clamp01(math.log(value + 1) / math.log(max_value + 1))


def mean(values) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0
