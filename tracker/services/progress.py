"""
Tracker - Skill progress and date helpers.

Display-side calculations for skill-learning goals. These never raise on
bad stored data: a missing or inverted date range reads as 0 days remaining.
"""
from datetime import datetime
from typing import Optional

# Lower bound of each display bucket, checked from the top
PROGRESS_BUCKETS = [
    (0.7, "Almost There"),
    (0.3, "In Progress"),
    (0.0, "Just Started"),
]


def clamp_progress(value: float) -> float:
    """Clamp a progress fraction into [0, 1]."""
    return max(0.0, min(float(value), 1.0))


def progress_status(progress: float) -> str:
    """
    Map a progress fraction to its display status.

    0 <= p < 0.3 -> "Just Started"
    0.3 <= p < 0.7 -> "In Progress"
    0.7 <= p < 1 -> "Almost There"
    p == 1 -> "Completed"
    Anything else is "Unknown".
    """
    if progress == 1:
        return "Completed"
    if progress < 0 or progress > 1:
        return "Unknown"
    for lower, label in PROGRESS_BUCKETS:
        if progress >= lower:
            return label
    return "Unknown"


def formatted_progress(progress: float) -> str:
    """Whole-percent label, truncated: 0.657 -> "65%"."""
    return f"{int(progress * 100)}%"


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end (negative when end is earlier)."""
    return (end - start).days


def days_remaining(
    start: Optional[datetime],
    target: Optional[datetime],
    today: Optional[datetime] = None
) -> int:
    """Days left until the target date, never negative."""
    if target is None:
        return 0
    if start is not None and target < start:
        return 0
    today = today or datetime.utcnow()
    return max(days_between(today, target), 0)


def formatted_date(value: Optional[datetime], fmt: Optional[str] = None) -> str:
    """Display date like "Mar 5, 2025", or value.strftime(fmt) when fmt is given."""
    if value is None:
        return "Not set"
    if fmt is None:
        return f"{value:%b} {value.day}, {value:%Y}"
    return value.strftime(fmt)
