"""GitHub-style contribution graph data."""
from __future__ import annotations

from datetime import date, timedelta

from .dates import utcnow

# (minimum count, level), highest first
LEVEL_THRESHOLDS = ((10, 4), (6, 3), (3, 2), (1, 1))


def activity_level(count: int) -> int:
    for minimum, level in LEVEL_THRESHOLDS:
        if count >= minimum:
            return level
    return 0


def generate_activity_graph_data(activity_by_date: dict[str, int], days: int = 365, today: date | None = None) -> list[dict]:
    """One {date, count, level} point per day for the last `days` days, oldest first."""
    today = today or utcnow().date()
    data = []
    for i in range(days - 1, -1, -1):
        key = (today - timedelta(days=i)).isoformat()
        count = activity_by_date.get(key, 0)
        data.append({"date": key, "count": count, "level": activity_level(count)})
    return data
