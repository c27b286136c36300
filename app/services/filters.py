"""
Shared query filters.
"""

from datetime import date, datetime, time, timedelta, timezone


def date_range_clauses(column, from_date: date | None, to_date: date | None) -> list:
    """
    Build WHERE clauses restricting a datetime column to whole days.
    Both bounds are inclusive and interpreted in UTC.
    """
    clauses = []
    if from_date:
        clauses.append(column >= datetime.combine(from_date, time.min, tzinfo=timezone.utc))
    if to_date:
        next_day = to_date + timedelta(days=1)
        clauses.append(column < datetime.combine(next_day, time.min, tzinfo=timezone.utc))
    return clauses
