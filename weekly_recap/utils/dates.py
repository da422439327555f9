"""
Date helpers for week calculations.

Weeks run Monday to Sunday in UTC. Week 0 is the current week, week 1 the
one before it, and so on.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Optional


def week_start(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def week_dates(week_number: int, today: Optional[date] = None) -> Dict[str, str]:
    """
    Start and end dates of a week offset from the current week.

    Args:
        week_number: 0 = current week, 1 = last week, etc.
        today: Reference day (defaults to today in UTC)

    Returns:
        {"start": "YYYY-MM-DD", "end": "YYYY-MM-DD"}
    """
    today = today or datetime.now(timezone.utc).date()
    start = week_start(today) - timedelta(weeks=week_number)
    end = start + timedelta(days=6)
    return {"start": start.isoformat(), "end": end.isoformat()}


def weeks_since_year_start(year: int, today: Optional[date] = None) -> int:
    """Whole weeks elapsed between Jan 1 of `year` and `today`."""
    today = today or datetime.now(timezone.utc).date()
    return max((today - date(year, 1, 1)).days // 7, 0)


def format_minutes(minutes: int) -> str:
    """Format a duration as "2h 15m" or "45m"."""
    hours, mins = divmod(int(minutes), 60)
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"
