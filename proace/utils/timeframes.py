import calendar
from datetime import datetime, timedelta, timezone

from proace.exceptions import ValidationError

ALL_TIME = "all-time"
TODAY = "today"
THIS_WEEK = "this-week"
THIS_MONTH = "this-month"
THIS_YEAR = "this-year"

TIMEFRAMES = (ALL_TIME, TODAY, THIS_WEEK, THIS_MONTH, THIS_YEAR)


def _months_ago(dt, months):
    """Shift a datetime back by whole months, clamping to the month's last day"""
    month_index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def timeframe_start(timeframe, now=None):
    """
    Get the earliest timestamp included in a leaderboard timeframe

    Args:
        timeframe: One of TIMEFRAMES
        now: Reference time (defaults to current UTC time)

    Returns:
        naive UTC datetime, or None for all-time
    """
    if timeframe not in TIMEFRAMES:
        raise ValidationError(
            f"Unknown timeframe '{timeframe}'. Expected one of: {', '.join(TIMEFRAMES)}"
        )

    if timeframe == ALL_TIME:
        return None

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)

    if timeframe == TODAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if timeframe == THIS_WEEK:
        return now - timedelta(days=7)
    if timeframe == THIS_MONTH:
        return _months_ago(now, 1)
    return _months_ago(now, 12)
