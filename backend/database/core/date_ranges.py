"""
HST calendar helpers for analytics bucketing and range reports.

All day buckets and report windows are expressed in Hawaii Standard Time
(``Pacific/Honolulu``, UTC-10, no daylight saving). Weeks start on Sunday.
"""

import calendar
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

HST_TIMEZONE = "Pacific/Honolulu"
HST = ZoneInfo(HST_TIMEZONE)

FILTERS = ("day", "week", "month", "year", "custom")
PERIODS = ("current", "last", "all")


def now_hst(now: datetime | None = None) -> datetime:
    """Current (or given) instant converted to HST."""
    return (now or datetime.now(timezone.utc)).astimezone(HST)


def hst_date(now: datetime | None = None) -> date:
    """HST calendar day of an instant; the analytics aggregate key."""
    return now_hst(now).date()


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min, tzinfo=dt.tzinfo)


def end_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.max, tzinfo=dt.tzinfo)


def start_of_week(dt: datetime) -> datetime:
    return start_of_day(dt - timedelta(days=(dt.weekday() + 1) % 7))


def end_of_week(dt: datetime) -> datetime:
    return end_of_day(start_of_week(dt) + timedelta(days=6))


def start_of_month(dt: datetime) -> datetime:
    return start_of_day(dt.replace(day=1))


def end_of_month(dt: datetime) -> datetime:
    last_day = calendar.monthrange(dt.year, dt.month)[1]
    return end_of_day(dt.replace(day=last_day))


def start_of_year(dt: datetime) -> datetime:
    return start_of_day(dt.replace(month=1, day=1))


def end_of_year(dt: datetime) -> datetime:
    return end_of_day(dt.replace(month=12, day=31))


def sub_months(dt: datetime, months: int) -> datetime:
    """Shift ``dt`` back by whole months, clamping the day to the target month."""
    index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def sub_years(dt: datetime, years: int) -> datetime:
    return sub_months(dt, years * 12)


def _parse_day(value: str, tz) -> datetime:
    return datetime.combine(date.fromisoformat(value), time.min, tzinfo=tz)


def date_range(
    filter: str = "day",
    period: str = "current",
    now: datetime | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> tuple[datetime, datetime]:
    """
    Resolve a report window in HST.

    Parameters
    ----------
    filter : str
        ``day`` | ``week`` | ``month`` | ``year`` | ``custom``.
    period : str
        ``current`` (this day/week/...), ``last`` (the previous one) or
        ``all`` (a trailing window: 30 days, 12 weeks, 12 months, 5 years).
    now : datetime, optional
        Reference instant, defaults to the current time.
    start_date, end_date : str, optional
        ``YYYY-MM-DD`` bounds for ``filter == "custom"``.

    Returns
    -------
    tuple[datetime, datetime]
        Inclusive ``(start, end)`` as HST-aware datetimes.

    Raises
    ------
    ValueError
        If the custom bounds are not ISO dates or are reversed.
    """
    current = now_hst(now)

    if filter == "custom":
        start = _parse_day(start_date, HST) if start_date else start_of_day(current)
        end = end_of_day(_parse_day(end_date, HST)) if end_date else end_of_day(current)
        if start > end:
            raise ValueError("startDate must not be after endDate")
        return start, end

    if filter == "week":
        if period == "current":
            return start_of_week(current), end_of_week(current)
        if period == "last":
            last = current - timedelta(weeks=1)
            return start_of_week(last), end_of_week(last)
        return start_of_week(current - timedelta(weeks=12)), end_of_week(current)

    if filter == "month":
        if period == "current":
            return start_of_month(current), end_of_month(current)
        if period == "last":
            last = sub_months(current, 1)
            return start_of_month(last), end_of_month(last)
        return start_of_month(sub_months(current, 12)), end_of_month(current)

    if filter == "year":
        if period == "current":
            return start_of_year(current), end_of_year(current)
        if period == "last":
            last = sub_years(current, 1)
            return start_of_year(last), end_of_year(last)
        return start_of_year(sub_years(current, 5)), end_of_year(current)

    # "day" and anything unrecognized
    if period == "last":
        yesterday = current - timedelta(days=1)
        return start_of_day(yesterday), end_of_day(yesterday)
    if period == "all":
        return start_of_day(current - timedelta(days=30)), end_of_day(current)
    return start_of_day(current), end_of_day(current)


def format_hst(dt: datetime) -> str:
    """Render an instant as ``YYYY-MM-DD HH:MM:SS HST``."""
    return now_hst(dt).strftime("%Y-%m-%d %H:%M:%S %Z")
