"""Calendar-day keys: the only unit of time the habit model knows about.

A day key is the ``YYYY-MM-DD`` rendering of a date in the user's local
calendar. Keys are compared as strings and never carry a time of day.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta


def day_key(d: date) -> str:
    """Render a date (or the date part of a datetime) as a day key."""
    if isinstance(d, datetime):
        d = d.date()
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_day_key(key: str) -> date:
    """Parse a day key back into a date. Raises ValueError on bad input."""
    return datetime.strptime(key, "%Y-%m-%d").date()


def today_key(now: datetime) -> str:
    return day_key(now)


def yesterday_key(now: datetime) -> str:
    """Day key one calendar day before *now*.

    Arithmetic is done on the date, not on the instant, so a 23- or 25-hour
    day around a DST switch still yields the previous calendar day.
    """
    return day_key(now.date() - timedelta(days=1))


def shift_day_key(key: str, days: int) -> str:
    return day_key(parse_day_key(key) + timedelta(days=days))


def last_n_day_keys(n: int, now: datetime) -> list[str]:
    """Keys for the last *n* days including today, oldest first."""
    today = now.date()
    return [day_key(today - timedelta(days=offset)) for offset in range(n - 1, -1, -1)]


def display_string(now: datetime) -> str:
    """Medium-style date for presentation, e.g. 'Oct 18, 2026'."""
    return f"{now:%b} {now.day}, {now.year}"
