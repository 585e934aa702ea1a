from datetime import date, datetime
from typing import Union

import pytz


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def format_day_month_year(value: Union[date, datetime]) -> str:
    """3 Feb 2026"""
    return f"{value.day} {value.strftime('%b %Y')}"


def format_month_label(value: Union[date, datetime]) -> str:
    """January 2026"""
    return value.strftime("%B %Y")


def to_license_iso(value: Union[date, datetime]) -> str:
    """Midnight UTC of the given day as 2026-02-03T00:00:00.000Z."""
    return f"{value.strftime('%Y-%m-%d')}T00:00:00.000Z"


def next_month_third(paid_at: datetime) -> datetime:
    """Third day of the month following paid_at, 00:00 UTC."""
    paid_at = as_utc(paid_at)
    if paid_at.month == 12:
        return datetime(paid_at.year + 1, 1, 3, tzinfo=pytz.utc)
    return datetime(paid_at.year, paid_at.month + 1, 3, tzinfo=pytz.utc)
