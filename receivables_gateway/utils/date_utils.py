"""Date manipulation utilities"""

import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo
from receivables_gateway.config import settings

# FEBRABAN base date for the boleto due-date factor
DUE_DATE_FACTOR_BASE = date(1997, 10, 7)


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the last day of the target month"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end (epoch-day difference)"""
    return end.toordinal() - start.toordinal()


def today_in(timezone: str) -> date:
    """Current calendar date in the given IANA timezone"""
    return datetime.now(ZoneInfo(timezone)).date()


def business_today() -> date:
    """Current date where the receivables are collected, not on the host clock"""
    return today_in(settings.jobs_timezone)


def due_date_factor(due_date: date) -> str:
    """
    Four-digit FEBRABAN due-date factor.

    Days since 1997-10-07; after reaching 9999 (2025-02-21) the factor
    restarts at 1000.
    """
    days = days_between(DUE_DATE_FACTOR_BASE, due_date)
    if days < 0:
        raise ValueError(f"Due date {due_date} precedes the factor base date")
    if days >= 1000:
        days = 1000 + (days - 1000) % 9000
    return f"{days:04d}"
