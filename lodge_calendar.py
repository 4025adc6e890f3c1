"""
lodge_calendar.py
Lodge year / lodge month arithmetic and dues-status derivation.

The lodge year runs July -> June and is named after the calendar year it starts in.
Everything here is pure: "now" is always passed in by the caller.
"""

from __future__ import annotations

from datetime import date

from models import MONTH_NAMES, FEE_LATE, FEE_PAID, FEE_PENDING

FIRST_LODGE_CALENDAR_MONTH = 7  # July


def lodge_year_of(d: date) -> int:
    return d.year if d.month >= FIRST_LODGE_CALENDAR_MONTH else d.year - 1


def current_lodge_year(today: date | None = None) -> int:
    return lodge_year_of(today or date.today())


def lodge_month_of(calendar_month: int) -> int:
    """
    Calendar month (1=Jan) -> lodge month (1=Jul).
    Input must be in 1..12; it is not checked.
    """
    if calendar_month >= 7:
        return calendar_month - 6
    return calendar_month + 6


def calendar_month_of(lodge_month: int) -> int:
    """Inverse of lodge_month_of."""
    if lodge_month <= 6:
        return lodge_month + 6
    return lodge_month - 6


def lodge_year_range(lodge_year: int) -> tuple[date, date]:
    # both ends inclusive
    return date(lodge_year, 7, 1), date(lodge_year + 1, 6, 30)


def format_lodge_year(lodge_year: int) -> str:
    return f"July {lodge_year} - June {lodge_year + 1}"


def lodge_year_months(lodge_year: int) -> list[tuple[int, int]]:
    """
    The twelve (calendar_month, calendar_year) pairs of a lodge year, in lodge-month order.
    """
    months = []
    for lodge_month in range(1, 13):
        month = calendar_month_of(lodge_month)
        year = lodge_year if month >= FIRST_LODGE_CALENDAR_MONTH else lodge_year + 1
        months.append((month, year))
    return months


def recent_lodge_years(count: int = 5, today: date | None = None) -> list[int]:
    current = current_lodge_year(today)
    return [current - i for i in range(count)]


def format_period(month: int, year: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def due_period_elapsed(due_month: int, due_year: int, now: date) -> bool:
    # year first, then month
    return (now.year, now.month) > (due_year, due_month)


def dues_status(due_month: int, due_year: int, now: date, has_recorded_payment: bool) -> str:
    """
    Status a dues period should carry at `now`.

    Lateness is only decided when a payment is recorded: an unpaid period stays
    pending even after it has elapsed.
    """
    if not has_recorded_payment:
        return FEE_PENDING
    if due_period_elapsed(due_month, due_year, now):
        return FEE_LATE
    return FEE_PAID
