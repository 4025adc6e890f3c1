from datetime import date, datetime

import pytest

from lodge_calendar import (
    calendar_month_of,
    current_lodge_year,
    dues_status,
    due_period_elapsed,
    format_lodge_year,
    format_period,
    lodge_month_of,
    lodge_year_months,
    lodge_year_of,
    lodge_year_range,
    recent_lodge_years,
)


@pytest.mark.parametrize("month", range(1, 13))
def test_calendar_to_lodge_month_round_trip(month):
    assert calendar_month_of(lodge_month_of(month)) == month
    assert lodge_month_of(calendar_month_of(month)) == month


def test_lodge_month_anchors():
    assert lodge_month_of(7) == 1
    assert lodge_month_of(12) == 6
    assert lodge_month_of(1) == 7
    assert lodge_month_of(6) == 12


@pytest.mark.parametrize("month", range(7, 13))
def test_second_half_of_calendar_year_starts_lodge_year(month):
    assert lodge_year_of(date(2024, month, 15)) == 2024


@pytest.mark.parametrize("month", range(1, 7))
def test_first_half_of_calendar_year_belongs_to_previous_lodge_year(month):
    assert lodge_year_of(date(2025, month, 15)) == 2024


def test_current_lodge_year_agrees_with_lodge_year_of():
    today = date(2025, 6, 30)
    assert current_lodge_year(today) == lodge_year_of(today) == 2024
    assert current_lodge_year(date(2025, 7, 1)) == 2025
    assert current_lodge_year() == lodge_year_of(date.today())


def test_lodge_year_range():
    assert lodge_year_range(2024) == (date(2024, 7, 1), date(2025, 6, 30))


def test_format_lodge_year():
    label = format_lodge_year(2024)
    assert label == "July 2024 - June 2025"
    assert label.index("2024") < label.index("2025")


def test_lodge_year_months_in_lodge_order():
    months = lodge_year_months(2024)
    assert len(months) == 12
    assert months[0] == (7, 2024)
    assert months[5] == (12, 2024)
    assert months[6] == (1, 2025)
    assert months[-1] == (6, 2025)


def test_recent_lodge_years_descending_from_current():
    assert recent_lodge_years(3, date(2025, 2, 1)) == [2024, 2023, 2022]


def test_format_period():
    assert format_period(3, 2025) == "March 2025"


def test_due_period_elapsed_compares_year_before_month():
    assert due_period_elapsed(12, 2023, date(2024, 1, 1))
    assert not due_period_elapsed(1, 2024, date(2023, 12, 31))
    assert not due_period_elapsed(3, 2024, date(2024, 3, 31))
    assert due_period_elapsed(3, 2024, date(2024, 4, 1))


def test_paid_before_due_period_elapsed():
    assert dues_status(3, 2024, date(2024, 2, 15), True) == "paid"


def test_paid_within_due_month():
    assert dues_status(3, 2024, date(2024, 3, 31), True) == "paid"


def test_paid_after_due_period_elapsed_is_late():
    assert dues_status(1, 2024, date(2024, 3, 1), True) == "late"
    assert dues_status(11, 2023, datetime(2024, 2, 1, 10, 30), True) == "late"


def test_unpaid_stays_pending_even_when_elapsed():
    assert dues_status(5, 2024, date(2024, 4, 1), False) == "pending"
    assert dues_status(1, 2024, date(2024, 9, 1), False) == "pending"
