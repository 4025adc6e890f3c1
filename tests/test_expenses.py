from datetime import date, datetime

import pytest

import expenses
from models import NotFoundError


def test_fetch_expenses_by_lodge_year_newest_first():
    expenses.add_expense("rent", "Temple rent", 300, date(2024, 7, 3))
    expenses.add_expense("food", "Agape", 80.5, date(2025, 6, 30))
    expenses.add_expense("events", "Previous year", 10, date(2024, 6, 30))

    rows = expenses.fetch_expenses(2024)
    assert [r["description"] for r in rows] == ["Agape", "Temple rent"]
    assert expenses.total_expenses(rows) == pytest.approx(380.5)
    assert len(expenses.fetch_expenses()) == 3


def test_totals_by_category():
    expenses.add_expense("rent", "July rent", 300, date(2024, 7, 3))
    expenses.add_expense("rent", "August rent", 300, date(2024, 8, 3))
    expenses.add_expense("philanthropy", "Donation", 50, date(2024, 8, 10))

    assert expenses.totals_by_category(expenses.fetch_expenses(2024)) == {"rent": 600.0, "philanthropy": 50.0}


def test_add_expense_rejects_bad_input():
    with pytest.raises(ValueError):
        expenses.add_expense("travel", "Unknown category", 10, date(2024, 7, 1))
    with pytest.raises(ValueError):
        expenses.add_expense("other", "Negative", -1, date(2024, 7, 1))


def test_attach_receipt_and_delete():
    expense_id = expenses.add_expense("utilities", "Electricity", 42, date(2024, 7, 20))

    url = expenses.attach_expense_receipt(expense_id, "bill.png", b"png-bytes", datetime(2024, 7, 21))

    assert expenses.get_expense(expense_id).receipt_url == url
    assert "/expenses/receipts/" in url
    expenses.delete_expense(expense_id)
    with pytest.raises(NotFoundError):
        expenses.delete_expense(expense_id)
