"""
expenses.py
Expense log: add / list / delete, receipts, totals.
"""

from __future__ import annotations

import logging
import sqlite3
from collections import defaultdict
from datetime import date, datetime

import db
import storage
from lodge_calendar import lodge_year_range
from models import EXPENSE_CATEGORIES, Expense, NotFoundError

logger = logging.getLogger(__name__)


def add_expense(category: str, description: str, amount: float, expense_date: date) -> int:
    if category not in EXPENSE_CATEGORIES:
        raise ValueError(f"Unknown expense category {category!r}.")
    amount = float(amount)
    if amount <= 0:
        raise ValueError("Amount must be > 0.")
    expense_id = db.execute(
        """
        INSERT INTO expenses(category, description, amount, expense_date, created_at)
        VALUES(?,?,?,?,?)
        """,
        (category, description.strip(), amount, expense_date.isoformat(), db.now_iso()),
    )
    logger.info("Added expense %s: %s %.2f", expense_id, category, amount)
    return expense_id


def fetch_expenses(lodge_year: int | None = None) -> list[sqlite3.Row]:
    if lodge_year is None:
        return db.fetch_all("SELECT * FROM expenses ORDER BY expense_date DESC, id DESC")
    start, end = lodge_year_range(lodge_year)
    return db.fetch_all(
        "SELECT * FROM expenses WHERE expense_date BETWEEN ? AND ? ORDER BY expense_date DESC, id DESC",
        (start.isoformat(), end.isoformat()),
    )


def get_expense(expense_id: int) -> Expense:
    row = db.fetch_one("SELECT * FROM expenses WHERE id = ?", (expense_id,))
    if row is None:
        raise NotFoundError(f"Expense {expense_id} not found.")
    return Expense.from_row(row)


def delete_expense(expense_id: int) -> None:
    if db.execute_rowcount("DELETE FROM expenses WHERE id = ?", (expense_id,)) == 0:
        raise NotFoundError(f"Expense {expense_id} not found.")
    logger.info("Deleted expense %s", expense_id)


def attach_expense_receipt(expense_id: int, filename: str, data: bytes, now: datetime) -> str:
    get_expense(expense_id)
    url = storage.save_receipt(storage.BUCKET_EXPENSES, expense_id, filename, data, now)
    db.execute("UPDATE expenses SET receipt_url = ? WHERE id = ?", (url, expense_id))
    return url


def total_expenses(rows) -> float:
    return sum(float(r["amount"]) for r in rows)


def totals_by_category(rows) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for r in rows:
        totals[r["category"]] += float(r["amount"])
    return dict(totals)
