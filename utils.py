"""
utils.py
Validation, dashboard statistics, annual reports, CSV exports, sample data.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime, timedelta

import pandas as pd

import alerts
import db
import expenses
import members
import treasury
from lodge_calendar import (
    current_lodge_year,
    due_period_elapsed,
    format_lodge_year,
    format_period,
    lodge_month_of,
    lodge_year_months,
)
from models import (
    EXPENSE_CATEGORIES,
    FEE_LATE,
    FEE_PAID,
    FEE_PENDING,
    MEMBER_STATUS_NAMES,
    PAYMENT_EXTRAORDINARY_FEE,
    RITE_NAMES,
)

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
COLLECTED = (FEE_PAID, FEE_LATE)


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


# ---------- Validation ----------

def _amount_errors(amount) -> list[str]:
    try:
        if float(amount) <= 0:
            return ["Amount must be > 0."]
    except (TypeError, ValueError):
        return ["Amount must be numeric."]
    return []


def validate_member_inputs(full_name: str, email: str, rite: str, status: str,
                           license_start_date: str | None = None) -> list[str]:
    errors: list[str] = []
    if not full_name.strip():
        errors.append("Full name is required.")
    if not EMAIL_RE.match(email.strip()):
        errors.append("A valid email is required.")
    if rite not in RITE_NAMES:
        errors.append("Unknown rite.")
    if status not in MEMBER_STATUS_NAMES:
        errors.append("Unknown member status.")
    if license_start_date:
        try:
            parse_iso(license_start_date)
        except ValueError:
            errors.append("Leave start date must be a valid ISO date (YYYY-MM-DD).")
    return errors


def validate_expense_inputs(category: str, description: str, amount) -> list[str]:
    errors: list[str] = []
    if category not in EXPENSE_CATEGORIES:
        errors.append("Unknown expense category.")
    if not description.strip():
        errors.append("Description is required.")
    errors.extend(_amount_errors(amount))
    return errors


def validate_fee_inputs(name: str, amount) -> list[str]:
    errors: list[str] = []
    if not name.strip():
        errors.append("Name is required.")
    errors.extend(_amount_errors(amount))
    return errors


# ---------- Reporting ----------

def _extraordinary_income(lodge_year: int) -> float:
    row = db.fetch_one(
        "SELECT COALESCE(SUM(amount), 0) AS s FROM payment_history WHERE payment_type = ? AND lodge_year = ?",
        (PAYMENT_EXTRAORDINARY_FEE, lodge_year),
    )
    return float(row["s"])


def dashboard_stats(lodge_year: int, today: date) -> dict:
    """
    Headline figures for one lodge year.

    `overdue` counts pending fees whose month has passed; their stored status
    stays pending until someone pays them.
    """
    total_members, active_members = members.count_members()
    fees = treasury.fetch_fees(lodge_year)
    expense_rows = expenses.fetch_expenses(lodge_year)

    dues_income = sum(float(f["paid_amount"]) for f in fees if f["status"] in COLLECTED)
    income = dues_income + _extraordinary_income(lodge_year)
    spent = expenses.total_expenses(expense_rows)
    pending = [f for f in fees if f["status"] == FEE_PENDING]

    return {
        "lodge_year": lodge_year,
        "total_members": total_members,
        "active_members": active_members,
        "income": income,
        "expenses": spent,
        "balance": income - spent,
        "pending_payments": len(pending),
        "overdue_payments": sum(1 for f in pending if due_period_elapsed(f["month"], f["year"], today)),
        "late_payments": sum(1 for f in fees if f["status"] == FEE_LATE),
        "active_alerts": alerts.count_active_alerts(),
    }


def income_by_lodge_month(lodge_year: int) -> pd.DataFrame:
    periods = pd.DataFrame(
        [
            {"lodge_month": lodge_month_of(m), "month": m, "year": y, "period": format_period(m, y)}
            for m, y in lodge_year_months(lodge_year)
        ]
    )
    fees = pd.DataFrame([dict(r) for r in treasury.fetch_fees(lodge_year)])
    collected = fees[fees["status"].isin(COLLECTED)] if not fees.empty else fees
    if collected.empty:
        periods["income"] = 0.0
        return periods

    income = collected.groupby(["year", "month"], as_index=False)["paid_amount"].sum()
    df = periods.merge(income, on=["year", "month"], how="left")
    df = df.rename(columns={"paid_amount": "income"})
    df["income"] = df["income"].fillna(0.0).astype(float)
    return df


def expenses_by_category(lodge_year: int) -> pd.DataFrame:
    totals = expenses.totals_by_category(expenses.fetch_expenses(lodge_year))
    df = pd.DataFrame(
        [{"category": EXPENSE_CATEGORIES[k], "amount": v} for k, v in totals.items()],
        columns=["category", "amount"],
    )
    return df.sort_values("amount", ascending=False, ignore_index=True)


def generate_annual_report(lodge_year: int, now: datetime) -> dict:
    """Compute and store (or replace) the annual report of a lodge year."""
    stats = dashboard_stats(lodge_year, now.date())
    by_month = income_by_lodge_month(lodge_year)
    by_category = expenses_by_category(lodge_year)

    report_data = {
        "label": format_lodge_year(lodge_year),
        "income_by_month": {r["period"]: float(r["income"]) for _, r in by_month.iterrows()},
        "expenses_by_category": {r["category"]: float(r["amount"]) for _, r in by_category.iterrows()},
        "pending_payments": stats["pending_payments"],
        "late_payments": stats["late_payments"],
        "active_members": stats["active_members"],
    }
    generated_at = now.isoformat(timespec="seconds")
    db.execute(
        """
        INSERT INTO annual_reports(lodge_year, total_income, total_expenses, report_data, generated_at)
        VALUES(?,?,?,?,?)
        ON CONFLICT(lodge_year) DO UPDATE SET
            total_income=excluded.total_income,
            total_expenses=excluded.total_expenses,
            report_data=excluded.report_data,
            generated_at=excluded.generated_at
        """,
        (lodge_year, stats["income"], stats["expenses"], json.dumps(report_data), generated_at),
    )
    logger.info("Annual report stored for lodge year %s", lodge_year)
    return {
        "lodge_year": lodge_year,
        "total_income": stats["income"],
        "total_expenses": stats["expenses"],
        "report_data": report_data,
        "generated_at": generated_at,
    }


def fetch_annual_reports() -> list[dict]:
    rows = db.fetch_all("SELECT * FROM annual_reports ORDER BY lodge_year DESC")
    reports = []
    for r in rows:
        report = dict(r)
        report["report_data"] = json.loads(report["report_data"]) if report["report_data"] else {}
        reports.append(report)
    return reports


# ---------- Exports ----------

def rows_to_csv_bytes(rows, columns: list[str] | None = None) -> bytes:
    df = pd.DataFrame([dict(r) for r in rows], columns=columns)
    return df.to_csv(index=False).encode("utf-8")


def extraordinary_fee_labels(rows) -> dict[int, str]:
    """Selector labels keyed by fee id (names and due dates may repeat)."""
    return {r["id"]: f"#{r['id']} {r['name']} (due {r['due_date']})" for r in rows}


# ---------- Sample data ----------

def insert_sample_data(today: date | None = None) -> None:
    """
    Insert 3 members with the current lodge year's dues, a few payments and expenses.
    Members get a fresh email each run, so it is safe to run more than once.
    """
    today = today or date.today()
    lodge_year = current_lodge_year(today)
    total, _ = members.count_members()
    stamp = f"{today:%Y%m%d}.{total}"
    now = datetime.combine(today, datetime.min.time())

    ids = [
        members.add_member("Carlos Mendoza", f"carlos.{stamp}@example.org", "scottish_rite"),
        members.add_member("Luis Herrera", f"luis.{stamp}@example.org", "york"),
        members.add_member("Jorge Paredes", f"jorge.{stamp}@example.org", "memphis", status="leave",
                           license_start_date=(today - timedelta(days=30)).isoformat()),
    ]
    for member_id in ids[:2]:
        treasury.generate_lodge_year_fees(member_id, lodge_year, 50.0)

    # first member pays July on time, second pays July late; never after today
    july_fees = [f for f in treasury.fetch_fees(lodge_year) if f["month"] == 7 and f["member_id"] in ids[:2]]
    for fee in july_fees:
        when = datetime(lodge_year, 7, 5) if fee["member_id"] == ids[0] else datetime(lodge_year, 8, 10)
        when = min(when, now)
        treasury.register_payment(fee["id"], fee["amount"], when)

    start = date(lodge_year, 7, 1)
    expenses.add_expense("rent", "Temple rent", 300.0, min(start + timedelta(days=2), today))
    expenses.add_expense("food", "Agape after meeting", 85.5, min(start + timedelta(days=14), today))
    alerts.add_alert("temple_rent", "Temple rent due", start + timedelta(days=31))
