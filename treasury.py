"""
treasury.py
Monthly dues per lodge year, payment registration, receipts, extraordinary fees
and payment history.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime

import db
import storage
from lodge_calendar import dues_status, lodge_year_months, lodge_year_of
from models import (
    FEE_PAID,
    FEE_PENDING,
    PAYMENT_EXTRAORDINARY_FEE,
    PAYMENT_MONTHLY_FEE,
    ExtraordinaryPayment,
    InvalidStateError,
    MonthlyFee,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _check_amount(amount: float) -> float:
    amount = float(amount)
    if amount <= 0:
        raise ValueError("Amount must be > 0.")
    return amount


# ---------- Monthly fees ----------

def generate_lodge_year_fees(member_id: int, lodge_year: int, amount: float) -> int:
    """
    Create the twelve pending monthly fees of a lodge year for one member.
    Months that already have a fee are left alone. Returns how many rows were inserted.
    """
    amount = _check_amount(amount)
    now = db.now_iso()
    inserted = 0
    with db.get_conn() as conn:
        for month, year in lodge_year_months(lodge_year):
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO monthly_fees(member_id, amount, month, year, lodge_year, status, created_at)
                VALUES(?,?,?,?,?,?,?)
                """,
                (member_id, amount, month, year, lodge_year, FEE_PENDING, now),
            )
            inserted += cur.rowcount
    if inserted < 12:
        logger.warning("Member %s already had %d fee(s) in lodge year %s", member_id, 12 - inserted, lodge_year)
    logger.info("Generated %d fee(s) for member %s, lodge year %s", inserted, member_id, lodge_year)
    return inserted


def generate_fees_for_active_members(lodge_year: int, amount: float) -> int:
    rows = db.fetch_all("SELECT id FROM profiles WHERE status = 'active' ORDER BY id")
    return sum(generate_lodge_year_fees(r["id"], lodge_year, amount) for r in rows)


def fetch_fees(lodge_year: int, member_id: int | None = None) -> list[sqlite3.Row]:
    sql = """
        SELECT f.*, p.full_name, p.email, p.status AS member_status
        FROM monthly_fees f
        JOIN profiles p ON p.id = f.member_id
        WHERE f.lodge_year = ?
    """
    params: list = [lodge_year]
    if member_id is not None:
        sql += " AND f.member_id = ?"
        params.append(member_id)
    # (year, month) order inside one lodge year is lodge-month order
    sql += " ORDER BY p.full_name ASC, f.member_id ASC, f.year ASC, f.month ASC"
    return db.fetch_all(sql, tuple(params))


def group_fees_by_member(rows) -> dict[int, dict]:
    grouped: dict[int, dict] = {}
    for r in rows:
        entry = grouped.setdefault(
            r["member_id"],
            {"full_name": r["full_name"], "email": r["email"], "member_status": r["member_status"], "fees": []},
        )
        entry["fees"].append(r)
    return grouped


def get_fee(fee_id: int) -> MonthlyFee:
    row = db.fetch_one("SELECT * FROM monthly_fees WHERE id = ?", (fee_id,))
    if row is None:
        raise NotFoundError(f"Monthly fee {fee_id} not found.")
    return MonthlyFee.from_row(row)


def register_payment(fee_id: int, amount: float, now: datetime) -> str:
    """
    Record the payment of a pending monthly fee at `now`.

    The fee becomes 'late' when its month has already passed, otherwise 'paid'.
    Both are final. Returns the new status.
    """
    amount = _check_amount(amount)
    fee = get_fee(fee_id)
    if fee.status != FEE_PENDING:
        raise InvalidStateError(f"Fee {fee_id} is already {fee.status}.")

    status = dues_status(fee.month, fee.year, now, has_recorded_payment=True)
    is_early = (now.year, now.month) < (fee.year, fee.month)
    paid_at = now.isoformat(timespec="seconds")

    with db.get_conn() as conn:
        cur = conn.execute(
            """
            UPDATE monthly_fees SET status=?, paid_date=?, paid_amount=?, is_early_payment=?
            WHERE id=? AND status=?
            """,
            (status, paid_at, amount, int(is_early), fee_id, FEE_PENDING),
        )
        if cur.rowcount == 0:
            # paid meanwhile (another tab, double click)
            raise InvalidStateError(f"Fee {fee_id} is no longer pending.")
        conn.execute(
            """
            INSERT INTO payment_history(member_id, payment_type, reference_id, amount, payment_date,
                                        month, year, lodge_year, created_at)
            VALUES(?,?,?,?,?,?,?,?,?)
            """,
            (fee.member_id, PAYMENT_MONTHLY_FEE, fee_id, amount, paid_at, fee.month, fee.year, fee.lodge_year,
             db.now_iso()),
        )
    logger.info("Fee %s (%s/%s) registered as %s, amount %.2f", fee_id, fee.month, fee.year, status, amount)
    return status


def attach_fee_receipt(fee_id: int, filename: str, data: bytes, now: datetime) -> str:
    get_fee(fee_id)
    url = storage.save_receipt(storage.BUCKET_PAYMENTS, fee_id, filename, data, now)
    db.execute("UPDATE monthly_fees SET payment_receipt_url = ? WHERE id = ?", (url, fee_id))
    return url


# ---------- Extraordinary fees ----------

def create_extraordinary_fee(name: str, amount: float, due_date: date) -> int:
    """Create a one-off fee and a pending payment row for every active member."""
    amount = _check_amount(amount)
    if not name.strip():
        raise ValueError("Name is required.")
    now = db.now_iso()
    with db.get_conn() as conn:
        fee_id = conn.execute(
            "INSERT INTO extraordinary_fees(name, amount, due_date, created_at) VALUES(?,?,?,?)",
            (name.strip(), amount, due_date.isoformat(), now),
        ).lastrowid
        conn.execute(
            """
            INSERT INTO extraordinary_fee_payments(fee_id, member_id, amount_paid, status, created_at)
            SELECT ?, id, 0, 'pending', ? FROM profiles WHERE status = 'active'
            """,
            (fee_id, now),
        )
    logger.info("Created extraordinary fee %s (%s)", fee_id, name)
    return fee_id


def fetch_extraordinary_fees() -> list[sqlite3.Row]:
    return db.fetch_all(
        """
        SELECT e.*,
               COUNT(p.id) AS members,
               COALESCE(SUM(p.status = 'paid'), 0) AS paid_count,
               COALESCE(SUM(p.amount_paid), 0) AS collected
        FROM extraordinary_fees e
        LEFT JOIN extraordinary_fee_payments p ON p.fee_id = e.id
        GROUP BY e.id
        ORDER BY e.due_date DESC, e.id DESC
        """
    )


def fetch_extraordinary_payments(fee_id: int) -> list[sqlite3.Row]:
    return db.fetch_all(
        """
        SELECT p.*, m.full_name, m.email
        FROM extraordinary_fee_payments p
        JOIN profiles m ON m.id = p.member_id
        WHERE p.fee_id = ?
        ORDER BY m.full_name ASC
        """,
        (fee_id,),
    )


def get_extraordinary_payment(payment_id: int) -> ExtraordinaryPayment:
    row = db.fetch_one("SELECT * FROM extraordinary_fee_payments WHERE id = ?", (payment_id,))
    if row is None:
        raise NotFoundError(f"Extraordinary payment {payment_id} not found.")
    return ExtraordinaryPayment.from_row(row)


def register_extraordinary_payment(payment_id: int, amount: float, now: datetime) -> None:
    amount = _check_amount(amount)
    payment = get_extraordinary_payment(payment_id)
    if payment.status == FEE_PAID:
        raise InvalidStateError(f"Extraordinary payment {payment_id} is already paid.")

    paid_at = now.isoformat(timespec="seconds")
    with db.get_conn() as conn:
        cur = conn.execute(
            """
            UPDATE extraordinary_fee_payments SET status='paid', amount_paid=?, paid_date=?
            WHERE id=? AND status=?
            """,
            (amount, paid_at, payment_id, FEE_PENDING),
        )
        if cur.rowcount == 0:
            raise InvalidStateError(f"Extraordinary payment {payment_id} is no longer pending.")
        conn.execute(
            """
            INSERT INTO payment_history(member_id, payment_type, reference_id, amount, payment_date, lodge_year,
                                        created_at)
            VALUES(?,?,?,?,?,?,?)
            """,
            (payment.member_id, PAYMENT_EXTRAORDINARY_FEE, payment.fee_id, amount, paid_at, lodge_year_of(now),
             db.now_iso()),
        )
    logger.info("Extraordinary payment %s registered, amount %.2f", payment_id, amount)


def attach_extraordinary_receipt(payment_id: int, filename: str, data: bytes, now: datetime) -> str:
    get_extraordinary_payment(payment_id)
    url = storage.save_receipt(storage.BUCKET_PAYMENTS, payment_id, filename, data, now)
    db.execute("UPDATE extraordinary_fee_payments SET payment_receipt_url = ? WHERE id = ?", (url, payment_id))
    return url


# ---------- History ----------

def fetch_payment_history(member_id: int | None = None, lodge_year: int | None = None) -> list[sqlite3.Row]:
    sql = """
        SELECT h.*, p.full_name
        FROM payment_history h
        JOIN profiles p ON p.id = h.member_id
        WHERE 1=1
    """
    params: list = []
    if member_id is not None:
        sql += " AND h.member_id = ?"
        params.append(member_id)
    if lodge_year is not None:
        sql += " AND h.lodge_year = ?"
        params.append(lodge_year)
    sql += " ORDER BY h.payment_date DESC, h.id DESC"
    return db.fetch_all(sql, tuple(params))
