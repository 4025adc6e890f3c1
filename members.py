"""
members.py
Member roster: filtered listing and CRUD over the profiles table.
"""

from __future__ import annotations

import logging
import sqlite3

import db
from models import InvalidStateError, Member, NotFoundError

logger = logging.getLogger(__name__)


def fetch_members(status_filter: str = "all", rite_filter: str = "all", search: str = "") -> list[sqlite3.Row]:
    sql = "SELECT * FROM profiles WHERE 1=1"
    params = []

    if status_filter != "all":
        sql += " AND status = ?"
        params.append(status_filter)

    if rite_filter != "all":
        sql += " AND rite = ?"
        params.append(rite_filter)

    if search.strip():
        sql += " AND (full_name LIKE ? OR email LIKE ?)"
        like = f"%{search.strip()}%"
        params.extend([like, like])

    sql += " ORDER BY full_name ASC"
    return db.fetch_all(sql, tuple(params))


def get_member(member_id: int) -> Member:
    row = db.fetch_one("SELECT * FROM profiles WHERE id = ?", (member_id,))
    if row is None:
        raise NotFoundError(f"Member {member_id} not found.")
    return Member.from_row(row)


def add_member(full_name: str, email: str, rite: str, status: str = "active",
               license_start_date: str | None = None) -> int:
    now = db.now_iso()
    try:
        member_id = db.execute(
            """
            INSERT INTO profiles(full_name, email, rite, status, license_start_date, created_at, updated_at)
            VALUES(?,?,?,?,?,?,?)
            """,
            (full_name.strip(), email.strip().lower(), rite, status, license_start_date, now, now),
        )
    except sqlite3.IntegrityError as exc:
        raise InvalidStateError(f"A member with email {email!r} already exists.") from exc
    logger.info("Added member %s (%s)", member_id, full_name)
    return member_id


def update_member(member_id: int, full_name: str, email: str, rite: str, status: str,
                  license_start_date: str | None = None) -> None:
    get_member(member_id)
    try:
        db.execute(
            """
            UPDATE profiles SET full_name=?, email=?, rite=?, status=?, license_start_date=?, updated_at=?
            WHERE id=?
            """,
            (full_name.strip(), email.strip().lower(), rite, status, license_start_date, db.now_iso(), member_id),
        )
    except sqlite3.IntegrityError as exc:
        raise InvalidStateError(f"A member with email {email!r} already exists.") from exc


def delete_member(member_id: int) -> None:
    # fees, extraordinary payments and history go with it (ON DELETE CASCADE)
    if db.execute_rowcount("DELETE FROM profiles WHERE id = ?", (member_id,)) == 0:
        raise NotFoundError(f"Member {member_id} not found.")
    logger.info("Deleted member %s", member_id)


def count_members() -> tuple[int, int]:
    """(total, active)"""
    row = db.fetch_one(
        "SELECT COUNT(*) AS total, COALESCE(SUM(status = 'active'), 0) AS active FROM profiles"
    )
    return int(row["total"]), int(row["active"])
