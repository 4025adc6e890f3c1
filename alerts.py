"""
alerts.py
Reminders shown on the dashboard (temple rent, membership fee, late payment).
"""

from __future__ import annotations

import sqlite3
from datetime import date

import db
from models import ALERT_TYPES, NotFoundError


def add_alert(alert_type: str, message: str, due_date: date | None = None) -> int:
    if alert_type not in ALERT_TYPES:
        raise ValueError(f"Unknown alert type {alert_type!r}.")
    if not message.strip():
        raise ValueError("Message is required.")
    return db.execute(
        "INSERT INTO alerts(alert_type, message, due_date, is_active, created_at) VALUES(?,?,?,1,?)",
        (alert_type, message.strip(), due_date.isoformat() if due_date else None, db.now_iso()),
    )


def fetch_alerts(active_only: bool = True) -> list[sqlite3.Row]:
    sql = "SELECT * FROM alerts"
    if active_only:
        sql += " WHERE is_active = 1"
    sql += " ORDER BY due_date IS NULL, due_date ASC, id DESC"
    return db.fetch_all(sql)


def deactivate_alert(alert_id: int) -> None:
    if db.execute_rowcount("UPDATE alerts SET is_active = 0 WHERE id = ?", (alert_id,)) == 0:
        raise NotFoundError(f"Alert {alert_id} not found.")


def count_active_alerts() -> int:
    return int(db.fetch_one("SELECT COUNT(*) AS c FROM alerts WHERE is_active = 1")["c"])
