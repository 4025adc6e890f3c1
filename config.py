"""
config.py
Settings read from the environment (a local .env file is loaded first).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got {raw!r}") from exc


DB_FILE = Path(os.environ.get("LODGE_DB_FILE") or BASE_DIR / "lodge.db")
RECEIPTS_DIR = Path(os.environ.get("LODGE_RECEIPTS_DIR") or BASE_DIR / "receipts")
DEFAULT_MONTHLY_FEE = _float_env("LODGE_MONTHLY_FEE", 50.0)
DEFAULT_ADMIN_PASSWORD = os.environ.get("LODGE_ADMIN_PASSWORD", "admin123")
LOG_LEVEL = os.environ.get("LODGE_LOG_LEVEL", "INFO").upper()
