"""
auth.py
Owner authentication (bcrypt hashes stored in SQLite, login, forced password change).
"""

from __future__ import annotations

import logging

import bcrypt

import config
import db

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
BCRYPT_MAX_BYTES = 72


def _to_bcrypt_secret(password: str) -> bytes:
    # bcrypt ignores everything past 72 bytes and newer releases refuse it
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    hashed = bcrypt.hashpw(_to_bcrypt_secret(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_to_bcrypt_secret(password), password_hash.encode("utf-8"))


def init_auth() -> None:
    """Create the schema and the default owner account (forced to change its password)."""
    db.init_db(hash_password(config.DEFAULT_ADMIN_PASSWORD))


def login(username: str, password: str) -> bool:
    admin = db.fetch_one("SELECT * FROM admin_users WHERE username = ?", (username,))
    if not admin or not verify_password(password, admin["password_hash"]):
        logger.warning("Failed login for %r", username)
        return False
    return True


def validate_new_password(new_password: str, confirm: str) -> list[str]:
    errors: list[str] = []
    if len(new_password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if new_password != confirm:
        errors.append("Passwords do not match.")
    return errors


def change_password(username: str, new_password: str) -> None:
    db.execute(
        "UPDATE admin_users SET password_hash = ? WHERE username = ?",
        (hash_password(new_password), username),
    )
    db.clear_force_password_change()
    logger.info("Password changed for %r", username)
