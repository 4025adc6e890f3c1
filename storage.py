"""
storage.py
Receipt uploads, stored as files under the receipts directory (one folder per bucket).
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import config

logger = logging.getLogger(__name__)

RECEIPTS_DIR = config.RECEIPTS_DIR

BUCKET_PAYMENTS = "payments"
BUCKET_EXPENSES = "expenses"


def _extension(filename: str) -> str:
    suffix = Path(filename).suffix.lstrip(".").lower()
    return suffix or "bin"


def save_receipt(bucket: str, owner_id: int, filename: str, data: bytes, now: datetime) -> str:
    """
    Write an uploaded receipt to <bucket>/receipts/<owner_id>-<millis>.<ext>
    and return its file:// URL.
    """
    millis = int(now.timestamp() * 1000)
    target = Path(RECEIPTS_DIR) / bucket / "receipts" / f"{owner_id}-{millis}.{_extension(filename)}"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    logger.info("Stored receipt %s (%d bytes)", target, len(data))
    return target.resolve().as_uri()


def receipt_path(url: str) -> Path:
    """Local path behind a receipt URL (used to offer the file for download)."""
    parsed = urlparse(url)
    if parsed.scheme != "file":
        return Path(url)
    # url2pathname also undoes the percent-encoding from as_uri()
    return Path(url2pathname(parsed.path))


def load_receipt(url: str) -> tuple[str, bytes] | None:
    """(file name, content) of a stored receipt, or None when the file is gone."""
    path = receipt_path(url)
    if not path.is_file():
        logger.warning("Receipt file missing: %s", path)
        return None
    return path.name, path.read_bytes()
