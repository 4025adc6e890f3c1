from datetime import datetime

import storage


def test_save_receipt_layout(lodge_db):
    now = datetime(2024, 7, 2, 12, 0)
    url = storage.save_receipt(storage.BUCKET_PAYMENTS, 17, "receipt.JPG", b"jpeg", now)

    path = storage.receipt_path(url)
    assert url.startswith("file://")
    assert path.name == f"17-{int(now.timestamp() * 1000)}.jpg"
    assert path.parent == (lodge_db / "receipts" / "payments" / "receipts").resolve()
    assert path.read_bytes() == b"jpeg"


def test_save_receipt_without_extension():
    url = storage.save_receipt(storage.BUCKET_EXPENSES, 3, "scan", b"data", datetime(2024, 1, 1))
    assert url.endswith(".bin")


def test_receipt_path_decodes_spaces_in_directory(lodge_db, monkeypatch):
    monkeypatch.setattr(storage, "RECEIPTS_DIR", lodge_db / "My Lodge" / "receipts")
    url = storage.save_receipt(storage.BUCKET_EXPENSES, 1, "bill.pdf", b"%PDF", datetime(2024, 7, 2))

    assert "%20" in url
    path = storage.receipt_path(url)
    assert path.exists()
    assert "My Lodge" in path.parts
    assert path.read_bytes() == b"%PDF"


def test_load_receipt_returns_name_and_bytes():
    url = storage.save_receipt(storage.BUCKET_PAYMENTS, 5, "fee.png", b"\x89PNG", datetime(2024, 7, 2))
    assert storage.load_receipt(url) == (storage.receipt_path(url).name, b"\x89PNG")


def test_load_receipt_missing_file_returns_none():
    url = storage.save_receipt(storage.BUCKET_PAYMENTS, 5, "fee.png", b"\x89PNG", datetime(2024, 7, 2))
    storage.receipt_path(url).unlink()
    assert storage.load_receipt(url) is None
