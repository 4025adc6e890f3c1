import pytest

import auth
import db
import members
import storage


@pytest.fixture(autouse=True)
def lodge_db(tmp_path, monkeypatch):
    """Fresh SQLite file and receipts directory for every test."""
    monkeypatch.setattr(db, "DB_FILE", tmp_path / "lodge.db")
    monkeypatch.setattr(storage, "RECEIPTS_DIR", tmp_path / "receipts")
    db.init_db(auth.hash_password("admin123", rounds=4))
    yield tmp_path


@pytest.fixture
def member_id():
    return members.add_member("Carlos Mendoza", "carlos@example.org", "scottish_rite")
