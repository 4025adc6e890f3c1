import auth
import db


def test_default_admin_forced_to_change_password():
    assert db.is_force_password_change()
    assert auth.login("admin", "admin123")
    assert not auth.login("admin", "wrong")
    assert not auth.login("nobody", "admin123")


def test_change_password_clears_force_flag():
    auth.change_password("admin", "s3cret-pass")

    assert not db.is_force_password_change()
    assert auth.login("admin", "s3cret-pass")
    assert not auth.login("admin", "admin123")


def test_init_db_keeps_existing_admin():
    auth.change_password("admin", "s3cret-pass")
    db.init_db(auth.hash_password("admin123", rounds=4))

    assert auth.login("admin", "s3cret-pass")
    assert not db.is_force_password_change()


def test_long_passwords_are_truncated_consistently():
    long_pw = "x" * 100
    hashed = auth.hash_password(long_pw, rounds=4)
    assert auth.verify_password(long_pw, hashed)
    assert auth.verify_password("x" * 72, hashed)


def test_validate_new_password():
    assert auth.validate_new_password("abcdef", "abcdef") == []
    assert auth.validate_new_password("abc", "abd") == [
        "Password must be at least 6 characters.",
        "Passwords do not match.",
    ]
