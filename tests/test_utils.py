import io
import json
from datetime import date, datetime

import pandas as pd
import pytest

import alerts
import db
import expenses
import members
import treasury
import utils


@pytest.fixture
def ledger(member_id):
    """Lodge year 2023 with one on-time payment, one late payment and two expenses."""
    treasury.generate_lodge_year_fees(member_id, 2023, 50)
    fees = {f["month"]: f for f in treasury.fetch_fees(2023)}
    treasury.register_payment(fees[7]["id"], 50, datetime(2023, 7, 5))
    treasury.register_payment(fees[8]["id"], 55, datetime(2023, 10, 2))
    expenses.add_expense("rent", "Temple rent", 30, date(2023, 7, 3))
    expenses.add_expense("food", "Agape", 20, date(2024, 2, 1))
    expenses.add_expense("food", "Other year", 999, date(2024, 7, 1))
    alerts.add_alert("temple_rent", "Rent due")
    return member_id


def test_dashboard_stats(ledger):
    stats = utils.dashboard_stats(2023, date(2023, 11, 15))

    assert stats["total_members"] == 1
    assert stats["active_members"] == 1
    assert stats["income"] == pytest.approx(105)
    assert stats["expenses"] == pytest.approx(50)
    assert stats["balance"] == pytest.approx(55)
    assert stats["pending_payments"] == 10
    assert stats["overdue_payments"] == 2  # September and October
    assert stats["late_payments"] == 1
    assert stats["active_alerts"] == 1


def test_dashboard_stats_counts_extraordinary_income(member_id):
    fee_id = treasury.create_extraordinary_fee("Repairs", 100, date(2023, 9, 1))
    payment = treasury.fetch_extraordinary_payments(fee_id)[0]
    treasury.register_extraordinary_payment(payment["id"], 100, datetime(2023, 9, 5))

    assert utils.dashboard_stats(2023, date(2023, 9, 5))["income"] == pytest.approx(100)


def test_income_by_lodge_month(ledger):
    df = utils.income_by_lodge_month(2023)

    assert len(df) == 12
    assert df["period"].tolist()[:2] == ["July 2023", "August 2023"]
    assert df["lodge_month"].tolist() == list(range(1, 13))
    assert df["income"].tolist()[:3] == [50.0, 55.0, 0.0]


def test_income_by_lodge_month_without_fees():
    df = utils.income_by_lodge_month(2023)
    assert df["income"].sum() == 0


def test_generate_annual_report_upserts(ledger):
    report = utils.generate_annual_report(2023, datetime(2024, 7, 1, 8, 0))

    assert report["total_income"] == pytest.approx(105)
    assert report["report_data"]["label"] == "July 2023 - June 2024"
    assert report["report_data"]["expenses_by_category"] == {"Rent": 30.0, "Food": 20.0}

    expenses.add_expense("events", "Installation", 10, date(2024, 6, 1))
    utils.generate_annual_report(2023, datetime(2024, 7, 2, 8, 0))

    stored = utils.fetch_annual_reports()
    assert len(stored) == 1
    assert stored[0]["total_expenses"] == pytest.approx(60)
    assert stored[0]["report_data"]["income_by_month"]["August 2023"] == 55.0
    raw = db.fetch_one("SELECT report_data FROM annual_reports")["report_data"]
    assert json.loads(raw)["late_payments"] == 1


def test_rows_to_csv_bytes(member_id):
    data = utils.rows_to_csv_bytes(members.fetch_members())
    df = pd.read_csv(io.BytesIO(data))
    assert df.loc[0, "email"] == "carlos@example.org"

    assert utils.rows_to_csv_bytes([], columns=["id"]).decode("utf-8").strip() == "id"


def test_validate_member_inputs():
    assert utils.validate_member_inputs("Ana", "ana@example.org", "york", "active") == []
    errors = utils.validate_member_inputs(" ", "not-an-email", "druid", "retired", "31/12/2024")
    assert len(errors) == 5


def test_validate_expense_inputs():
    assert utils.validate_expense_inputs("rent", "Temple", "300") == []
    assert utils.validate_expense_inputs("rent", "Temple", "abc") == ["Amount must be numeric."]
    assert utils.validate_expense_inputs("other", "", "0") == ["Description is required.", "Amount must be > 0."]


def test_validate_fee_inputs():
    assert utils.validate_fee_inputs("Repairs", 10) == []
    assert utils.validate_fee_inputs("", None) == ["Name is required.", "Amount must be numeric."]


def test_insert_sample_data_runs_twice():
    utils.insert_sample_data(date(2024, 9, 1))
    utils.insert_sample_data(date(2024, 9, 1))

    assert members.count_members() == (6, 4)
    statuses = sorted(f["status"] for f in treasury.fetch_fees(2024) if f["status"] != "pending")
    assert statuses == ["late", "late", "paid", "paid"]


def test_insert_sample_data_early_in_lodge_year_has_no_future_dates():
    today = date(2024, 7, 2)
    utils.insert_sample_data(today)

    paid = [f for f in treasury.fetch_fees(2024) if f["paid_date"]]
    assert len(paid) == 2
    assert all(datetime.fromisoformat(f["paid_date"]).date() <= today for f in paid)
    # nothing could be late before August
    assert {f["status"] for f in paid} == {"paid"}
    assert all(date.fromisoformat(e["expense_date"]) <= today for e in expenses.fetch_expenses())
    assert all("20240702" in m["email"] for m in members.fetch_members())


def test_extraordinary_fee_labels_keep_duplicate_names_apart(member_id):
    first = treasury.create_extraordinary_fee("Temple repairs", 40, date(2024, 10, 1))
    second = treasury.create_extraordinary_fee("Temple repairs", 60, date(2024, 10, 1))

    labels = utils.extraordinary_fee_labels(treasury.fetch_extraordinary_fees())
    assert set(labels) == {first, second}
    assert labels[first] != labels[second]
    assert labels[second].startswith(f"#{second} Temple repairs")
