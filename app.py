"""
app.py
Streamlit lodge administration dashboard (owner-only).
Run: streamlit run app.py
"""

from __future__ import annotations

import logging
from datetime import date, datetime

import pandas as pd
import streamlit as st

import alerts
import auth
import config
import db
import expenses
import members
import storage
import treasury
import utils
from lodge_calendar import current_lodge_year, format_lodge_year, format_period, recent_lodge_years
from models import (
    ALERT_TYPES,
    EXPENSE_CATEGORIES,
    FEE_PENDING,
    FEE_STATUS_NAMES,
    MEMBER_STATUS_NAMES,
    RITE_COLORS,
    RITE_NAMES,
    LodgeError,
)

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Lodge Administration", layout="wide")


def init_once():
    # Schema + default owner account
    auth.init_auth()


def require_login():
    if "logged_in" not in st.session_state:
        st.session_state.logged_in = False
    if "username" not in st.session_state:
        st.session_state.username = None


def logout():
    st.session_state.logged_in = False
    st.session_state.username = None
    st.success("Logged out.")


def login_screen():
    st.title("🔐 Lodge Login")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input("Username", value="admin")
        password = st.text_input("Password", type="password")
        if st.button("Login", type="primary"):
            if auth.login(username.strip(), password):
                st.session_state.logged_in = True
                st.session_state.username = username.strip()
                st.rerun()
            else:
                st.error("Invalid username or password.")

    with col2:
        st.info(
            "First run creates a default owner account:\n\n"
            "- username: **admin**\n"
            "- password: the `LODGE_ADMIN_PASSWORD` setting (default **admin123**)\n\n"
            "You will be forced to change it on first login."
        )


def password_form(key: str) -> None:
    new1 = st.text_input("New password", type="password", key=f"{key}_new1")
    new2 = st.text_input("Confirm new password", type="password", key=f"{key}_new2")
    if st.button("Update password", type="primary", key=f"{key}_submit"):
        errors = auth.validate_new_password(new1, new2)
        for e in errors:
            st.error(e)
        if not errors:
            auth.change_password(st.session_state.username, new1)
            st.success("Password updated.")
            st.rerun()


def force_change_password_screen():
    st.title("⚠️ Change Password (Required)")
    st.warning("You must change the default password before using the app.")
    password_form("forced")


def lodge_year_selector(key: str) -> int:
    years = recent_lodge_years(5, date.today())
    return st.selectbox("Lodge year", years, format_func=format_lodge_year, key=key)


def show_rows(rows, empty_caption: str) -> None:
    if rows:
        st.dataframe(pd.DataFrame([dict(r) for r in rows]), use_container_width=True, hide_index=True)
    else:
        st.caption(empty_caption)


def receipt_uploader(label: str, key: str):
    return st.file_uploader(label, type=["png", "jpg", "jpeg", "pdf"], key=key)


def receipt_download(url: str, key: str) -> None:
    receipt = storage.load_receipt(url)
    if receipt is None:
        st.caption("Receipt file missing.")
        return
    file_name, data = receipt
    st.download_button("Receipt", data=data, file_name=file_name, key=key)


# ---------- Pages ----------

def dashboard_page():
    lodge_year = current_lodge_year(date.today())
    st.header("📊 Dashboard")
    st.caption(f"Lodge year: {format_lodge_year(lodge_year)}")

    stats = utils.dashboard_stats(lodge_year, date.today())

    c1, c2, c3 = st.columns(3)
    c1.metric("Total members", stats["total_members"], f"{stats['active_members']} active", delta_color="off")
    c2.metric("Income", f"{stats['income']:.2f}")
    c3.metric("Expenses", f"{stats['expenses']:.2f}")

    c4, c5, c6 = st.columns(3)
    c4.metric("Pending payments", stats["pending_payments"], f"{stats['overdue_payments']} overdue",
              delta_color="inverse")
    c5.metric("Active alerts", stats["active_alerts"])
    c6.metric("Balance", f"{stats['balance']:.2f}")

    st.divider()

    st.subheader("Income by month")
    df = utils.income_by_lodge_month(lodge_year)
    st.bar_chart(df.set_index("period")["income"])

    st.subheader("Active alerts")
    show_rows(alerts.fetch_alerts(active_only=True), "No active alerts.")


def member_form(existing=None):
    if existing:
        st.subheader(f"✏️ Edit Member (ID: {existing.id})")
    else:
        st.subheader("➕ New Member")

    rites = list(RITE_NAMES.keys())
    statuses = list(MEMBER_STATUS_NAMES.keys())

    col1, col2, col3 = st.columns(3)
    with col1:
        full_name = st.text_input("Full name", value=(existing.full_name if existing else ""))
        email = st.text_input("Email", value=(existing.email if existing else ""))
    with col2:
        rite = st.selectbox(
            "Rite", rites, format_func=RITE_NAMES.get,
            index=(rites.index(existing.rite) if existing else 0),
        )
        status = st.selectbox(
            "Status", statuses, format_func=MEMBER_STATUS_NAMES.get,
            index=(statuses.index(existing.status) if existing else 0),
        )
    with col3:
        has_leave = st.checkbox("Leave start date", value=bool(existing and existing.license_start_date))
        license_start_date = None
        if has_leave:
            license_start_date = st.date_input(
                "Leave starts",
                value=(utils.parse_iso(existing.license_start_date)
                       if existing and existing.license_start_date else date.today()),
            ).isoformat()

    errors = utils.validate_member_inputs(full_name, email, rite, status, license_start_date)
    if errors:
        for e in errors:
            st.error(e)

    if st.button("Save", type="primary", disabled=bool(errors)):
        try:
            if existing:
                members.update_member(existing.id, full_name, email, rite, status, license_start_date)
                st.success("Member updated.")
            else:
                members.add_member(full_name, email, rite, status, license_start_date)
                st.success("Member added.")
        except LodgeError as exc:
            st.error(str(exc))
            return
        st.session_state.edit_member_id = None
        st.rerun()


def members_page():
    st.header("👥 Members")

    with st.sidebar:
        st.subheader("Filters")
        search = st.text_input("Search (name/email)")
        status_filter = st.selectbox(
            "Status", ["all"] + list(MEMBER_STATUS_NAMES.keys()),
            format_func=lambda k: "All statuses" if k == "all" else MEMBER_STATUS_NAMES[k],
        )
        rite_filter = st.selectbox(
            "Rite", ["all"] + list(RITE_NAMES.keys()),
            format_func=lambda k: "All rites" if k == "all" else RITE_NAMES[k],
        )

    rows = members.fetch_members(status_filter=status_filter, rite_filter=rite_filter, search=search)
    st.caption(f"{len(rows)} members found")
    df = pd.DataFrame([dict(r) for r in rows]) if rows else pd.DataFrame(columns=[
        "id", "full_name", "email", "rite", "status", "license_start_date"
    ])
    if df.empty:
        st.dataframe(df, use_container_width=True, hide_index=True)
    else:
        colors = df["rite"].map(RITE_COLORS).tolist()
        df["rite"] = df["rite"].map(RITE_NAMES)
        df["status"] = df["status"].map(MEMBER_STATUS_NAMES)
        styled = df.style.apply(lambda col: [f"color: {c}" for c in colors], subset=["rite"])
        st.dataframe(styled, use_container_width=True, hide_index=True)

    st.divider()

    colA, colB = st.columns([1, 2])
    with colA:
        member_ids = [r["id"] for r in rows]
        selected_id = st.selectbox("Member ID", options=["(none)"] + [str(i) for i in member_ids])

    with colB:
        if selected_id != "(none)":
            c1, c2, c3 = st.columns(3)
            with c1:
                if st.button("Edit"):
                    st.session_state.edit_member_id = int(selected_id)
                    st.rerun()
            with c2:
                amount = st.number_input("Monthly dues", min_value=0.01, value=config.DEFAULT_MONTHLY_FEE)
                if st.button("Create dues for current lodge year"):
                    n = treasury.generate_lodge_year_fees(int(selected_id), current_lodge_year(date.today()), amount)
                    st.success(f"{n} monthly fee(s) created.")
            with c3:
                delete_confirm = st.checkbox("Confirm delete", value=False, key="del_confirm")
                if st.button("Delete", type="secondary", disabled=not delete_confirm):
                    members.delete_member(int(selected_id))
                    st.success("Member deleted.")
                    st.rerun()

    st.divider()

    if st.session_state.get("edit_member_id"):
        try:
            member_form(existing=members.get_member(st.session_state.edit_member_id))
        except LodgeError as exc:
            st.error(str(exc))
        if st.button("Cancel edit"):
            st.session_state.edit_member_id = None
            st.rerun()
    else:
        member_form(existing=None)


def fee_row(fee) -> None:
    c1, c2, c3, c4, c5 = st.columns([2, 2, 1, 2, 2])
    c1.write(format_period(fee["month"], fee["year"]))
    amount_text = f"{fee['amount']:.2f}"
    if fee["status"] != FEE_PENDING:
        amount_text += f" (paid {fee['paid_amount']:.2f})"
    c2.write(amount_text)
    c3.write(FEE_STATUS_NAMES[fee["status"]])
    c4.write(fee["paid_date"][:10] if fee["paid_date"] else "-")
    with c5:
        if fee["status"] == FEE_PENDING:
            if st.button("Register payment", key=f"pay_{fee['id']}"):
                try:
                    status = treasury.register_payment(fee["id"], fee["amount"], datetime.now())
                    st.success(f"Payment registered as {FEE_STATUS_NAMES[status]}.")
                    st.rerun()
                except (LodgeError, ValueError) as exc:
                    st.error(str(exc))
        if fee["payment_receipt_url"]:
            receipt_download(fee["payment_receipt_url"], key=f"dl_fee_{fee['id']}")
        else:
            upload = receipt_uploader("Receipt", key=f"receipt_{fee['id']}")
            if upload is not None:
                treasury.attach_fee_receipt(fee["id"], upload.name, upload.getvalue(), datetime.now())
                st.rerun()


def treasury_page():
    st.header("💰 Treasury")

    lodge_year = lodge_year_selector("treasury_year")

    with st.expander("Create dues for all active members"):
        amount = st.number_input("Monthly amount", min_value=0.01, value=config.DEFAULT_MONTHLY_FEE)
        if st.button("Create dues", type="primary"):
            n = treasury.generate_fees_for_active_members(lodge_year, amount)
            st.success(f"{n} monthly fee(s) created for {format_lodge_year(lodge_year)}.")
            st.rerun()

    grouped = treasury.group_fees_by_member(treasury.fetch_fees(lodge_year))
    if not grouped:
        st.info("No dues for this lodge year yet.")
        return

    for member in grouped.values():
        with st.container(border=True):
            st.subheader(member["full_name"])
            st.caption(f"{member['email']} · {MEMBER_STATUS_NAMES[member['member_status']]}")
            for fee in member["fees"]:
                fee_row(fee)

    st.divider()
    st.subheader("Payment history")
    show_rows(treasury.fetch_payment_history(lodge_year=lodge_year), "No payments for this lodge year.")


def extraordinary_fees_page():
    st.header("🧾 Extraordinary Fees")

    with st.expander("New extraordinary fee"):
        name = st.text_input("Name")
        amount = st.text_input("Amount", value="100")
        due = st.date_input("Due date", value=date.today())
        errors = utils.validate_fee_inputs(name, amount)
        if st.button("Create", type="primary", disabled=bool(errors)):
            treasury.create_extraordinary_fee(name, float(amount), due)
            st.success("Fee created for all active members.")
            st.rerun()

    fees = treasury.fetch_extraordinary_fees()
    show_rows(fees, "No extraordinary fees.")
    if not fees:
        return

    labels = utils.extraordinary_fee_labels(fees)
    fee_id = st.selectbox("Fee", list(labels.keys()), format_func=labels.get)

    for p in treasury.fetch_extraordinary_payments(fee_id):
        c1, c2, c3 = st.columns([3, 1, 2])
        c1.write(p["full_name"])
        c2.write(p["status"])
        with c3:
            if p["status"] == FEE_PENDING:
                if st.button("Register payment", key=f"xpay_{p['id']}"):
                    fee_amount = next(f["amount"] for f in fees if f["id"] == fee_id)
                    try:
                        treasury.register_extraordinary_payment(p["id"], fee_amount, datetime.now())
                        st.rerun()
                    except (LodgeError, ValueError) as exc:
                        st.error(str(exc))
            if p["payment_receipt_url"]:
                receipt_download(p["payment_receipt_url"], key=f"dl_xfee_{p['id']}")
            else:
                upload = receipt_uploader("Receipt", key=f"xreceipt_{p['id']}")
                if upload is not None:
                    treasury.attach_extraordinary_receipt(p["id"], upload.name, upload.getvalue(), datetime.now())
                    st.rerun()


def expenses_page():
    st.header("📉 Expenses")

    lodge_year = lodge_year_selector("expenses_year")
    rows = expenses.fetch_expenses(lodge_year)
    st.caption(f"Total: {expenses.total_expenses(rows):.2f}")

    with st.expander("New expense"):
        categories = list(EXPENSE_CATEGORIES.keys())
        category = st.selectbox("Category", categories, format_func=EXPENSE_CATEGORIES.get,
                                index=categories.index("other"))
        expense_date = st.date_input("Date", value=date.today())
        description = st.text_input("Description")
        amount = st.text_input("Amount", value="")
        errors = utils.validate_expense_inputs(category, description, amount)
        if st.button("Save", type="primary", disabled=bool(errors)):
            expenses.add_expense(category, description, float(amount), expense_date)
            st.success("Expense added.")
            st.rerun()

    for e in rows:
        c1, c2, c3, c4, c5 = st.columns([1, 2, 3, 1, 2])
        c1.write(e["expense_date"])
        c2.write(EXPENSE_CATEGORIES[e["category"]])
        c3.write(e["description"])
        c4.write(f"{e['amount']:.2f}")
        with c5:
            if e["receipt_url"]:
                receipt_download(e["receipt_url"], key=f"dl_exp_{e['id']}")
            else:
                upload = receipt_uploader("Receipt", key=f"ereceipt_{e['id']}")
                if upload is not None:
                    expenses.attach_expense_receipt(e["id"], upload.name, upload.getvalue(), datetime.now())
                    st.rerun()
            if st.button("Delete", key=f"del_exp_{e['id']}"):
                expenses.delete_expense(e["id"])
                st.rerun()

    if not rows:
        st.caption("No expenses in this lodge year.")


def alerts_page():
    st.header("⏰ Alerts")

    types = list(ALERT_TYPES.keys())
    c1, c2, c3 = st.columns([1, 2, 1])
    with c1:
        alert_type = st.selectbox("Type", types, format_func=ALERT_TYPES.get)
    with c2:
        message = st.text_input("Message")
    with c3:
        due = st.date_input("Due date", value=date.today())
    if st.button("Add alert", type="primary", disabled=not message.strip()):
        alerts.add_alert(alert_type, message, due)
        st.rerun()

    st.divider()
    for a in alerts.fetch_alerts(active_only=True):
        c1, c2, c3 = st.columns([3, 1, 1])
        c1.write(f"**{ALERT_TYPES[a['alert_type']]}**: {a['message']}")
        c2.write(a["due_date"] or "-")
        if c3.button("Dismiss", key=f"alert_{a['id']}"):
            alerts.deactivate_alert(a["id"])
            st.rerun()


def reports_page():
    st.header("📑 Reports")

    lodge_year = lodge_year_selector("reports_year")

    if st.button("Generate annual report", type="primary"):
        report = utils.generate_annual_report(lodge_year, datetime.now())
        st.success(
            f"{report['report_data']['label']}: income {report['total_income']:.2f}, "
            f"expenses {report['total_expenses']:.2f}"
        )

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Income by month")
        st.dataframe(utils.income_by_lodge_month(lodge_year)[["period", "income"]],
                     use_container_width=True, hide_index=True)
    with c2:
        st.subheader("Expenses by category")
        st.dataframe(utils.expenses_by_category(lodge_year), use_container_width=True, hide_index=True)

    st.divider()
    st.subheader("Stored annual reports")
    reports = utils.fetch_annual_reports()
    if reports:
        st.dataframe(
            pd.DataFrame([{k: r[k] for k in ("lodge_year", "total_income", "total_expenses", "generated_at")}
                          for r in reports]),
            use_container_width=True, hide_index=True,
        )
    else:
        st.caption("No annual reports generated yet.")

    st.divider()
    st.subheader("CSV exports")
    exports = [
        ("members.csv", members.fetch_members()),
        ("fees.csv", treasury.fetch_fees(lodge_year)),
        ("expenses.csv", expenses.fetch_expenses(lodge_year)),
        ("payment_history.csv", treasury.fetch_payment_history(lodge_year=lodge_year)),
    ]
    for file_name, rows in exports:
        if rows:
            st.download_button(f"Download {file_name}", data=utils.rows_to_csv_bytes(rows),
                               file_name=file_name, mime="text/csv")
        else:
            st.caption(f"Nothing to export for {file_name}.")


def settings_page():
    st.header("⚙️ Settings")

    st.subheader("Change password")
    password_form("settings")

    st.divider()

    st.subheader("Sample data")
    st.caption("Insert 3 sample members with dues, payments, expenses and an alert (adds new rows each run).")
    if st.button("Insert sample data"):
        utils.insert_sample_data()
        st.success("Sample data inserted.")
        st.rerun()


PAGES = {
    "Dashboard": dashboard_page,
    "Members": members_page,
    "Treasury": treasury_page,
    "Extraordinary Fees": extraordinary_fees_page,
    "Expenses": expenses_page,
    "Alerts": alerts_page,
    "Reports": reports_page,
    "Settings": settings_page,
}


def main_app():
    st.sidebar.title("🏛️ Lodge")
    st.sidebar.caption(f"Logged in as: {st.session_state.username}")

    pages = list(PAGES.keys())
    if "page" not in st.session_state:
        st.session_state.page = "Dashboard"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    PAGES[st.session_state.page]()


# --------- App entry ---------

def run():
    init_once()
    require_login()

    if not st.session_state.logged_in:
        login_screen()
        return

    # Force password change on first login after DB creation
    if db.is_force_password_change():
        force_change_password_screen()
        return

    main_app()


if __name__ == "__main__":
    run()
