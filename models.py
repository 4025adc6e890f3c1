"""
models.py
Lightweight domain helpers (label maps, status values, dataclasses, errors).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from types import MappingProxyType

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

RITE_NAMES = MappingProxyType({
    "scottish_rite": "Ancient and Accepted Scottish Rite",
    "ancient_guild": "Ancient Guild",
    "emulation": "Emulation",
    "york": "York",
    "memphis": "Memphis",
})

RITE_COLORS = MappingProxyType({
    "scottish_rite": "red",
    "ancient_guild": "navy",
    "emulation": "navy",
    "york": "navy",
    "memphis": "deepskyblue",
})

MEMBER_STATUS_NAMES = MappingProxyType({
    "active": "Active",
    "ceased": "Ceased",
    "dropped": "Dropped",
    "leave": "Leave of absence",
    "irradiated": "Irradiated",
    "expelled": "Expelled",
    "ad_vitam": "Ad Vitam",
})

EXPENSE_CATEGORIES = MappingProxyType({
    "food": "Food",
    "rent": "Rent",
    "utilities": "Utilities",
    "lodge_assets": "Lodge assets",
    "membership": "Membership",
    "other": "Other",
    "philanthropy": "Philanthropy",
    "events": "Events",
})

ALERT_TYPES = MappingProxyType({
    "temple_rent": "Temple rent",
    "membership_fee": "Membership fee",
    "late_payment": "Late payment",
})

# Dues status of a monthly fee
FEE_PENDING = "pending"
FEE_PAID = "paid"
FEE_LATE = "late"
FEE_STATUS_NAMES = MappingProxyType({
    FEE_PENDING: "Pending",
    FEE_PAID: "Paid",
    FEE_LATE: "Late",
})

PAYMENT_MONTHLY_FEE = "monthly_fee"
PAYMENT_EXTRAORDINARY_FEE = "extraordinary_fee"


class LodgeError(Exception):
    """Base error for lodge data operations."""


class NotFoundError(LodgeError):
    pass


class InvalidStateError(LodgeError):
    pass


class _RowModel:
    @classmethod
    def from_row(cls, row):
        keys = row.keys()
        return cls(**{f.name: row[f.name] for f in fields(cls) if f.name in keys})


@dataclass(frozen=True)
class Member(_RowModel):
    id: int | None
    full_name: str
    email: str
    rite: str
    status: str  # key of MEMBER_STATUS_NAMES
    license_start_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class MonthlyFee(_RowModel):
    id: int | None
    member_id: int
    amount: float
    month: int
    year: int
    lodge_year: int
    status: str  # pending/paid/late
    paid_date: str | None = None
    paid_amount: float = 0.0
    payment_receipt_url: str | None = None
    is_early_payment: bool = False


@dataclass(frozen=True)
class ExtraordinaryPayment(_RowModel):
    id: int | None
    fee_id: int
    member_id: int
    amount_paid: float
    status: str  # pending/paid
    paid_date: str | None = None
    payment_receipt_url: str | None = None


@dataclass(frozen=True)
class Expense(_RowModel):
    id: int | None
    category: str
    description: str
    amount: float
    expense_date: str
    receipt_url: str | None = None
