"""
app/domain/records.py

Typed records built from validated candidates right before commit.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from app.domain.imports import CandidateRecord
from app.mappers.transforms import (
    parse_calendar_date,
    round_amount,
    round_nav,
    round_units,
    to_decimal,
    to_int,
)


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class TransactionRecord:
    customer_id: int
    scheme_code: str
    scheme_name: str | None
    folio_no: str | None
    txn_type_id: int
    txn_date: date
    total_amount: Decimal
    units: Decimal
    nav: Decimal
    stamp_duty: Decimal | None = None

    @classmethod
    def from_candidate(cls, candidate: CandidateRecord) -> TransactionRecord:
        """
        Build from a candidate that already passed validation.
        """

        txn_date = parse_calendar_date(candidate.get("txn_date"))
        total_amount = to_decimal(candidate.get("total_amount"))
        units = to_decimal(candidate.get("units"))
        nav = to_decimal(candidate.get("nav"))
        customer_id = to_int(candidate.get("customer_id"))
        txn_type_id = to_int(candidate.get("txn_type_id"))
        if None in (txn_date, total_amount, units, nav, customer_id, txn_type_id):
            raise ValueError("Transaction candidate is missing required values")

        stamp_duty = to_decimal(candidate.get("stamp_duty"))
        return cls(
            customer_id=customer_id,
            scheme_code=str(candidate.get("scheme_code")),
            scheme_name=_optional_text(candidate.get("scheme_name")),
            folio_no=_optional_text(candidate.get("folio_no")),
            txn_type_id=txn_type_id,
            txn_date=txn_date,
            total_amount=round_amount(total_amount),
            units=round_units(units),
            nav=round_nav(nav),
            stamp_duty=round_amount(stamp_duty) if stamp_duty is not None else None,
        )


@dataclass(frozen=True)
class CustomerAddress:
    address_line1: str | None
    address_line2: str | None
    city: str | None
    state: str | None
    pincode: str | None
    address_type: str | None


@dataclass(frozen=True)
class CustomerRecord:
    prefix: str
    name: str
    email: str | None
    mobile: str | None
    whatsapp: str | None
    pan: str | None
    iwell_code: str | None
    date_of_birth: date | None
    anniversary_date: date | None
    family_head_name: str | None
    family_head_iwell_code: str | None
    referred_by_name: str | None
    address: CustomerAddress | None = None

    @classmethod
    def from_candidate(cls, candidate: CandidateRecord, *, default_prefix: str) -> CustomerRecord:
        address = CustomerAddress(
            address_line1=_optional_text(candidate.get("address_line1")),
            address_line2=_optional_text(candidate.get("address_line2")),
            city=_optional_text(candidate.get("city")),
            state=_optional_text(candidate.get("state")),
            pincode=_optional_text(candidate.get("pincode")),
            address_type=_optional_text(candidate.get("address_type")),
        )
        has_address = any(
            (address.address_line1, address.address_line2, address.city, address.state, address.pincode)
        )
        if has_address and address.address_type is None:
            address = replace(address, address_type="residential")

        return cls(
            prefix=_optional_text(candidate.get("prefix")) or default_prefix,
            name=str(candidate.get("name")).strip(),
            email=_optional_text(candidate.get("email")),
            mobile=_optional_text(candidate.get("mobile")),
            whatsapp=_optional_text(candidate.get("whatsapp")),
            pan=_optional_text(candidate.get("pan")),
            iwell_code=_optional_text(candidate.get("iwell_code")),
            date_of_birth=parse_calendar_date(candidate.get("date_of_birth")),
            anniversary_date=parse_calendar_date(candidate.get("anniversary_date")),
            family_head_name=_optional_text(candidate.get("family_head_name")),
            family_head_iwell_code=_optional_text(candidate.get("family_head_iwell_code")),
            referred_by_name=_optional_text(candidate.get("referred_by_name")),
            address=address if has_address else None,
        )
