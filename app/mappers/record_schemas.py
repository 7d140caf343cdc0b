"""
app/mappers/record_schemas.py

Target-field schemas for the importable record kinds.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.domain.imports import RecordKind
from app.mappers.transforms import (
    format_date,
    lowercase,
    normalize_phone,
    sanitize_folio,
    sanitize_scheme_code,
    trim,
    uppercase,
)


@dataclass(frozen=True)
class FieldSpec:
    """
    One target field: accepted header aliases and the value transform.
    """

    name: str
    aliases: tuple[str, ...] = ()
    transform: Callable[[Any], Any] = trim


@dataclass(frozen=True)
class RecordSchema:
    kind: str
    fields: tuple[FieldSpec, ...]
    expected_fields: tuple[str, ...] = ()

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def aliases(self) -> dict[str, tuple[str, ...]]:
        return {spec.name: spec.aliases for spec in self.fields}


TRANSACTION_SCHEMA = RecordSchema(
    kind=RecordKind.TRANSACTION,
    fields=(
        FieldSpec("customer_id", ("customer id", "client id", "investor id")),
        FieldSpec("iwell_code", ("iwell", "iwell code", "client code", "investor code"), uppercase),
        FieldSpec("scheme_code", ("scheme", "scheme code", "product code", "amfi code"), sanitize_scheme_code),
        FieldSpec("scheme_name", ("scheme name", "fund name", "product name")),
        FieldSpec("folio_no", ("folio", "folio no", "folio number"), sanitize_folio),
        FieldSpec("txn_type_id", ("transaction type id", "txn type id", "type id")),
        FieldSpec("txn_type", ("transaction type", "txn type", "txn code", "transaction code", "type"), uppercase),
        FieldSpec("txn_date", ("date", "transaction date", "trade date", "txn date"), format_date),
        FieldSpec("total_amount", ("amount", "total amount", "gross amount", "value")),
        FieldSpec("units", ("unit", "quantity", "units allotted")),
        FieldSpec("nav", ("nav price", "price", "purchase price")),
        FieldSpec("stamp_duty", ("stamp duty", "stamp")),
    ),
    expected_fields=("scheme_code", "txn_date", "total_amount", "units", "nav"),
)


CUSTOMER_SCHEMA = RecordSchema(
    kind=RecordKind.CUSTOMER,
    fields=(
        FieldSpec("prefix", ("title", "salutation")),
        FieldSpec("name", ("customer name", "full name", "client name", "investor name")),
        FieldSpec("email", ("email address", "email id", "mail"), lowercase),
        FieldSpec("mobile", ("mobile number", "mobile no", "phone", "contact number"), normalize_phone),
        FieldSpec("whatsapp", ("whatsapp number", "whatsapp no"), normalize_phone),
        FieldSpec("pan", ("pan number", "pan no", "pan card"), uppercase),
        FieldSpec("iwell_code", ("iwell", "iwell code", "client code"), uppercase),
        FieldSpec("date_of_birth", ("dob", "birth date", "date of birth"), format_date),
        FieldSpec("anniversary_date", ("anniversary", "anniversary date"), format_date),
        FieldSpec("family_head_name", ("family head", "family head name")),
        FieldSpec("family_head_iwell_code", ("family head iwell", "family head iwell code"), uppercase),
        FieldSpec("referred_by_name", ("referred by", "reference", "referred by name")),
        FieldSpec("address_line1", ("address", "address 1", "address line 1")),
        FieldSpec("address_line2", ("address 2", "address line 2")),
        FieldSpec("city", ("town",)),
        FieldSpec("state", ("province",)),
        FieldSpec("pincode", ("pin", "pin code", "zip", "postal code")),
        FieldSpec("address_type", ("address kind",), lowercase),
    ),
    expected_fields=("name",),
)


SCHEMAS: dict[str, RecordSchema] = {
    RecordKind.TRANSACTION: TRANSACTION_SCHEMA,
    RecordKind.CUSTOMER: CUSTOMER_SCHEMA,
}
