"""
app/services/duplicate_detection.py

Exact-match duplicate detection for imported transactions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping

from app.domain.imports import DuplicateCheck, TenantScope
from app.mappers.transforms import parse_calendar_date, round_amount, sanitize_scheme_code, to_decimal, to_int

if TYPE_CHECKING:
    from app.repositories.import_store import ImportStore

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"


@dataclass(frozen=True)
class DuplicateKeyFields:
    """
    Identity fields of a transaction.
    """

    customer_id: int
    scheme_code: str
    txn_date: date
    total_amount: Decimal
    txn_type_id: int

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> DuplicateKeyFields:
        txn_date = parse_calendar_date(values["txn_date"])
        total_amount = to_decimal(values["total_amount"])
        customer_id = to_int(values["customer_id"])
        txn_type_id = to_int(values["txn_type_id"])
        if None in (txn_date, total_amount, customer_id, txn_type_id):
            raise ValueError("Duplicate key needs customer, date, amount and transaction type")
        return cls(
            customer_id=customer_id,
            scheme_code=str(sanitize_scheme_code(values["scheme_code"])),
            txn_date=txn_date,
            total_amount=total_amount,
            txn_type_id=txn_type_id,
        )


def build_duplicate_key(fields: DuplicateKeyFields) -> str:
    """
    Compose `customer|scheme|YYYY-MM-DD|amount(2dp)|type`.
    """

    return KEY_SEPARATOR.join(
        (
            str(fields.customer_id),
            fields.scheme_code,
            fields.txn_date.isoformat(),
            f"{round_amount(fields.total_amount):.2f}",
            str(fields.txn_type_id),
        )
    )


def duplicate_reason(existing_count: int) -> str:
    return (
        "Duplicate transaction detected: same customer, scheme, date, amount, and type. "
        f"Found {existing_count} existing transaction(s) with identical details."
    )


class DuplicateDetector:
    """
    Checks duplicate keys against already-committed transactions.
    """

    def check(
        self,
        *,
        store: ImportStore,
        scope: TenantScope,
        fields: DuplicateKeyFields,
    ) -> DuplicateCheck:
        key = build_duplicate_key(fields)
        existing_count = store.count_transactions_by_key(scope=scope, duplicate_key=key)
        if existing_count <= 0:
            return DuplicateCheck(key=key, existing_count=0)

        logger.info(
            "Potential duplicate transaction tenant_id=%s key=%s existing=%s",
            scope.tenant_id,
            key,
            existing_count,
        )
        return DuplicateCheck(key=key, existing_count=existing_count, reason=duplicate_reason(existing_count))
