"""
tests/test_record_validator.py

Pytest unit tests for transaction and customer record validation.

The clock is pinned so date-relative rules are deterministic.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from app.domain.imports import CandidateRecord, RecordKind
from app.validators.record_validator import (
    CustomerRecordValidator,
    TransactionRecordValidator,
    validate_record,
    years_before,
)

TODAY = date(2024, 6, 30)


def _transaction(**overrides: Any) -> CandidateRecord:
    fields: dict[str, Any] = {
        "customer_id": 1,
        "scheme_code": "INF001",
        "txn_type_id": 1,
        "txn_date": "2024-01-15",
        "total_amount": "1000",
        "units": "10",
        "nav": "100",
        "stamp_duty": None,
    }
    fields.update(overrides)
    return CandidateRecord(kind=RecordKind.TRANSACTION, fields=fields)


def _customer(**overrides: Any) -> CandidateRecord:
    fields: dict[str, Any] = {"name": "Asha Rao"}
    fields.update(overrides)
    return CandidateRecord(kind=RecordKind.CUSTOMER, fields=fields)


@pytest.fixture()
def txn_validator() -> TransactionRecordValidator:
    return TransactionRecordValidator(today=lambda: TODAY, amount_tolerance=1.0, history_years=10)


@pytest.fixture()
def customer_validator() -> CustomerRecordValidator:
    return CustomerRecordValidator(today=lambda: TODAY)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TestTransactionValidation:
    def test_consistent_row_is_clean(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction())

        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_all_required_fields_reported(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(CandidateRecord(kind=RecordKind.TRANSACTION, fields={}))

        assert not result.is_valid
        assert result.errors == [
            "Customer ID is required",
            "Scheme code is required",
            "Transaction type is required",
            "Transaction date is required",
            "Total amount is required",
            "Units are required",
            "NAV is required",
        ]

    def test_difference_at_tolerance_does_not_warn(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(total_amount="1001"))

        assert result.is_valid
        assert result.warnings == []

    def test_difference_above_tolerance_warns(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(total_amount="1001.01"))

        assert result.is_valid
        assert result.warnings == [
            "Amount mismatch: units (10) × NAV (100) = 1000.00, but total amount is 1001.01. Difference: 1.01"
        ]

    def test_tolerance_is_configurable(self) -> None:
        strict = TransactionRecordValidator(today=lambda: TODAY, amount_tolerance=0, history_years=10)

        result = strict.validate(_transaction(total_amount="1000.01"))

        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("Amount mismatch")

    def test_future_date_warns(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(txn_date="2024-07-01"))

        assert result.is_valid
        assert result.warnings == ["Transaction date is in the future"]

    def test_old_date_warns(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(txn_date="2014-06-29"))

        assert result.is_valid
        assert result.warnings == ["Transaction date is more than 10 years old"]

    def test_boundary_date_does_not_warn(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(txn_date="2014-06-30"))

        assert result.warnings == []

    def test_day_first_dates_are_accepted(self, txn_validator: TransactionRecordValidator) -> None:
        assert txn_validator.validate(_transaction(txn_date="15/01/2024")).is_valid

    def test_invalid_date(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(txn_date="31/02/2024"))

        assert not result.is_valid
        assert "Invalid transaction date format" in result.errors

    def test_negative_amount(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(total_amount="-5"))

        assert "Total amount cannot be negative" in result.errors

    def test_negative_units(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(units="-1"))

        assert "Units cannot be negative" in result.errors

    def test_zero_nav(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(nav="0"))

        assert "NAV must be greater than zero" in result.errors

    def test_non_numeric_units(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(units="ten"))

        assert not result.is_valid
        assert "Units must be a valid number" in result.errors

    def test_thousands_separators_are_accepted(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(total_amount="1,000", units="10", nav="100"))

        assert result.is_valid
        assert result.warnings == []

    def test_negative_stamp_duty_only_warns(self, txn_validator: TransactionRecordValidator) -> None:
        result = txn_validator.validate(_transaction(stamp_duty="-1"))

        assert result.is_valid
        assert result.warnings == ["Stamp duty cannot be negative"]

    def test_lookup_errors_invalidate_row(self, txn_validator: TransactionRecordValidator) -> None:
        candidate = CandidateRecord(
            kind=RecordKind.TRANSACTION,
            fields=_transaction().fields,
            lookup_errors=("Unknown transaction type 'GIFT'",),
        )

        result = txn_validator.validate(candidate)

        assert not result.is_valid
        assert result.errors == ["Unknown transaction type 'GIFT'"]

    def test_adding_a_problem_never_removes_errors(self, txn_validator: TransactionRecordValidator) -> None:
        base = txn_validator.validate(_transaction(units="-1"))
        worse = txn_validator.validate(_transaction(units="-1", nav="0"))

        assert set(base.errors) <= set(worse.errors)

    def test_validation_is_deterministic(self, txn_validator: TransactionRecordValidator) -> None:
        candidate = _transaction(total_amount="999", txn_date="2030-01-01")

        assert txn_validator.validate(candidate) == txn_validator.validate(candidate)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


class TestCustomerValidation:
    def test_name_required(self, customer_validator: CustomerRecordValidator) -> None:
        result = customer_validator.validate(_customer(name="  "))

        assert result.errors == ["Customer name is required"]

    def test_valid_customer(self, customer_validator: CustomerRecordValidator) -> None:
        result = customer_validator.validate(
            _customer(
                email="asha@example.com",
                pan="ABCDE1234F",
                pincode="560001",
                mobile="+919876543210",
                date_of_birth="1985-04-12",
            )
        )

        assert result.is_valid
        assert result.warnings == []

    @pytest.mark.parametrize(
        ("field_name", "value", "message"),
        [
            ("email", "asha@", "Invalid email format"),
            ("pan", "ABCD1234F", "Invalid PAN format"),
            ("pincode", "56001", "Invalid pincode format"),
            ("date_of_birth", "not a date", "Invalid date of birth format"),
            ("date_of_birth", "2030-01-01", "Date of birth cannot be in the future"),
            ("anniversary_date", "someday", "Invalid anniversary date format"),
        ],
    )
    def test_field_errors(
        self,
        customer_validator: CustomerRecordValidator,
        field_name: str,
        value: str,
        message: str,
    ) -> None:
        result = customer_validator.validate(_customer(**{field_name: value}))

        assert not result.is_valid
        assert result.errors == [message]

    def test_suspicious_mobile_only_warns(self, customer_validator: CustomerRecordValidator) -> None:
        result = customer_validator.validate(_customer(mobile="12345", whatsapp="5123456789"))

        assert result.is_valid
        assert result.warnings == [
            "Mobile number does not look like a valid Indian mobile number",
            "WhatsApp number does not look like a valid Indian mobile number",
        ]


# ---------------------------------------------------------------------------
# Dispatch and helpers
# ---------------------------------------------------------------------------


class TestValidateRecord:
    def test_dispatches_by_kind(self) -> None:
        result = validate_record(_customer(name=""))

        assert result.errors == ["Customer name is required"]

    def test_unknown_kind(self) -> None:
        candidate = CandidateRecord(kind="scheme", fields={})

        result = validate_record(candidate)

        assert not result.is_valid
        assert result.errors == ["Unsupported record kind: scheme"]


def test_years_before_handles_leap_day() -> None:
    assert years_before(date(2024, 2, 29), 1) == date(2023, 2, 28)
