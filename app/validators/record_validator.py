"""
app/validators/record_validator.py

Domain-rule validation for candidate import records.

Rules are declared in three layers: presence of required fields, per-field
type/range checks, and cross-field checks on the parsed values. Validators
never raise for bad data; everything comes back on the ValidationResult.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from app.config import get_import_settings
from app.domain.imports import CandidateRecord, RecordKind, ValidationResult
from app.mappers.transforms import (
    is_blank,
    national_number,
    parse_calendar_date,
    round_amount,
    to_decimal,
    to_int,
)

VALIDATION_PATTERNS = MappingProxyType(
    {
        "email": re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
        "mobile": re.compile(r"^[6-9][0-9]{9}$"),
        "pan": re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$"),
        "pincode": re.compile(r"^[0-9]{6}$"),
    }
)


def years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # 29 February in a non-leap target year.
        return day.replace(year=day.year - years, day=28)


class RecordValidator:
    """
    Base validator: required-field presence plus hooks for field and record rules.
    """

    required_fields: tuple[tuple[str, str], ...] = ()

    def __init__(self, *, today: Callable[[], date] | None = None) -> None:
        self._today = today or date.today

    def validate(self, candidate: CandidateRecord) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        for field_name, message in self.required_fields:
            if is_blank(candidate.get(field_name)):
                errors.append(message)

        parsed = self.check_fields(candidate, errors, warnings)
        self.check_record(parsed, errors, warnings)
        errors.extend(candidate.lookup_errors)

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def check_fields(
        self,
        candidate: CandidateRecord,
        errors: list[str],
        warnings: list[str],
    ) -> dict[str, Any]:
        """
        Per-field type and range rules. Returns the successfully parsed values.
        """

        return {}

    def check_record(self, parsed: dict[str, Any], errors: list[str], warnings: list[str]) -> None:
        """
        Cross-field rules over parsed values.
        """

    @staticmethod
    def _number(candidate: CandidateRecord, field_name: str, label: str, errors: list[str]) -> Decimal | None:
        try:
            return to_decimal(candidate.get(field_name))
        except ValueError:
            errors.append(f"{label} must be a valid number")
            return None

    @staticmethod
    def _integer(candidate: CandidateRecord, field_name: str, label: str, errors: list[str]) -> int | None:
        try:
            return to_int(candidate.get(field_name))
        except ValueError:
            errors.append(f"{label} must be a whole number")
            return None


class TransactionRecordValidator(RecordValidator):
    """
    Rules for mutual-fund transaction rows.
    """

    required_fields = (
        ("customer_id", "Customer ID is required"),
        ("scheme_code", "Scheme code is required"),
        ("txn_type_id", "Transaction type is required"),
        ("txn_date", "Transaction date is required"),
        ("total_amount", "Total amount is required"),
        ("units", "Units are required"),
        ("nav", "NAV is required"),
    )

    def __init__(
        self,
        *,
        today: Callable[[], date] | None = None,
        amount_tolerance: float | None = None,
        history_years: int | None = None,
    ) -> None:
        super().__init__(today=today)
        settings = get_import_settings()
        tolerance = settings.amount_tolerance if amount_tolerance is None else amount_tolerance
        self._amount_tolerance = Decimal(str(tolerance))
        self._history_years = settings.history_years if history_years is None else history_years

    def check_fields(
        self,
        candidate: CandidateRecord,
        errors: list[str],
        warnings: list[str],
    ) -> dict[str, Any]:
        parsed: dict[str, Any] = {}
        parsed["customer_id"] = self._integer(candidate, "customer_id", "Customer ID", errors)
        parsed["txn_type_id"] = self._integer(candidate, "txn_type_id", "Transaction type", errors)

        raw_date = candidate.get("txn_date")
        if not is_blank(raw_date):
            txn_date = parse_calendar_date(raw_date)
            if txn_date is None:
                errors.append("Invalid transaction date format")
            else:
                today = self._today()
                if txn_date > today:
                    warnings.append("Transaction date is in the future")
                elif txn_date < years_before(today, self._history_years):
                    warnings.append(f"Transaction date is more than {self._history_years} years old")
                parsed["txn_date"] = txn_date

        total_amount = self._number(candidate, "total_amount", "Total amount", errors)
        if total_amount is not None and total_amount < 0:
            errors.append("Total amount cannot be negative")
        parsed["total_amount"] = total_amount

        units = self._number(candidate, "units", "Units", errors)
        if units is not None and units < 0:
            errors.append("Units cannot be negative")
        parsed["units"] = units

        nav = self._number(candidate, "nav", "NAV", errors)
        if nav is not None and nav <= 0:
            errors.append("NAV must be greater than zero")
        parsed["nav"] = nav

        stamp_duty = self._number(candidate, "stamp_duty", "Stamp duty", errors)
        if stamp_duty is not None and stamp_duty < 0:
            warnings.append("Stamp duty cannot be negative")
        return parsed

    def check_record(self, parsed: dict[str, Any], errors: list[str], warnings: list[str]) -> None:
        units, nav, total_amount = parsed.get("units"), parsed.get("nav"), parsed.get("total_amount")
        if units is None or nav is None or total_amount is None:
            return

        calculated = round_amount(units * nav)
        difference = abs(calculated - total_amount)
        if difference > self._amount_tolerance:
            warnings.append(
                f"Amount mismatch: units ({units}) × NAV ({nav}) = {calculated}, "
                f"but total amount is {total_amount}. Difference: {difference:.2f}"
            )


class CustomerRecordValidator(RecordValidator):
    """
    Rules for customer master rows.
    """

    required_fields = (("name", "Customer name is required"),)

    def check_fields(
        self,
        candidate: CandidateRecord,
        errors: list[str],
        warnings: list[str],
    ) -> dict[str, Any]:
        parsed: dict[str, Any] = {}

        email = candidate.get("email")
        if not is_blank(email) and not VALIDATION_PATTERNS["email"].match(str(email)):
            errors.append("Invalid email format")

        pan = candidate.get("pan")
        if not is_blank(pan) and not VALIDATION_PATTERNS["pan"].match(str(pan)):
            errors.append("Invalid PAN format")

        pincode = candidate.get("pincode")
        if not is_blank(pincode) and not VALIDATION_PATTERNS["pincode"].match(str(pincode).strip()):
            errors.append("Invalid pincode format")

        for field_name, label in (("mobile", "Mobile number"), ("whatsapp", "WhatsApp number")):
            value = candidate.get(field_name)
            if is_blank(value):
                continue
            digits = national_number(value) or ""
            if not VALIDATION_PATTERNS["mobile"].match(digits):
                warnings.append(f"{label} does not look like a valid Indian mobile number")

        raw_birth_date = candidate.get("date_of_birth")
        if not is_blank(raw_birth_date):
            birth_date = parse_calendar_date(raw_birth_date)
            if birth_date is None:
                errors.append("Invalid date of birth format")
            elif birth_date > self._today():
                errors.append("Date of birth cannot be in the future")
            parsed["date_of_birth"] = birth_date

        raw_anniversary = candidate.get("anniversary_date")
        if not is_blank(raw_anniversary):
            anniversary = parse_calendar_date(raw_anniversary)
            if anniversary is None:
                errors.append("Invalid anniversary date format")
            parsed["anniversary_date"] = anniversary
        return parsed


_VALIDATORS: dict[str, Callable[[], RecordValidator]] = {
    RecordKind.TRANSACTION: TransactionRecordValidator,
    RecordKind.CUSTOMER: CustomerRecordValidator,
}


def validate_record(candidate: CandidateRecord, kind: str | None = None) -> ValidationResult:
    """
    Validate a candidate with the default rules for its record kind.
    """

    record_kind = kind or candidate.kind
    factory = _VALIDATORS.get(record_kind)
    if factory is None:
        return ValidationResult(is_valid=False, errors=[f"Unsupported record kind: {record_kind}"])
    return factory().validate(candidate)
