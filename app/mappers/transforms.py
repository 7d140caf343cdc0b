"""
app/mappers/transforms.py

Value transforms applied while mapping parsed rows onto record fields.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

_WHITESPACE = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"\D")
_DAY_FIRST = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{2}|\d{4})$")
_YEAR_FIRST = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})(?:[T ].*)?$")

# Two-digit years up to this value are read as 20xx, above it as 19xx.
TWO_DIGIT_YEAR_PIVOT = 30

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_calendar_date(value: Any) -> date | None:
    """
    Parse the date layouts seen in broker exports; None when unrecognized.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    match = _YEAR_FIRST.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = _DAY_FIRST.match(text)
    if match:
        day, month, raw_year = int(match.group(1)), int(match.group(2)), match.group(3)
        year = int(raw_year)
        if len(raw_year) == 2:
            year += 2000 if year <= TWO_DIGIT_YEAR_PIVOT else 1900
        return _safe_date(year, month, day)
    return None


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_date(value: Any) -> Any:
    """
    Render a recognizable date as `YYYY-MM-DD`; leave anything else as given.
    """

    parsed = parse_calendar_date(value)
    return parsed.isoformat() if parsed is not None else value


def to_decimal(value: Any) -> Decimal | None:
    """
    Coerce a cell value to Decimal.

    Blank values are None; values that are present but not numeric raise
    ValueError.
    """

    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", "")
        try:
            number = Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    if not number.is_finite():
        raise ValueError(f"Not a number: {value!r}")
    return number


def to_int(value: Any) -> int | None:
    number = to_decimal(value)
    if number is None:
        return None
    if number != number.to_integral_value():
        raise ValueError(f"Not an integer: {value!r}")
    return int(number)


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round_units(value: Decimal) -> Decimal:
    return value.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def round_nav(value: Decimal) -> Decimal:
    return value.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def _text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def sanitize_scheme_code(value: Any) -> Any:
    if is_blank(value):
        return None
    return _WHITESPACE.sub("", _text(value)).upper()


def sanitize_folio(value: Any) -> Any:
    if is_blank(value):
        return None
    return _text(value).strip().upper()


def uppercase(value: Any) -> Any:
    return None if is_blank(value) else _text(value).strip().upper()


def lowercase(value: Any) -> Any:
    return None if is_blank(value) else _text(value).strip().lower()


def trim(value: Any) -> Any:
    if is_blank(value):
        return None
    return value.strip() if isinstance(value, str) else value


def normalize_phone(value: Any) -> Any:
    """
    Render Indian mobile numbers as `+91XXXXXXXXXX`; keep anything else.
    """

    if is_blank(value):
        return None
    digits = _NON_DIGIT.sub("", _text(value))
    if len(digits) == 10:
        return f"+91{digits}"
    if len(digits) == 12 and digits.startswith("91"):
        return f"+{digits}"
    if len(digits) == 11 and digits.startswith("0"):
        return f"+91{digits[1:]}"
    return _text(value).strip()


def national_number(value: Any) -> str | None:
    """
    Return the 10-digit national part of a normalized Indian mobile number.
    """

    if is_blank(value):
        return None
    digits = _NON_DIGIT.sub("", _text(value))
    if len(digits) == 12 and digits.startswith("91"):
        return digits[2:]
    return digits


TRANSFORMATIONS: dict[str, Callable[[Any], Any]] = {
    "uppercase": uppercase,
    "lowercase": lowercase,
    "trim": trim,
    "normalize_phone": normalize_phone,
    "format_date": format_date,
}


def apply_transformation(value: Any, name: str) -> Any:
    transform = TRANSFORMATIONS.get(name.strip().lower())
    if transform is None:
        raise ValueError(f"Unknown transformation '{name}'")
    return transform(value)
