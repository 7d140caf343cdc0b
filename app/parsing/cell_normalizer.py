"""
app/parsing/cell_normalizer.py

Coerce raw spreadsheet/CSV cell values into clean scalars.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

# Spreadsheet day serials: 25569 is 1970-01-01, 2958465 is 9999-12-31.
EXCEL_EPOCH_SERIAL = 25569
EXCEL_MAX_SERIAL = 2958465
_SECONDS_PER_DAY = 86400
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

EMPTY_TOKENS = frozenset({"", "null", "undefined", "n/a", "#n/a"})


def clean_string(value: str) -> str:
    """
    Trim, blank out empty sentinels and strip one layer of matching quotes.
    """

    cleaned = value.strip()
    if cleaned.lower() in EMPTY_TOKENS:
        return ""
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in {'"', "'"}:
        cleaned = cleaned[1:-1]
    return cleaned


def serial_to_iso_date(serial: float) -> str:
    moment = _UNIX_EPOCH + timedelta(seconds=(serial - EXCEL_EPOCH_SERIAL) * _SECONDS_PER_DAY)
    return moment.date().isoformat()


def is_date_serial(value: float) -> bool:
    return EXCEL_EPOCH_SERIAL < value < EXCEL_MAX_SERIAL


def normalize_cell(value: Any, *, date_hint: bool | None = None) -> Any:
    """
    Return a clean scalar for one raw cell.

    `date_hint` describes the column: True for a known date column, False
    when the reader already knows the cell is not a date, None when unknown.
    Numbers inside the spreadsheet serial range are read as dates unless
    the hint rules it out. Never raises.
    """

    if value is None:
        return ""
    if isinstance(value, str):
        return clean_string(value)
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float, Decimal)):
        if date_hint is not False and is_date_serial(float(value)):
            try:
                return serial_to_iso_date(float(value))
            except (OverflowError, ValueError):
                return value
        return value
    try:
        return str(value)
    except Exception:  # noqa: BLE001
        return ""
