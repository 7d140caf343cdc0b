"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_MEBIBYTE = 1024 * 1024


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class ImportSettings:
    """
    Runtime settings for spreadsheet imports.
    """

    max_upload_bytes: int = 10 * _MEBIBYTE
    max_format_check_bytes: int = 50 * _MEBIBYTE
    amount_tolerance: float = 1.0
    history_years: int = 10
    max_error_rows: int = 1000
    log_validation_errors: bool = True
    refresh_portfolio_totals: bool = True
    preview_rows: int = 10
    default_prefix: str = "Sri"


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    """
    Return cached import settings from environment variables.
    """

    return ImportSettings(
        max_upload_bytes=max(1, _get_int_env("IMPORT_MAX_UPLOAD_BYTES", 10 * _MEBIBYTE)),
        max_format_check_bytes=max(1, _get_int_env("IMPORT_MAX_FORMAT_CHECK_BYTES", 50 * _MEBIBYTE)),
        amount_tolerance=max(0.0, _get_float_env("IMPORT_AMOUNT_TOLERANCE", 1.0)),
        history_years=max(1, _get_int_env("IMPORT_HISTORY_YEARS", 10)),
        max_error_rows=max(1, _get_int_env("IMPORT_MAX_ERROR_ROWS", 1000)),
        log_validation_errors=_get_bool_env("IMPORT_LOG_VALIDATION_ERRORS", True),
        refresh_portfolio_totals=_get_bool_env("IMPORT_REFRESH_PORTFOLIO_TOTALS", True),
        preview_rows=max(1, _get_int_env("IMPORT_PREVIEW_ROWS", 10)),
        default_prefix=_get_str_env("IMPORT_DEFAULT_PREFIX", "Sri"),
    )
