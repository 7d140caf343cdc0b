"""
app/parsing/tabular_parser.py

Parse uploaded CSV and spreadsheet files into a uniform row format.

The parser never raises for bad data: structural problems come back as a
single entry in `ParsedFile.errors`, malformed CSV lines are recorded and
skipped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from app.config import get_import_settings
from app.domain.imports import FileStats, FormatValidation, ParsedFile, ParseOptions
from app.parsing.cell_normalizer import normalize_cell
from app.parsing.csv_line import CSVLineError, split_csv_line
from app.parsing.header_sanitizer import sanitize_headers
from app.parsing.spreadsheet_reader import SpreadsheetReader, default_spreadsheet_readers

logger = logging.getLogger(__name__)

CSV_EXTENSION = ".csv"
SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")
_LINE_BREAK = re.compile(r"\r?\n")
_ENCODING_ALIASES = {"utf8": "utf-8-sig", "utf-8": "utf-8-sig"}


def normalize_extension(file_extension: str) -> str:
    extension = (file_extension or "").strip().lower()
    if extension and not extension.startswith("."):
        extension = f".{extension}"
    return extension


class TabularParser:
    """
    Format-dispatching parser for `.csv`, `.xlsx` and `.xls` uploads.
    """

    def __init__(
        self,
        *,
        spreadsheet_readers: Iterable[SpreadsheetReader] | None = None,
        max_format_check_bytes: int | None = None,
    ) -> None:
        readers = list(spreadsheet_readers) if spreadsheet_readers is not None else default_spreadsheet_readers()
        self._readers: dict[str, SpreadsheetReader] = {}
        for reader in readers:
            for extension in reader.extensions:
                self._readers[extension] = reader
        self._max_format_check_bytes = (
            max_format_check_bytes
            if max_format_check_bytes is not None
            else get_import_settings().max_format_check_bytes
        )

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (CSV_EXTENSION, *sorted(self._readers))

    def parse(
        self,
        file_bytes: bytes,
        file_extension: str,
        options: ParseOptions | None = None,
    ) -> ParsedFile:
        """
        Parse file content already loaded in memory.
        """

        options = options or ParseOptions()
        extension = normalize_extension(file_extension)

        if extension == CSV_EXTENSION:
            return self._parse_csv(file_bytes, options)
        reader = self._readers.get(extension)
        if reader is None:
            return ParsedFile.failed(f"Unsupported file type: {extension or file_extension}")
        return self._parse_spreadsheet(reader, file_bytes, options)

    def parse_path(self, path: str | Path, options: ParseOptions | None = None) -> ParsedFile:
        file_path = Path(path)
        try:
            content = file_path.read_bytes()
        except OSError as exc:
            logger.warning("Unable to read import file path=%s error=%s", file_path, exc)
            return ParsedFile.failed(f"Unable to read file: {exc}")
        return self.parse(content, file_path.suffix, options)

    # ------------------------------------------------------------------
    # CSV backend
    # ------------------------------------------------------------------

    def _parse_csv(self, file_bytes: bytes, options: ParseOptions) -> ParsedFile:
        encoding = _ENCODING_ALIASES.get(options.encoding.lower(), options.encoding)
        try:
            text = file_bytes.decode(encoding)
        except (LookupError, UnicodeDecodeError) as exc:
            return ParsedFile.failed(f"CSV parsing error: {exc}")

        lines = _LINE_BREAK.split(text)
        if options.skip_empty_lines:
            lines = [line for line in lines if line.strip()]
        if not lines or not any(line.strip() for line in lines):
            return ParsedFile.failed("File is empty")

        errors: list[str] = []
        parsed_lines: list[list[str]] = []
        for position, line in enumerate(lines, start=1):
            try:
                parsed_lines.append(split_csv_line(line))
            except CSVLineError as exc:
                logger.debug("Skipping malformed CSV line=%s error=%s", position, exc)
                errors.append(f"Line {position}: {exc}")

        if not parsed_lines:
            return ParsedFile.failed("No valid rows found", *errors)

        header_cells, data_lines = parsed_lines[0], parsed_lines[1:]
        headers = self._prepare_headers(header_cells, options)
        limit = self._row_limit(options, len(data_lines))
        rows = [self._build_row(headers, cells) for cells in data_lines[:limit]]
        return ParsedFile(headers=headers, rows=rows, total_rows=len(data_lines), errors=errors)

    # ------------------------------------------------------------------
    # Spreadsheet backend
    # ------------------------------------------------------------------

    def _parse_spreadsheet(
        self,
        reader: SpreadsheetReader,
        file_bytes: bytes,
        options: ParseOptions,
    ) -> ParsedFile:
        try:
            sheet = reader.read(file_bytes)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Spreadsheet read failed reader=%s error=%s", type(reader).__name__, exc)
            return ParsedFile.failed(f"Spreadsheet parsing error: {exc}")

        raw_rows = sheet.rows
        if options.skip_empty_lines:
            raw_rows = [row for row in raw_rows if not _is_blank_row(row)]
        if not raw_rows:
            return ParsedFile.failed("File is empty")

        header_cells = _trim_trailing_blanks(raw_rows[0])
        if not header_cells:
            return ParsedFile.failed("File is empty")

        # Sanitized names are output keys; cell positions follow the sheet's header row.
        headers = self._prepare_headers([normalize_cell(cell, date_hint=False) for cell in header_cells], options)
        date_hint = False if sheet.dates_resolved else None
        data_rows = raw_rows[1:]
        limit = self._row_limit(options, len(data_rows))
        rows = [self._build_row(headers, cells, date_hint=date_hint) for cells in data_rows[:limit]]

        total_rows = max(sheet.declared_rows - 1, 0) if sheet.declared_rows else len(data_rows)
        return ParsedFile(headers=headers, rows=rows, total_rows=total_rows, errors=[])

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def get_file_stats(self, path: str | Path) -> FileStats:
        """
        Cheap metadata probe. Degrades to zeros on any failure.
        """

        file_path = Path(path)
        try:
            file_size = file_path.stat().st_size
            extension = normalize_extension(file_path.suffix)
            if extension == CSV_EXTENSION:
                return self._csv_stats(file_path, file_size)
            reader = self._readers.get(extension)
            if reader is None:
                raise ValueError(f"Unsupported file type: {extension}")
            declared_rows, declared_columns = reader.dimensions(file_path.read_bytes())
            return FileStats(
                total_rows=max(declared_rows - 1, 0),
                total_columns=declared_columns,
                file_size=file_size,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Unable to collect file stats path=%s error=%s", file_path, exc)
            return FileStats(total_rows=0, total_columns=0, file_size=0)

    def _csv_stats(self, file_path: Path, file_size: int) -> FileStats:
        text = file_path.read_bytes().decode(_ENCODING_ALIASES["utf8"], errors="replace")
        lines = [line for line in _LINE_BREAK.split(text) if line.strip()]
        if not lines:
            return FileStats(total_rows=0, total_columns=0, file_size=file_size)
        try:
            total_columns = len(split_csv_line(lines[0]))
        except CSVLineError:
            total_columns = 0
        return FileStats(total_rows=len(lines) - 1, total_columns=total_columns, file_size=file_size)

    def validate_format(self, path: str | Path) -> FormatValidation:
        """
        Confirm a stored file is readable and looks importable.
        """

        file_path = Path(path)
        if not file_path.is_file():
            return FormatValidation(is_valid=False, errors=["File not found"])

        file_size = file_path.stat().st_size
        if file_size == 0:
            return FormatValidation(is_valid=False, errors=["File is empty"])
        if file_size > self._max_format_check_bytes:
            limit_mb = self._max_format_check_bytes // (1024 * 1024)
            return FormatValidation(is_valid=False, errors=[f"File too large (max {limit_mb}MB)"])

        extension = normalize_extension(file_path.suffix)
        if extension not in self.supported_extensions:
            return FormatValidation(is_valid=False, errors=[f"Unsupported file type: {extension}"])

        errors: list[str] = []
        sample = self.parse_path(file_path, ParseOptions(max_rows=1))
        errors.extend(sample.errors)
        if not sample.headers:
            errors.append("No headers detected in file")
        return FormatValidation(is_valid=not errors, errors=errors)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _prepare_headers(raw_headers: Sequence[Any], options: ParseOptions) -> list[str]:
        if options.trim_headers:
            raw_headers = [str(header).strip() for header in raw_headers]
        return sanitize_headers(raw_headers)

    @staticmethod
    def _row_limit(options: ParseOptions, available: int) -> int:
        if options.max_rows is None:
            return available
        return max(0, min(options.max_rows, available))

    @staticmethod
    def _build_row(
        headers: Sequence[str],
        cells: Sequence[Any],
        *,
        date_hint: bool | None = None,
    ) -> dict[str, Any]:
        row: dict[str, Any] = {}
        for index, header in enumerate(headers):
            raw = cells[index] if index < len(cells) else None
            row[header] = normalize_cell(raw, date_hint=date_hint)
        return row


def _is_blank_row(row: Sequence[Any]) -> bool:
    return all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in row)


def _trim_trailing_blanks(cells: Sequence[Any]) -> list[Any]:
    trimmed = list(cells)
    while trimmed and (trimmed[-1] is None or (isinstance(trimmed[-1], str) and not trimmed[-1].strip())):
        trimmed.pop()
    return trimmed
