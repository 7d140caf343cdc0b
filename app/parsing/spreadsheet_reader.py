"""
app/parsing/spreadsheet_reader.py

Spreadsheet backends for the tabular parser.

Each reader loads the first worksheet of a workbook held in memory and
returns raw cell values with native dates already resolved.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

import xlrd
from openpyxl import load_workbook


@dataclass(frozen=True)
class SheetData:
    """
    Raw cell values of one worksheet, header row first.

    `declared_rows` comes from the sheet's own dimension record and may be
    larger than `len(rows)` when the sheet has trailing blank rows.
    """

    rows: list[list[Any]] = field(default_factory=list)
    declared_rows: int = 0
    declared_columns: int = 0
    dates_resolved: bool = True


class SpreadsheetReader(ABC):
    """
    Contract for first-worksheet readers.
    """

    extensions: tuple[str, ...] = ()

    @abstractmethod
    def read(self, content: bytes) -> SheetData:
        """Load every row of the first worksheet."""

    @abstractmethod
    def dimensions(self, content: bytes) -> tuple[int, int]:
        """Return declared (rows, columns) without materializing cells."""


class OpenpyxlSpreadsheetReader(SpreadsheetReader):
    """
    `.xlsx` reader backed by openpyxl in read-only mode.
    """

    extensions = (".xlsx",)

    def read(self, content: bytes) -> SheetData:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
        try:
            if not workbook.worksheets:
                return SheetData()
            sheet = workbook.worksheets[0]
            rows = [list(values) for values in sheet.iter_rows(values_only=True)]
            declared_rows = sheet.max_row if sheet.max_row is not None else len(rows)
            declared_columns = sheet.max_column if sheet.max_column is not None else 0
        finally:
            workbook.close()

        return SheetData(
            rows=rows,
            declared_rows=declared_rows,
            declared_columns=declared_columns,
        )

    def dimensions(self, content: bytes) -> tuple[int, int]:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
        try:
            if not workbook.worksheets:
                return 0, 0
            sheet = workbook.worksheets[0]
            return sheet.max_row or 0, sheet.max_column or 0
        finally:
            workbook.close()


class XlrdSpreadsheetReader(SpreadsheetReader):
    """
    Legacy `.xls` reader backed by xlrd.
    """

    extensions = (".xls",)

    def read(self, content: bytes) -> SheetData:
        book = xlrd.open_workbook(file_contents=content)
        try:
            if book.nsheets == 0:
                return SheetData()
            sheet = book.sheet_by_index(0)
            rows = [
                [self._cell_value(cell, book.datemode) for cell in sheet.row(row_index)]
                for row_index in range(sheet.nrows)
            ]
            return SheetData(rows=rows, declared_rows=sheet.nrows, declared_columns=sheet.ncols)
        finally:
            book.release_resources()

    def dimensions(self, content: bytes) -> tuple[int, int]:
        book = xlrd.open_workbook(file_contents=content, on_demand=True)
        try:
            if book.nsheets == 0:
                return 0, 0
            sheet = book.sheet_by_index(0)
            return sheet.nrows, sheet.ncols
        finally:
            book.release_resources()

    @staticmethod
    def _cell_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
        if cell.ctype in {xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR}:
            return None
        if cell.ctype == xlrd.XL_CELL_DATE:
            return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return bool(cell.value)
        if cell.ctype == xlrd.XL_CELL_NUMBER and float(cell.value).is_integer():
            return int(cell.value)
        return cell.value


def default_spreadsheet_readers() -> list[SpreadsheetReader]:
    return [OpenpyxlSpreadsheetReader(), XlrdSpreadsheetReader()]
