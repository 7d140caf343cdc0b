"""
tests/test_tabular_parser.py

Pytest unit tests for the CSV, XLSX and XLS tabular parser and its file probes.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
import xlrd
from openpyxl import Workbook

from app.domain.imports import ParseOptions
from app.parsing.csv_line import CSVLineError, split_csv_line
from app.parsing.spreadsheet_reader import SheetData, SpreadsheetReader, XlrdSpreadsheetReader
from app.parsing.tabular_parser import TabularParser


@pytest.fixture()
def parser() -> TabularParser:
    return TabularParser(max_format_check_bytes=1024 * 1024)


def _xlsx_bytes(tmp_path: Path, rows: list[list[object]], name: str = "sheet.xlsx") -> Path:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    path = tmp_path / name
    workbook.save(path)
    return path


# ---------------------------------------------------------------------------
# CSV line scanner
# ---------------------------------------------------------------------------


class TestSplitCSVLine:
    def test_delimiter_inside_quotes_is_literal(self) -> None:
        assert split_csv_line('a,"b,c",d') == ["a", "b,c", "d"]

    def test_doubled_quote_is_literal_quote(self) -> None:
        assert split_csv_line('"a""b"') == ['a"b']

    def test_trailing_empty_field(self) -> None:
        assert split_csv_line("a,b,") == ["a", "b", ""]

    def test_unterminated_quote_raises(self) -> None:
        with pytest.raises(CSVLineError):
            split_csv_line('a,"b')


# ---------------------------------------------------------------------------
# CSV parsing
# ---------------------------------------------------------------------------


class TestCSVParsing:
    def test_basic_rows(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"name,amount\nAlice,100\nBob,200\n", "csv")

        assert parsed.headers == ["name", "amount"]
        assert parsed.rows == [{"name": "Alice", "amount": "100"}, {"name": "Bob", "amount": "200"}]
        assert parsed.total_rows == 2
        assert parsed.errors == []

    def test_quoted_field_with_delimiter(self, parser: TabularParser) -> None:
        parsed = parser.parse(b'a,b,c\n1,"x,y",3\n', ".csv")

        assert parsed.rows == [{"a": "1", "b": "x,y", "c": "3"}]

    def test_crlf_and_blank_lines(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"a,b\r\n1,2\r\n\r\n3,4\r\n", ".csv")

        assert parsed.total_rows == 2
        assert [row["a"] for row in parsed.rows] == ["1", "3"]

    def test_bom_does_not_leak_into_first_header(self, parser: TabularParser) -> None:
        parsed = parser.parse("\ufeffname,amount\nA,1\n".encode("utf-8"), ".csv")

        assert parsed.headers == ["name", "amount"]

    def test_max_rows_limits_rows_not_total(self, parser: TabularParser) -> None:
        content = b"a\n1\n2\n3\n4\n5\n"

        parsed = parser.parse(content, ".csv", ParseOptions(max_rows=2))

        assert len(parsed.rows) == 2
        assert parsed.total_rows == 5

    def test_missing_cells_become_blank_and_extra_cells_are_dropped(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"a,b\n1\n2,3,4\n", ".csv")

        assert parsed.rows == [{"a": "1", "b": ""}, {"a": "2", "b": "3"}]

    def test_blank_and_duplicate_headers_are_sanitized(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"amount,,amount\n1,2,3\n", ".csv")

        assert parsed.headers == ["amount", "Column_2", "amount_1"]
        assert parsed.rows[0] == {"amount": "1", "Column_2": "2", "amount_1": "3"}

    def test_empty_file(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"", ".csv")

        assert parsed.headers == []
        assert parsed.rows == []
        assert parsed.total_rows == 0
        assert parsed.errors == ["File is empty"]

    def test_whitespace_only_file_is_empty(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"\n\n   \n", ".csv")

        assert parsed.errors == ["File is empty"]

    def test_unterminated_line_is_recorded_and_skipped(self, parser: TabularParser) -> None:
        parsed = parser.parse(b'a,b\n1,2\n3,"broken\n5,6\n', ".csv")

        assert parsed.errors == ["Line 3: Unterminated quoted field"]
        assert parsed.rows == [{"a": "1", "b": "2"}, {"a": "5", "b": "6"}]

    def test_no_surviving_lines(self, parser: TabularParser) -> None:
        parsed = parser.parse(b'"a\n', ".csv")

        assert parsed.headers == []
        assert parsed.errors[0] == "No valid rows found"

    def test_undecodable_bytes_are_a_parse_error(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"a,b\n\xff\xfe\xfa,1\n", ".csv")

        assert parsed.headers == []
        assert parsed.errors[0].startswith("CSV parsing error:")

    def test_alternate_encoding(self, parser: TabularParser) -> None:
        parsed = parser.parse("name\nJosé\n".encode("latin-1"), ".csv", ParseOptions(encoding="latin-1"))

        assert parsed.rows == [{"name": "José"}]

    def test_unsupported_extension(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"{}", ".json")

        assert parsed.headers == []
        assert parsed.errors == ["Unsupported file type: .json"]


# ---------------------------------------------------------------------------
# Spreadsheet parsing
# ---------------------------------------------------------------------------


class TestXLSXParsing:
    def test_rows_and_total(self, parser: TabularParser, tmp_path: Path) -> None:
        path = _xlsx_bytes(
            tmp_path,
            [["Scheme Code", "Scheme Name"], ["INF001", "Alpha Fund"], ["INF002", "Beta Fund"]],
        )

        parsed = parser.parse(path.read_bytes(), ".xlsx")

        assert parsed.headers == ["Scheme Code", "Scheme Name"]
        assert parsed.rows == [
            {"Scheme Code": "INF001", "Scheme Name": "Alpha Fund"},
            {"Scheme Code": "INF002", "Scheme Name": "Beta Fund"},
        ]
        assert parsed.total_rows == 2

    def test_max_rows(self, parser: TabularParser, tmp_path: Path) -> None:
        path = _xlsx_bytes(
            tmp_path,
            [["Scheme Code", "Scheme Name"], ["INF001", "Alpha Fund"], ["INF002", "Beta Fund"]],
        )

        parsed = parser.parse(path.read_bytes(), ".xlsx", ParseOptions(max_rows=1))

        assert len(parsed.rows) == 1
        assert parsed.rows[0]["Scheme Code"] == "INF001"
        assert parsed.total_rows == 2

    def test_amount_cells_are_not_read_as_dates(self, parser: TabularParser, tmp_path: Path) -> None:
        path = _xlsx_bytes(tmp_path, [["Amount"], [50000]])

        parsed = parser.parse(path.read_bytes(), ".xlsx")

        assert parsed.rows == [{"Amount": 50000}]

    def test_native_date_cells_become_iso(self, parser: TabularParser, tmp_path: Path) -> None:
        path = _xlsx_bytes(tmp_path, [["Date"], [datetime(2024, 3, 1)]])

        parsed = parser.parse(path.read_bytes(), ".xlsx")

        assert parsed.rows == [{"Date": "2024-03-01"}]

    def test_corrupt_workbook_is_a_parse_error(self, parser: TabularParser) -> None:
        parsed = parser.parse(b"not a zip archive", ".xlsx")

        assert parsed.headers == []
        assert parsed.errors[0].startswith("Spreadsheet parsing error:")

    def test_repeated_and_blank_headers_keep_their_columns(self, parser: TabularParser, tmp_path: Path) -> None:
        path = _xlsx_bytes(
            tmp_path,
            [["Amount", None, "Amount", "Scheme"], [100, "note", 200, "INF001"], [300, None, 400, "INF002"]],
        )

        parsed = parser.parse(path.read_bytes(), ".xlsx")

        assert parsed.headers == ["Amount", "Column_2", "Amount_1", "Scheme"]
        assert parsed.rows == [
            {"Amount": 100, "Column_2": "note", "Amount_1": 200, "Scheme": "INF001"},
            {"Amount": 300, "Column_2": "", "Amount_1": 400, "Scheme": "INF002"},
        ]


class _StaticReader(SpreadsheetReader):
    extensions = (".xls",)

    def __init__(self, sheet: SheetData) -> None:
        self._sheet = sheet

    def read(self, content: bytes) -> SheetData:
        return self._sheet

    def dimensions(self, content: bytes) -> tuple[int, int]:
        return self._sheet.declared_rows, self._sheet.declared_columns


class TestInjectedReader:
    def test_positional_lookup_with_repeated_headers(self) -> None:
        sheet = SheetData(
            rows=[[" Amount ", "Amount", "", "Amount"], [1, 2, 3, 4]],
            declared_rows=2,
            declared_columns=4,
        )
        parser = TabularParser(spreadsheet_readers=[_StaticReader(sheet)], max_format_check_bytes=1024)

        parsed = parser.parse(b"ignored", ".xls")

        assert parsed.headers == ["Amount", "Amount_1", "Column_3", "Amount_2"]
        assert parsed.rows == [{"Amount": 1, "Amount_1": 2, "Column_3": 3, "Amount_2": 4}]

    def test_total_rows_follow_declared_range(self) -> None:
        sheet = SheetData(rows=[["Scheme Code"], ["INF001"], ["INF002"]], declared_rows=5, declared_columns=1)
        parser = TabularParser(spreadsheet_readers=[_StaticReader(sheet)], max_format_check_bytes=1024)

        parsed = parser.parse(b"ignored", ".xls", ParseOptions(max_rows=1))

        assert parsed.rows == [{"Scheme Code": "INF001"}]
        assert parsed.total_rows == 4

    def test_unregistered_extension_is_rejected(self) -> None:
        parser = TabularParser(spreadsheet_readers=[_StaticReader(SheetData())], max_format_check_bytes=1024)

        assert parser.supported_extensions == (".csv", ".xls")
        assert parser.parse(b"PK", ".xlsx").errors == ["Unsupported file type: .xlsx"]


# ---------------------------------------------------------------------------
# Legacy .xls reader
# ---------------------------------------------------------------------------


class _FakeXlsSheet:
    def __init__(self, rows: list[list[xlrd.sheet.Cell]]) -> None:
        self._rows = rows
        self.nrows = len(rows)
        self.ncols = max((len(row) for row in rows), default=0)

    def row(self, index: int) -> list[xlrd.sheet.Cell]:
        return self._rows[index]


class _FakeXlsBook:
    datemode = 0

    def __init__(self, sheet: _FakeXlsSheet) -> None:
        self._sheet = sheet
        self.nsheets = 1
        self.released = False

    def sheet_by_index(self, index: int) -> _FakeXlsSheet:
        return self._sheet

    def release_resources(self) -> None:
        self.released = True


@pytest.fixture()
def xls_book(monkeypatch: pytest.MonkeyPatch) -> _FakeXlsBook:
    text, number = xlrd.XL_CELL_TEXT, xlrd.XL_CELL_NUMBER
    rows = [
        [xlrd.sheet.Cell(text, "Scheme Code"), xlrd.sheet.Cell(text, "Date"), xlrd.sheet.Cell(text, "Amount")],
        [
            xlrd.sheet.Cell(text, "INF001"),
            xlrd.sheet.Cell(xlrd.XL_CELL_DATE, 43480.0),
            xlrd.sheet.Cell(number, 1500.0),
        ],
        [
            xlrd.sheet.Cell(text, "INF002"),
            xlrd.sheet.Cell(xlrd.XL_CELL_EMPTY, ""),
            xlrd.sheet.Cell(number, 45000.25),
        ],
    ]
    book = _FakeXlsBook(_FakeXlsSheet(rows))
    monkeypatch.setattr(xlrd, "open_workbook", lambda **kwargs: book)
    return book


class TestXlrdReader:
    def test_cells_are_typed(self, xls_book: _FakeXlsBook) -> None:
        sheet = XlrdSpreadsheetReader().read(b"legacy")

        assert sheet.rows[1] == ["INF001", datetime(2019, 1, 15), 1500]
        assert isinstance(sheet.rows[1][2], int)
        assert sheet.rows[2] == ["INF002", None, 45000.25]
        assert (sheet.declared_rows, sheet.declared_columns) == (3, 3)
        assert xls_book.released

    def test_dimensions(self, xls_book: _FakeXlsBook) -> None:
        assert XlrdSpreadsheetReader().dimensions(b"legacy") == (3, 3)

    def test_parse_xls(self, parser: TabularParser, xls_book: _FakeXlsBook) -> None:
        parsed = parser.parse(b"legacy", ".xls")

        assert parsed.headers == ["Scheme Code", "Date", "Amount"]
        assert parsed.rows == [
            {"Scheme Code": "INF001", "Date": "2019-01-15", "Amount": 1500},
            {"Scheme Code": "INF002", "Date": "", "Amount": 45000.25},
        ]
        assert parsed.total_rows == 2


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------


class TestFileProbes:
    def test_csv_stats(self, parser: TabularParser, tmp_path: Path) -> None:
        path = tmp_path / "data.csv"
        path.write_bytes(b"a,b,c\n1,2,3\n4,5,6\n")

        stats = parser.get_file_stats(path)

        assert stats.total_rows == 2
        assert stats.total_columns == 3
        assert stats.file_size == path.stat().st_size

    def test_xlsx_stats(self, parser: TabularParser, tmp_path: Path) -> None:
        path = _xlsx_bytes(tmp_path, [["a", "b"], [1, 2], [3, 4], [5, 6]])

        stats = parser.get_file_stats(path)

        assert stats.total_rows == 3
        assert stats.total_columns == 2

    def test_stats_degrade_to_zero_on_missing_file(self, parser: TabularParser, tmp_path: Path) -> None:
        stats = parser.get_file_stats(tmp_path / "missing.csv")

        assert (stats.total_rows, stats.total_columns, stats.file_size) == (0, 0, 0)

    def test_validate_missing_file(self, parser: TabularParser, tmp_path: Path) -> None:
        result = parser.validate_format(tmp_path / "missing.csv")

        assert not result.is_valid
        assert result.errors == ["File not found"]

    def test_validate_empty_file(self, parser: TabularParser, tmp_path: Path) -> None:
        path = tmp_path / "empty.csv"
        path.write_bytes(b"")

        assert parser.validate_format(path).errors == ["File is empty"]

    def test_validate_oversize_file(self, tmp_path: Path) -> None:
        path = tmp_path / "big.csv"
        path.write_bytes(b"a\n" + b"1\n" * 2048)

        result = TabularParser(max_format_check_bytes=1024 * 1024 // 512).validate_format(path)

        assert not result.is_valid
        assert result.errors[0].startswith("File too large")

    def test_validate_unsupported_extension(self, parser: TabularParser, tmp_path: Path) -> None:
        path = tmp_path / "data.txt"
        path.write_bytes(b"a,b\n1,2\n")

        assert parser.validate_format(path).errors == ["Unsupported file type: .txt"]

    def test_validate_good_file(self, parser: TabularParser, tmp_path: Path) -> None:
        path = tmp_path / "data.csv"
        path.write_bytes(b"a,b\n1,2\n")

        result = parser.validate_format(path)

        assert result.is_valid
        assert result.errors == []
