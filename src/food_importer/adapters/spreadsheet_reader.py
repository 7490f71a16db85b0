"""Spreadsheet parsing backed by openpyxl and xlrd."""

import csv
import io
import zipfile
from dataclasses import dataclass
from typing import Protocol

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from food_importer.domain.foods import SheetRow

# Compound File Binary signature used by Excel 97-2003 workbooks.
XLS_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


class SpreadsheetError(ValueError):
    """Raised when a buffer cannot be read as a spreadsheet."""


class SpreadsheetReader(Protocol):
    """Interface for turning a spreadsheet buffer into rows."""

    def read_rows(
        self, buffer: bytes, sheet_name: str | None = None
    ) -> list[list[object]]:
        """Return every row of a sheet as an ordered list of cell values."""

    def read_records(
        self, buffer: bytes, sheet_name: str | None = None
    ) -> list[SheetRow]:
        """Return data rows keyed by the sheet's first-row headers."""


@dataclass
class OpenpyxlSpreadsheetReader(SpreadsheetReader):
    """Reads XLSX with openpyxl, legacy XLS with xlrd and CSV with the csv module."""

    csv_encoding: str = "utf-8-sig"

    def read_rows(
        self, buffer: bytes, sheet_name: str | None = None
    ) -> list[list[object]]:
        """Return every row of a sheet as an ordered list of cell values."""
        if not buffer:
            raise SpreadsheetError("The uploaded file is empty")
        if buffer.startswith(XLS_SIGNATURE):
            return _read_legacy_workbook(buffer, sheet_name)
        if not zipfile.is_zipfile(io.BytesIO(buffer)):
            return self._read_csv(buffer)
        return _read_workbook(buffer, sheet_name)

    def read_records(
        self, buffer: bytes, sheet_name: str | None = None
    ) -> list[SheetRow]:
        """Return data rows keyed by the first-row headers, skipping blanks."""
        rows = self.read_rows(buffer, sheet_name)
        if not rows:
            return []
        headers = [
            str(cell).strip() if cell is not None else "" for cell in rows[0]
        ]
        records: list[SheetRow] = []
        for index, row in enumerate(rows[1:], start=2):
            values = {
                header: cell
                for header, cell in zip(headers, row, strict=False)
                if header and not _is_blank(cell)
            }
            if values:
                records.append(SheetRow(row_number=index, values=values))
        return records

    def _read_csv(self, buffer: bytes) -> list[list[object]]:
        try:
            text = buffer.decode(self.csv_encoding)
        except UnicodeDecodeError as exc:
            raise SpreadsheetError(
                "File is not an XLSX or XLS workbook, or UTF-8 CSV"
            ) from exc
        if "\x00" in text:
            raise SpreadsheetError("File is not an XLSX or XLS workbook, or UTF-8 CSV")
        return [list(row) for row in csv.reader(io.StringIO(text))]


def _read_workbook(buffer: bytes, sheet_name: str | None) -> list[list[object]]:
    try:
        workbook = load_workbook(io.BytesIO(buffer), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise SpreadsheetError(f"Could not read workbook: {exc}") from exc
    try:
        if not workbook.sheetnames:
            raise SpreadsheetError("Workbook does not contain any sheets")
        name = sheet_name or workbook.sheetnames[0]
        if name not in workbook.sheetnames:
            raise SpreadsheetError(f"Sheet '{name}' not found in workbook")
        sheet = workbook[name]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_legacy_workbook(
    buffer: bytes, sheet_name: str | None
) -> list[list[object]]:
    try:
        book = xlrd.open_workbook(file_contents=buffer, on_demand=True)
    except (xlrd.XLRDError, CompDocError, ValueError, OSError) as exc:
        raise SpreadsheetError(f"Could not read workbook: {exc}") from exc
    try:
        names = book.sheet_names()
        if not names:
            raise SpreadsheetError("Workbook does not contain any sheets")
        name = sheet_name or names[0]
        if name not in names:
            raise SpreadsheetError(f"Sheet '{name}' not found in workbook")
        sheet = book.sheet_by_name(name)
        # xlrd reports empty cells as "".
        return [
            [None if cell == "" else cell for cell in sheet.row_values(index)]
            for index in range(sheet.nrows)
        ]
    finally:
        book.release_resources()


def _is_blank(cell: object) -> bool:
    return cell is None or (isinstance(cell, str) and not cell.strip())
