"""
Tabular Store
=============
Thin wrapper over an openpyxl workbook exposing the sheet / row / cell
operations the mapper needs.  Row and column indices are zero-based here;
openpyxl's one-based coordinates stay inside this module.

Every value is stored as a text cell.  Failures from openpyxl or the file
system are re-raised as :class:`StoreError`.
"""

import logging
import zipfile
from collections import namedtuple

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import IllegalCharacterError, InvalidFileException

from .codec import to_text
from .errors import StoreError

logger = logging.getLogger(__name__)

# longest text a spreadsheet cell holds; openpyxl truncates silently beyond it
MAX_CELL_LENGTH = 32767

RowHandle = namedtuple("RowHandle", ["sheet", "index"])

_LOAD_ERRORS = (OSError, InvalidFileException, zipfile.BadZipFile, KeyError, ValueError)


class WorkbookStore:
    """In-memory workbook owned by one writer or reader."""

    def __init__(self, workbook=None, read_only=False):
        if workbook is None:
            workbook = Workbook()
            # start empty; sheets are only created by the mapper
            workbook.remove(workbook.active)
        self.workbook = workbook
        self.read_only = read_only

    @classmethod
    def open(cls, source):
        """Load *source* (path or binary stream) in streaming read-only mode."""
        try:
            wb = load_workbook(source, read_only=True, data_only=True)
        except _LOAD_ERRORS as exc:
            raise StoreError(f"Cannot open workbook {source!r}: {exc}") from exc
        return cls(wb, read_only=True)

    # -- sheets ---------------------------------------------------------

    @property
    def sheet_names(self) -> list:
        return list(self.workbook.sheetnames)

    @property
    def sheet_count(self) -> int:
        return len(self.workbook.sheetnames)

    def create_sheet(self, name=None):
        try:
            if name and name.strip():
                return self.workbook.create_sheet(title=name)
            return self.workbook.create_sheet()
        except ValueError as exc:
            raise StoreError(f"Cannot create sheet {name!r}: {exc}") from exc

    def get_sheet(self, name):
        """Sheet titled *name* (case-insensitive), or None."""
        if not name or not name.strip():
            return None
        wanted = name.lower()
        for title in self.workbook.sheetnames:
            if title.lower() == wanted:
                return self.workbook[title]
        return None

    def sheet_at(self, index: int):
        try:
            return self.workbook.worksheets[index]
        except IndexError:
            raise StoreError(
                f"Sheet index {index} out of range ({self.sheet_count} sheets)") from None

    def remove_sheet(self, sheet):
        self.workbook.remove(sheet)

    # -- rows and cells -------------------------------------------------

    def create_row(self, sheet, index: int) -> RowHandle:
        return RowHandle(sheet, index)

    def set_cell_value(self, row: RowHandle, column: int, value: str):
        if value is not None and len(value) > MAX_CELL_LENGTH:
            raise StoreError(
                f"Cell ({row.index}, {column}) of '{row.sheet.title}' holds "
                f"{len(value)} characters, more than {MAX_CELL_LENGTH}")
        try:
            cell = row.sheet.cell(row=row.index + 1, column=column + 1)
            cell.value = value
            # text cell even when the value looks like a formula
            cell.data_type = "s"
        except (IllegalCharacterError, ValueError) as exc:
            raise StoreError(
                f"Cannot write cell ({row.index}, {column}) of "
                f"'{row.sheet.title}': {exc}") from exc

    def enumerate_rows(self, sheet):
        """Yield the cell values of each physical row, top to bottom."""
        try:
            for values in sheet.iter_rows(values_only=True):
                yield values
        except _LOAD_ERRORS as exc:
            raise StoreError(f"Cannot read sheet '{sheet.title}': {exc}") from exc

    def get_cell_value(self, row, column: int) -> str:
        if column >= len(row):
            return ""
        return to_text(row[column])

    # -- persistence ----------------------------------------------------

    def serialize(self, destination):
        """Save the workbook to *destination* (path or binary stream)."""
        if not self.workbook.sheetnames:
            logger.warning("Workbook has no sheets; adding an empty one before saving")
            self.workbook.create_sheet()
        try:
            self.workbook.save(destination)
        except (OSError, ValueError, TypeError) as exc:
            raise StoreError(f"Cannot save workbook: {exc}") from exc

    def close(self):
        self.workbook.close()
