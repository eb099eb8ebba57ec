"""
Sheet Writer
============
Writes lists of records into named sheets of one in-memory workbook and
saves it to a destination.

``add_sheet`` never raises for a bad dataset: the outcome comes back as an
:class:`AddSheetResult`, and the failure is logged.  Only a missing record
type or structurally invalid arguments raise immediately.

Not thread-safe: the duplicate-name check and sheet creation are not atomic,
so concurrent ``add_sheet`` calls on one writer must be serialized by the
caller.
"""

import enum
import logging
import os
from dataclasses import dataclass
from typing import Optional

from .codec import columns_for, encode
from .errors import (
    ArgumentError,
    DuplicateSheetError,
    EmptyInputWarning,
    SheetMapperError,
    StoreError,
)
from .schema import derive_headers, derive_sheet_name
from .store import WorkbookStore

logger = logging.getLogger(__name__)


class SheetStatus(enum.Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class AddSheetResult:
    status: SheetStatus
    sheet_name: Optional[str] = None
    rows_written: int = 0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is SheetStatus.CREATED

    def raise_for_status(self):
        """Re-raise the recorded error of a duplicate or failed call."""
        if self.error is not None:
            raise self.error


class SpreadsheetWriter:
    """Owns one workbook and the destination it will be saved to.

    *destination* is either a path, opened for binary writing here and
    closed by the writer, or a binary stream that stays owned by the caller.

    Usage::

        with SpreadsheetWriter("people.xlsx") as writer:
            writer.add_sheet(Person, people)
            writer.write()
    """

    def __init__(self, destination):
        if destination is None:
            raise ArgumentError("Destination should not be None")
        self.store = WorkbookStore()
        if isinstance(destination, (str, os.PathLike)):
            try:
                self._stream = open(destination, "wb")
            except OSError as exc:
                raise StoreError(f"Cannot open {destination!r} for writing: {exc}") from exc
            self._owns_stream = True
        else:
            self._stream = destination
            self._owns_stream = False
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def sheet_names(self) -> list:
        return self.store.sheet_names

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Sheets
    # ------------------------------------------------------------------

    def add_sheet(self, record_type, records, headers=None, sheet_name=None) -> AddSheetResult:
        """Append a sheet holding *records*, one per row under a header row.

        *headers* defaults to the record type's columns and *sheet_name* to
        its declared sheet name; without either the workbook picks a name.
        """
        if record_type is None:
            raise ArgumentError("Record type should not be None")
        if self._closed:
            raise ArgumentError("Writer is already closed")
        if isinstance(records, (str, bytes)) or not hasattr(records, "__iter__"):
            raise ArgumentError(f"Records should be a list, got {type(records).__name__}")
        records = list(records)

        if not records:
            logger.warning(f"{EmptyInputWarning.__name__}: skipping sheet writing "
                           "as the record list is empty")
            return AddSheetResult(SheetStatus.EMPTY, sheet_name)

        headers = derive_headers(record_type, headers)
        if not headers:
            logger.warning(f"{EmptyInputWarning.__name__}: skipping sheet writing "
                           "as the header list is empty")
            return AddSheetResult(SheetStatus.EMPTY, sheet_name)
        if len(set(headers)) != len(headers):
            raise ArgumentError(f"Duplicate header names in {headers}")

        if not sheet_name or not sheet_name.strip():
            sheet_name = derive_sheet_name(record_type)

        if self.store.get_sheet(sheet_name) is not None:
            error = DuplicateSheetError(sheet_name)
            logger.error(f"Error while preparing sheet: {error}")
            return AddSheetResult(SheetStatus.DUPLICATE, sheet_name, error=error)

        sheet = None
        try:
            rows_data = self._prepare_rows_data(record_type, headers, records)

            sheet = self.store.create_sheet(sheet_name)
            logger.debug(f"Added new sheet to the workbook: {sheet.title}")

            header_row = self.store.create_row(sheet, 0)
            for ci, header in enumerate(headers):
                self.store.set_cell_value(header_row, ci, str(header))

            for i in range(len(records)):
                row = self.store.create_row(sheet, i + 1)
                for ci, header in enumerate(headers):
                    self.store.set_cell_value(row, ci, rows_data[header][i])
        except SheetMapperError as exc:
            logger.error(f"Error while preparing sheet with passed records: {exc}",
                         exc_info=True)
            if sheet is not None:
                self.store.remove_sheet(sheet)
            return AddSheetResult(SheetStatus.FAILED, sheet_name, error=exc)

        logger.info(f"Wrote sheet '{sheet.title}': {len(headers)} columns, "
                    f"{len(records)} rows")
        return AddSheetResult(SheetStatus.CREATED, sheet.title, rows_written=len(records))

    def _prepare_rows_data(self, record_type, headers, records) -> dict:
        """Column-major cell text: header -> one value per record."""
        columns = columns_for(record_type)
        rows_data = {header: [] for header in headers}
        for record in records:
            row = encode(record, headers, columns)
            for header in headers:
                rows_data[header].append(row.get(header) or "")
        return rows_data

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write(self):
        """Save the workbook to the destination and release it."""
        if self._closed:
            raise StoreError("Writer is already closed")
        try:
            self.store.serialize(self._stream)
        finally:
            self.close()

    def close(self):
        """Release the destination without saving.  Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self.store.close()
        if self._owns_stream:
            self._stream.close()
