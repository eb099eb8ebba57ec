"""
Sheet Reader
============
Streams the rows of a sheet, decodes each one into a record and hands it to
a row listener together with its zero-based data row index (the first row
under the header is row 0).

Rows are delivered in physical order, one at a time, while the workbook is
read in openpyxl's streaming mode; the sheet is never held in memory as a
whole.

Row-level decode failures follow ``on_error``:

* ``"raise"`` (default) - abort the stream with the :class:`ConversionError`,
  tagged with the row index.
* ``"skip"`` - log a warning, report the error to ``error_listener`` if one
  is set, and continue with the next row.
"""

import logging
from typing import Any, Callable, Optional, Protocol

from .codec import decode
from .errors import ArgumentError, ConversionError, SchemaError, StoreError
from .schema import column_descriptors, derive_sheet_name
from .store import WorkbookStore

logger = logging.getLogger(__name__)

ON_ERROR_CHOICES = ("raise", "skip")


class RowListener(Protocol):
    def __call__(self, row_index: int, record: Any) -> None:
        ...


class SpreadsheetReader:
    """Reads records out of one workbook (path or binary stream)."""

    def __init__(self, source, on_error: str = "raise", skip_blank_rows: bool = False,
                 error_listener: Optional[Callable[[int, ConversionError], None]] = None):
        if source is None:
            raise ArgumentError("Source should not be None")
        if on_error not in ON_ERROR_CHOICES:
            raise ArgumentError(
                f"on_error must be one of {ON_ERROR_CHOICES}, got {on_error!r}")
        self.source = source
        self.on_error = on_error
        self.skip_blank_rows = skip_blank_rows
        self.error_listener = error_listener
        self._store = None

    @classmethod
    def from_config(cls, source, config: dict, error_listener=None):
        return cls(
            source,
            on_error=config.get("on_error", "raise"),
            skip_blank_rows=bool(config.get("skip_blank_rows", False)),
            error_listener=error_listener,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def store(self) -> WorkbookStore:
        if self._store is None:
            self._store = WorkbookStore.open(self.source)
        return self._store

    @property
    def sheet_names(self) -> list:
        return self.store.sheet_names

    def close(self):
        if self._store is not None:
            self._store.close()
            self._store = None

    # ------------------------------------------------------------------

    def read(self, record_type, listener: RowListener, sheet=None) -> int:
        """Decode every data row of *sheet* and pass it to *listener*.

        *sheet* is a sheet name, a zero-based sheet index, or None for the
        record type's declared sheet (falling back to the first sheet).
        Returns the number of rows delivered.
        """
        if record_type is None:
            raise ArgumentError("Record type should not be None")
        if listener is None:
            raise ArgumentError("Row listener should not be None")

        columns = column_descriptors(record_type)
        ws = self._resolve_sheet(record_type, sheet)
        rows = self.store.enumerate_rows(ws)

        header_cells = next(rows, None)
        if header_cells is None:
            logger.warning(f"Sheet '{ws.title}' is empty; nothing to read")
            return 0
        headers = self._read_headers(header_cells, columns, ws.title)
        if not headers:
            logger.warning(f"Sheet '{ws.title}' has no header row; nothing to read")
            return 0

        delivered = 0
        for row_index, cells in enumerate(rows):
            if self.skip_blank_rows and all(v is None or v == "" for v in cells):
                continue
            try:
                record = decode(cells, headers, record_type, columns)
            except ConversionError as exc:
                error = exc.at_row(row_index)
                if self.on_error == "raise":
                    raise error from exc
                logger.warning(f"Skipping row {row_index} of '{ws.title}': {error}")
                if self.error_listener is not None:
                    self.error_listener(row_index, error)
                continue
            listener(row_index, record)
            delivered += 1

        logger.debug(f"Read {delivered} rows from sheet '{ws.title}'")
        return delivered

    def read_all(self, record_type, sheet=None) -> list:
        """Decode every data row of *sheet* into a list."""
        records = []
        self.read(record_type, lambda _index, record: records.append(record), sheet)
        return records

    def _resolve_sheet(self, record_type, sheet):
        if isinstance(sheet, int) and not isinstance(sheet, bool):
            return self.store.sheet_at(sheet)
        name = sheet or derive_sheet_name(record_type)
        if name:
            ws = self.store.get_sheet(name)
            if ws is None:
                raise StoreError(
                    f"No sheet named '{name}' in workbook (sheets: {self.store.sheet_names})")
            return ws
        return self.store.sheet_at(0)

    def _read_headers(self, header_cells, columns, sheet_title) -> list:
        known = {c.name for c in columns}
        headers = []
        for ci in range(len(header_cells)):
            text = self.store.get_cell_value(header_cells, ci)
            # exact names first, so column names with spaces still match
            if text not in known and text.strip() in known:
                text = text.strip()
            headers.append(text)
        while headers and not headers[-1].strip():
            headers.pop()
        if not headers:
            return headers

        matched = [h for h in headers if h in known]
        if not matched:
            raise SchemaError(
                f"Header of sheet '{sheet_title}' {headers} shares no column "
                f"with {sorted(known)}")
        unknown = [h for h in headers if h and h not in known]
        if unknown:
            logger.debug(f"Ignoring unknown columns in '{sheet_title}': {unknown}")
        missing = sorted(known - set(matched))
        if missing:
            logger.warning(f"Columns missing from '{sheet_title}', read as blank: {missing}")
        return headers


def read_records(source, record_type, sheet=None, **options) -> list:
    """Open *source*, read all records of one sheet and close it again."""
    with SpreadsheetReader(source, **options) as reader:
        return reader.read_all(record_type, sheet)
