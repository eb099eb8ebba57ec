"""Record <-> spreadsheet mapper.

Writes lists of dataclass records into sheets of an ``.xlsx`` workbook (one
header row, one row per record) and streams sheets back into records through
a row listener:

  * :class:`SpreadsheetWriter` – ``add_sheet`` per record list, then ``write``.
  * :class:`SpreadsheetReader` – ``read(record_type, listener)`` per sheet.

Columns come from the record type's dataclass fields (see :func:`column` and
:func:`sheet`) or from a schema registered with :func:`register_schema`.
"""

from .codec import decode, encode, from_text, to_text
from .errors import (
    ArgumentError,
    ConversionError,
    DuplicateSheetError,
    EmptyInputWarning,
    SchemaError,
    SheetMapperError,
    StoreError,
)
from .reader import RowListener, SpreadsheetReader, read_records
from .schema import (
    Column,
    column,
    column_descriptors,
    derive_headers,
    derive_sheet_name,
    register_schema,
    sheet,
    unregister_schema,
)
from .store import WorkbookStore
from .writer import AddSheetResult, SheetStatus, SpreadsheetWriter

__all__ = [
    "AddSheetResult",
    "ArgumentError",
    "Column",
    "ConversionError",
    "DuplicateSheetError",
    "EmptyInputWarning",
    "RowListener",
    "SchemaError",
    "SheetMapperError",
    "SheetStatus",
    "SpreadsheetReader",
    "SpreadsheetWriter",
    "StoreError",
    "WorkbookStore",
    "column",
    "column_descriptors",
    "decode",
    "derive_headers",
    "derive_sheet_name",
    "encode",
    "from_text",
    "read_records",
    "register_schema",
    "sheet",
    "to_text",
    "unregister_schema",
]
