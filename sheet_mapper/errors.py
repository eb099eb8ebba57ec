"""
Error Types
===========
Exceptions raised by the record <-> sheet mapping layer.

Write-path failures are normally reported through ``AddSheetResult`` rather
than raised; read-path failures follow the reader's ``on_error`` policy.
"""


class SheetMapperError(Exception):
    """Base class for every error raised by sheet_mapper."""


class ArgumentError(SheetMapperError, ValueError):
    """Missing record type or structurally invalid input."""


class SchemaError(SheetMapperError):
    """A record type exposes no mappable columns, or declares them twice."""


class DuplicateSheetError(SheetMapperError):
    """A sheet with the requested name already exists in the workbook."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"A sheet with the passed name already exists: {name}")


class ConversionError(SheetMapperError):
    """A cell value cannot be coerced to the declared field type."""

    def __init__(self, header, raw_value, target_type, row_index=None):
        self.header = header
        self.raw_value = raw_value
        self.target_type = target_type
        self.row_index = row_index
        type_name = getattr(target_type, "__name__", str(target_type))
        msg = f"Cannot convert {raw_value!r} in column '{header}' to {type_name}"
        if row_index is not None:
            msg += f" (row {row_index})"
        super().__init__(msg)

    def at_row(self, row_index):
        """Return a copy of this error tagged with *row_index*."""
        return ConversionError(self.header, self.raw_value, self.target_type, row_index)


class StoreError(SheetMapperError):
    """The underlying workbook failed (I/O, corrupt file, invalid sheet)."""


class EmptyInputWarning(UserWarning):
    """Category for skipped writes of empty record or header lists (logged only)."""
