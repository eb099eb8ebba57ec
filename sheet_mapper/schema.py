"""
Schema Introspector
===================
Derives the ordered column descriptors of a record type.

Two sources are supported, checked in this order:

1. An explicit schema registered with :func:`register_schema` (works for any
   type, dataclass or not).
2. The dataclass fields of the record type, in declaration order.  Field
   level options (header text, formatter, parser) are attached with
   :func:`column`, and a sheet name with the :func:`sheet` decorator.

Nothing here looks at record instances; only the type is inspected.
"""

import dataclasses
import datetime
import decimal
import inspect
import logging
import sys
import typing
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import ArgumentError, SchemaError

logger = logging.getLogger(__name__)

METADATA_KEY = "sheet_mapper"
SHEET_NAME_ATTR = "__sheet_name__"


@dataclass(frozen=True)
class Column:
    """Binds a header name to a record accessor."""
    name: str
    attribute: Any = None  # attribute name, or a callable taking the record
    order: int = 0
    formatter: Optional[Callable[[Any], str]] = None
    parser: Optional[Callable[[str], Any]] = None
    type: Any = str
    init: bool = True  # passed to the constructor when decoding

    def __post_init__(self):
        if not self.name:
            raise SchemaError("Column name must not be empty")
        if self.attribute is None:
            object.__setattr__(self, "attribute", self.name)

    @property
    def field_name(self) -> Optional[str]:
        """Constructor keyword for this column, or None for computed columns."""
        return self.attribute if isinstance(self.attribute, str) else None

    def resolve(self, record):
        if callable(self.attribute):
            return self.attribute(record)
        return getattr(record, self.attribute)


@dataclass(frozen=True)
class SheetSchema:
    columns: tuple
    sheet_name: Optional[str] = None


_REGISTRY: dict = {}


def column(name=None, *, formatter=None, parser=None, ignore=False, **field_kwargs):
    """``dataclasses.field`` carrying column options.

    Example::

        @dataclass
        class Person:
            id: int
            full_name: str = column("Full Name", default="")
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[METADATA_KEY] = {
        "name": name,
        "formatter": formatter,
        "parser": parser,
        "ignore": ignore,
    }
    return dataclasses.field(metadata=metadata, **field_kwargs)


def sheet(name: str):
    """Class decorator declaring the default sheet name of a record type."""
    def decorate(cls):
        setattr(cls, SHEET_NAME_ATTR, name)
        return cls
    return decorate


def register_schema(record_type, columns, sheet_name: Optional[str] = None) -> SheetSchema:
    """Register an explicit, ordered column list for *record_type*.

    *columns* may mix :class:`Column` objects and plain attribute names.
    Orders are reassigned from list position.
    """
    if record_type is None:
        raise ArgumentError("Record type should not be None")

    hints = _type_hints(record_type)
    resolved = []
    for order, col in enumerate(columns):
        if isinstance(col, str):
            col = Column(name=col, type=_field_type(record_type, col, hints.get(col, str)))
        elif col.field_name and col.type is str and col.field_name in hints:
            col = dataclasses.replace(
                col, type=_field_type(record_type, col.field_name, hints[col.field_name]))
        resolved.append(dataclasses.replace(col, order=order))

    _check_unique(record_type, resolved)
    if not resolved:
        raise SchemaError(f"Schema for {record_type.__name__} declares no columns")

    schema = SheetSchema(columns=tuple(resolved), sheet_name=sheet_name)
    _REGISTRY[record_type] = schema
    logger.debug(f"Registered schema for {record_type.__name__}: "
                 f"{[c.name for c in resolved]}")
    return schema


def unregister_schema(record_type):
    _REGISTRY.pop(record_type, None)


def column_descriptors(record_type) -> list:
    """Return the ordered :class:`Column` list for *record_type*."""
    if record_type is None:
        raise ArgumentError("Record type should not be None")

    schema = _REGISTRY.get(record_type)
    if schema is not None:
        return list(schema.columns)

    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise SchemaError(
            f"{getattr(record_type, '__name__', record_type)} is neither a dataclass "
            f"nor a registered schema; no mappable fields")

    hints = _type_hints(record_type)
    columns = []
    for f in dataclasses.fields(record_type):
        options = f.metadata.get(METADATA_KEY, {})
        if options.get("ignore"):
            continue
        columns.append(Column(
            name=options.get("name") or f.name,
            attribute=f.name,
            order=len(columns),
            formatter=options.get("formatter"),
            parser=options.get("parser"),
            type=_field_type(record_type, f.name, hints.get(f.name, f.type)),
            init=f.init,
        ))

    if not columns:
        raise SchemaError(f"{record_type.__name__} exposes no mappable fields")
    _check_unique(record_type, columns)
    return columns


def derive_headers(record_type, headers=None) -> list:
    """Header row for *record_type*; explicit *headers* are used verbatim."""
    if headers is not None:
        return list(headers)
    return [c.name for c in column_descriptors(record_type)]


def derive_sheet_name(record_type) -> Optional[str]:
    """Declared sheet name of *record_type*, or None."""
    if record_type is None:
        return None
    schema = _REGISTRY.get(record_type)
    if schema is not None and schema.sheet_name:
        return schema.sheet_name
    # only the class's own declaration, subclasses do not inherit a sheet
    return vars(record_type).get(SHEET_NAME_ATTR) if isinstance(record_type, type) else None


# names an annotation string may use without importing them in its module
_ANNOTATION_NAMES = {
    "Optional": Optional,
    "Union": typing.Union,
    "Any": Any,
    "Decimal": decimal.Decimal,
    "date": datetime.date,
    "datetime": datetime.datetime,
    "time": datetime.time,
    "decimal": decimal,
    "typing": typing,
}


class UnresolvedAnnotation(str):
    """Annotation text that could not be evaluated."""


def _type_hints(record_type) -> dict:
    """Field name -> type, resolving string annotations one field at a time.

    Annotations that do not evaluate come back as
    :class:`UnresolvedAnnotation`; :func:`_field_type` rejects them when the
    field is actually mapped.
    """
    try:
        return typing.get_type_hints(record_type)
    except Exception as exc:  # at least one forward reference does not resolve
        logger.debug(f"Resolving annotations of {record_type!r} per field: {exc}")

    module = sys.modules.get(getattr(record_type, "__module__", None))
    globalns = dict(_ANNOTATION_NAMES)
    globalns.update(vars(module) if module is not None else {})
    localns = {getattr(record_type, "__name__", ""): record_type}

    hints = {}
    for klass in reversed(getattr(record_type, "__mro__", (record_type,))):
        for name, annotation in inspect.get_annotations(klass).items():
            hints[name] = _evaluate(annotation, globalns, localns)
    return hints


def _evaluate(annotation, globalns, localns):
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, globalns, localns)
    except Exception:
        return UnresolvedAnnotation(annotation)


def _field_type(record_type, name, hint):
    if isinstance(hint, str):
        raise SchemaError(
            f"Cannot resolve annotation {str(hint)!r} of field '{name}' "
            f"in {record_type.__name__}")
    return hint


def _check_unique(record_type, columns):
    seen = set()
    for c in columns:
        if c.name in seen:
            raise SchemaError(
                f"Duplicate column name '{c.name}' in {record_type.__name__}")
        seen.add(c.name)
