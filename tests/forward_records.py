"""
Record types declared with postponed (string) annotations.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sheet_mapper import column


@dataclass
class Entry:
    id: int
    amount: Decimal
    memo: Optional[str] = None


def make_tagged():
    """Record whose mapped field names a class local to this function."""
    class Tag:
        pass

    @dataclass
    class Tagged:
        id: int
        tag: Tag = None

    return Tagged


def make_memo():
    """Record whose only unresolvable field is excluded from the sheet."""
    class Note:
        pass

    @dataclass
    class Memo:
        id: int
        amount: Decimal
        note: Note = column(ignore=True, default=None)

    return Memo
