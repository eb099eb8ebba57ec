"""
Record types shared by the sheet_mapper tests.
"""

import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from sheet_mapper import column, sheet


@dataclass
class User:
    id: int
    name: str
    active: bool


@dataclass
class Named:
    id: int
    name: str


@sheet("People")
@dataclass
class Person:
    id: int
    name: str
    active: bool = True
    score: float = 0.0
    balance: Decimal = Decimal("0")
    joined: Optional[datetime.date] = None
    last_seen: Optional[datetime.datetime] = None
    nickname: Optional[str] = None


@dataclass
class Employee(Person):
    """Inherits the columns of Person but not its sheet name."""
    team: str = ""


@dataclass
class Product:
    sku: str = column("SKU")
    price: Decimal = column("Unit Price", formatter=lambda v: f"{v:.2f}",
                            default=Decimal("0"))
    notes: str = column(ignore=True, default="")
    tags: list = field(default_factory=list, metadata={"unrelated": True})


class Point:
    """Plain class mapped through an explicitly registered schema."""
    x: int
    y: int

    def __init__(self, x, y):
        self.x = x
        self.y = y

    def __eq__(self, other):
        return isinstance(other, Point) and (self.x, self.y) == (other.x, other.y)

    def __repr__(self):
        return f"Point({self.x}, {self.y})"


class Broken:
    """Record whose property blows up on access."""

    def __init__(self, id):
        self.id = id

    @property
    def name(self):
        raise RuntimeError("lookup failed")


def sample_people():
    return [
        Person(1, "Alice", True, 9.5, Decimal("1200.50"),
               datetime.date(2021, 3, 14), datetime.datetime(2024, 1, 2, 8, 30, 15), "Al"),
        Person(2, "Bob", False, 0.1, Decimal("-3.25"), datetime.date(1999, 12, 31)),
        Person(3, "=SUM(A1:A2)", True, 1e20, Decimal("0")),
    ]
