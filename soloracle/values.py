"""Value model — elementary Solidity types and immutable tagged values."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Union

from . import constants

_INTEGER_TYPE_RE = re.compile(r"^(u?)int(\d*)$")


# ── Types ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class IntegerType:
    bits: int = constants.INTEGER_MAX_BITS
    signed: bool = False

    @property
    def name(self) -> str:
        return f"{'int' if self.signed else 'uint'}{self.bits}"

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class BoolType:
    @property
    def name(self) -> str:
        return "bool"

    def __str__(self) -> str:
        return self.name


SolType = Union[IntegerType, BoolType]


def parse_type_name(type_name: str) -> SolType | None:
    """Map an elementary type name ("uint8", "int", "bool") to a type.

    Returns None for anything the value model cannot represent (mappings,
    arrays, addresses, ...).
    """
    name = type_name.strip()
    if name == "bool":
        return BoolType()
    m = _INTEGER_TYPE_RE.match(name)
    if not m:
        return None
    bits = int(m.group(2)) if m.group(2) else constants.INTEGER_MAX_BITS
    if (
        bits < constants.INTEGER_MIN_BITS
        or bits > constants.INTEGER_MAX_BITS
        or bits % 8
    ):
        return None
    return IntegerType(bits=bits, signed=m.group(1) != "u")


# ── Values ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class IntegerValue:
    type: IntegerType
    value: int

    tag = "integer"

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"{self.type} value must be an int, got {self.value!r}")
        if not self.type.contains(self.value):
            raise ValueError(f"{self.value} is out of range for {self.type}")

    def __str__(self) -> str:
        return f"{self.type}({self.value})"


@dataclass(frozen=True)
class BoolValue:
    value: bool

    tag = "bool"

    @property
    def type(self) -> BoolType:
        return BoolType()

    def __str__(self) -> str:
        return "true" if self.value else "false"


class _Void:
    """Marker returned by a bare ``return;`` so traversal still stops."""

    tag = "void"

    def __repr__(self) -> str:
        return "VOID"


VOID = _Void()

Value = Union[IntegerValue, BoolValue]


def zero_value(sol_type: SolType) -> Value:
    """Default storage value of *sol_type*."""
    if isinstance(sol_type, BoolType):
        return BoolValue(False)
    return IntegerValue(sol_type, 0)


def value_from_python(sol_type: SolType, raw: Any) -> Value:
    """Convert a plain JSON/Python scalar into a Value of *sol_type*.

    Raises ValueError when *raw* does not fit the type.
    """
    if isinstance(sol_type, BoolType):
        if not isinstance(raw, bool):
            raise ValueError(f"bool value must be true/false, got {raw!r}")
        return BoolValue(raw)
    if isinstance(raw, str):
        raw = int(raw, 0)
    return IntegerValue(sol_type, raw)
