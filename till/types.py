"""Type definitions and helpers for Till.

This module defines the runtime value model shared by the type checker and
the interpreter. The checker works purely with `TypeSpec` tags and
`FunctionType` signatures; the interpreter works with the Python values
described below and uses the helpers here to check, default and display them.

Runtime representation of the four primitive kinds:

========  ===================
``Num``   ``float``
``Char``  :class:`CharVal`
``Bool``  ``bool``
``Str``   ``str``
========  ===================
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class TypeSpec:
    """Represents a Till type annotation such as `Num` or `Char`.

    The parser builds a `TypeSpec` from whatever identifier appears in a type
    position; whether that name is one of the primitive kinds is decided by
    the type checker.
    """
    kind: str

    def __repr__(self) -> str:
        return self.kind

    @property
    def is_primitive(self) -> bool:
        return self.kind in PRIMITIVE_KINDS

    # Convenience constructors
    @staticmethod
    def num() -> 'TypeSpec':
        return TypeSpec('Num')

    @staticmethod
    def char() -> 'TypeSpec':
        return TypeSpec('Char')

    @staticmethod
    def boolean() -> 'TypeSpec':
        return TypeSpec('Bool')

    @staticmethod
    def string() -> 'TypeSpec':
        return TypeSpec('Str')


PRIMITIVE_KINDS = ('Num', 'Char', 'Bool', 'Str')


@dataclass(frozen=True)
class FunctionType:
    """Static signature of a declared function."""
    params: Tuple[TypeSpec, ...]
    return_type: Optional[TypeSpec]

    def __repr__(self) -> str:
        params = ", ".join(repr(p) for p in self.params)
        if self.return_type is None:
            return f"({params})"
        return f"({params}) -> {self.return_type!r}"


@dataclass(frozen=True)
class CharVal:
    """A single character; kept apart from `str` so `Char` and `Str` differ at runtime."""
    char: str

    def __repr__(self) -> str:
        return f"Char({self.char!r})"


class UnitVal:
    """Marker for the result of calling a function without a return type."""
    def __repr__(self) -> str:
        return 'Unit'


UNIT = UnitVal()


def type_name(value: Any) -> str:
    """Return the Till type name of a runtime value."""
    # bool before float: the checker never lets the two mix, but be exact here
    if isinstance(value, bool):
        return 'Bool'
    if isinstance(value, float):
        return 'Num'
    if isinstance(value, CharVal):
        return 'Char'
    if isinstance(value, str):
        return 'Str'
    if isinstance(value, UnitVal):
        return 'Unit'
    return type(value).__name__


def check_value(value: Any, spec: TypeSpec) -> bool:
    """Check whether a runtime value matches a type specification.

    Returns True on a match. Otherwise raises a TypeError (not a Till error)
    with a descriptive message; the caller turns it into a Till error.
    """
    if spec.kind not in PRIMITIVE_KINDS:
        raise TypeError(f"unknown type {spec}")
    actual = type_name(value)
    if actual != spec.kind:
        raise TypeError(f"expected {spec}, got {actual}")
    return True


def default_value(spec: TypeSpec) -> Any:
    """Zero value bound by a declaration without an initializer."""
    kind = spec.kind
    if kind == 'Num':
        return 0.0
    if kind == 'Char':
        return CharVal('\0')
    if kind == 'Bool':
        return False
    if kind == 'Str':
        return ''
    raise TypeError(f"unknown type {spec}")


def format_number(value: float) -> str:
    """Shortest text for a number: integral values have no fractional part."""
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if 'e' in text:
        # positional notation keeps the text lexable as a Till literal
        text = format(Decimal(text), 'f')
    return text


def to_string(value: Any) -> str:
    """Convert a Till value to the text `display` prints for it."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, CharVal):
        return value.char
    if isinstance(value, str):
        return value
    if isinstance(value, UnitVal):
        return 'unit'
    return str(value)
