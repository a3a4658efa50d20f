from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Position:
    """1-based line and column of a token or node in the source text."""
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class TillError(Exception):
    """Base class for every error the Till pipeline reports to its caller.

    Each phase raises its own subclass so callers can tell a lexical problem
    from a runtime fault, but all of them carry a `phase` name, a plain
    `reason` and, where one is known, the source `position`.
    """
    phase = 'Error'

    def __init__(self, reason: str, position: Optional[Position] = None):
        location = f" at {position}" if position is not None else ""
        super().__init__(f"{self.phase}: {reason}{location}")
        self.reason = reason
        self.position = position


class LexError(TillError):
    phase = 'LexError'


class ParseError(TillError):
    phase = 'ParseError'

    def __init__(self, expected: str, found: str, position: Optional[Position] = None):
        super().__init__(f"expected {expected}, found {found}", position)
        self.expected = expected
        self.found = found


class TypeCheckError(TillError):
    phase = 'TypeError'


class TillRuntimeError(TillError):
    phase = 'RuntimeError'


class ReturnSignal(Exception):
    """Internal exception to handle return statements in functions."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value
