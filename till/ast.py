"""Abstract Syntax Tree (AST) definitions for the Till language.

The AST classes defined in this module represent the syntactic structure
of parsed Till programs. Both parsers produce them, the type checker and the
interpreter read them, and neither mutates them. Each node records where it
came from in `position`; positions are left out of equality so that two
parses of equivalent source compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .errors import Position
from .types import TypeSpec


@dataclass
class Node:
    """Base class for all AST nodes."""
    position: Optional[Position] = field(default=None, compare=False, repr=False, kw_only=True)


@dataclass
class Program(Node):
    body: List[Node]


@dataclass
class Block(Node):
    statements: List[Node]


@dataclass
class VarDecl(Node):
    type_spec: TypeSpec
    name: str
    initializer: Optional[Node]


@dataclass
class Param(Node):
    type_spec: TypeSpec
    name: str


@dataclass
class FunctionDecl(Node):
    name: str
    params: List[Param]
    return_type: Optional[TypeSpec]
    body: Block


@dataclass
class IfStmt(Node):
    condition: Node
    body: Block


@dataclass
class WhileStmt(Node):
    condition: Node
    body: Block


@dataclass
class Assignment(Node):
    name: str
    value: Node


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]


@dataclass
class DisplayStmt(Node):
    value: Node


@dataclass
class BinaryExpr(Node):
    op: str
    left: Node
    right: Node


@dataclass
class UnaryExpr(Node):
    op: str
    operand: Node


@dataclass
class Literal(Node):
    value: Any
    kind: str  # 'Num', 'Char', 'Bool', 'Str'


@dataclass
class Identifier(Node):
    name: str


@dataclass
class Call(Node):
    callee: str
    args: List[Node]
