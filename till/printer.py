"""Pretty-printer turning a Till AST back into source text.

The output is canonical: four spaces per block level, one statement per
line, single spaces around binary operators, and only the parentheses that
precedence and left associativity require. Parsing the printed text yields
an AST equal to the one printed.
"""

from __future__ import annotations

from typing import List

from .ast import (
    Program, Block, VarDecl, FunctionDecl, IfStmt, WhileStmt, Assignment,
    ReturnStmt, DisplayStmt, BinaryExpr, UnaryExpr, Literal, Identifier, Call,
    Node,
)
from .types import format_number

INDENT = '    '

PRECEDENCE = {
    '==': 1,
    '<': 2,
    '>': 2,
    '+': 3,
    '-': 3,
    '*': 4,
    '/': 4,
}
UNARY_PRECEDENCE = 5
ATOM_PRECEDENCE = 6

# characters written back as escape sequences
ESCAPED = {
    '\n': '\\n',
    '\t': '\\t',
    '\0': '\\0',
    '\\': '\\\\',
}


def quote(text: str, delimiter: str) -> str:
    chars = []
    for c in text:
        if c == delimiter:
            chars.append('\\' + c)
        else:
            chars.append(ESCAPED.get(c, c))
    return delimiter + ''.join(chars) + delimiter


def precedence(expr: Node) -> int:
    if isinstance(expr, BinaryExpr):
        return PRECEDENCE[expr.op]
    if isinstance(expr, UnaryExpr):
        return UNARY_PRECEDENCE
    if isinstance(expr, Literal) and expr.kind == 'Num' and expr.value < 0:
        return UNARY_PRECEDENCE
    return ATOM_PRECEDENCE


def format_literal(lit: Literal) -> str:
    if lit.kind == 'Num':
        if lit.value < 0:
            # there are no negative literals in the grammar
            return '~' + format_number(-float(lit.value))
        return format_number(float(lit.value))
    if lit.kind == 'Bool':
        return 'true' if lit.value else 'false'
    if lit.kind == 'Char':
        return quote(lit.value, '\'')
    return quote(lit.value, '"')


def format_expr(expr: Node) -> str:
    if isinstance(expr, Literal):
        return format_literal(expr)
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, Call):
        return f"{expr.callee}({', '.join(format_expr(a) for a in expr.args)})"
    if isinstance(expr, UnaryExpr):
        operand = format_expr(expr.operand)
        if precedence(expr.operand) < UNARY_PRECEDENCE:
            operand = f"({operand})"
        return f"{expr.op}{operand}"
    if isinstance(expr, BinaryExpr):
        level = PRECEDENCE[expr.op]
        left = format_expr(expr.left)
        if precedence(expr.left) < level:
            left = f"({left})"
        right = format_expr(expr.right)
        # left associative: an equal-precedence right operand needs grouping
        if precedence(expr.right) <= level:
            right = f"({right})"
        return f"{left} {expr.op} {right}"
    raise TypeError(f"cannot format expression {type(expr).__name__}")


def format_statement(stmt: Node, depth: int, lines: List[str]) -> None:
    pad = INDENT * depth
    if isinstance(stmt, VarDecl):
        text = f"{stmt.type_spec.kind} {stmt.name}"
        if stmt.initializer is not None:
            text += f" = {format_expr(stmt.initializer)}"
        lines.append(pad + text)
    elif isinstance(stmt, Assignment):
        lines.append(f"{pad}{stmt.name} = {format_expr(stmt.value)}")
    elif isinstance(stmt, ReturnStmt):
        if stmt.value is None:
            lines.append(pad + 'return')
        else:
            lines.append(f"{pad}return {format_expr(stmt.value)}")
    elif isinstance(stmt, DisplayStmt):
        lines.append(f"{pad}display {format_expr(stmt.value)}")
    elif isinstance(stmt, IfStmt):
        lines.append(f"{pad}if {format_expr(stmt.condition)}")
        format_block(stmt.body, depth + 1, lines)
    elif isinstance(stmt, WhileStmt):
        lines.append(f"{pad}while {format_expr(stmt.condition)}")
        format_block(stmt.body, depth + 1, lines)
    elif isinstance(stmt, FunctionDecl):
        params = ', '.join(f"{p.type_spec.kind} {p.name}" for p in stmt.params)
        header = f"{pad}{stmt.name}({params})"
        if stmt.return_type is not None:
            header += f" -> {stmt.return_type.kind}"
        lines.append(header)
        format_block(stmt.body, depth + 1, lines)
    else:
        raise TypeError(f"cannot format statement {type(stmt).__name__}")


def format_block(block: Block, depth: int, lines: List[str]) -> None:
    for stmt in block.statements:
        format_statement(stmt, depth, lines)


def format_program(program: Program) -> str:
    """Render a program as canonical Till source ending with a newline."""
    lines: List[str] = []
    for stmt in program.body:
        format_statement(stmt, 0, lines)
    return '\n'.join(lines) + '\n' if lines else ''
