"""Static type checker for Till programs.

The checker walks the AST once before execution with a chain of static
scopes that mirrors the runtime environment: one scope for the program, one
per function call (shared by the parameters and the body) and one per
`if`/`while` body. Each scope maps a name to its declared type, or to a
`FunctionType` for functions. The first violation raises `TypeCheckError`;
a program that passes needs no dynamic type checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .ast import (
    Program, Block, VarDecl, FunctionDecl, IfStmt, WhileStmt, Assignment,
    ReturnStmt, DisplayStmt, BinaryExpr, UnaryExpr, Literal, Identifier, Call,
    Node,
)
from .errors import TypeCheckError
from .types import PRIMITIVE_KINDS, FunctionType, TypeSpec

NUM = TypeSpec.num()
BOOL = TypeSpec.boolean()

ARITHMETIC_OPS = ('+', '-', '*', '/')
ORDERING_OPS = ('<', '>')


@dataclass
class StaticScope:
    parent: Optional['StaticScope'] = None
    names: Dict[str, Union[TypeSpec, FunctionType]] = field(default_factory=dict)

    def define(self, name: str, kind: Union[TypeSpec, FunctionType]) -> bool:
        if name in self.names:
            return False
        self.names[name] = kind
        return True

    def lookup(self, name: str) -> Optional[Union[TypeSpec, FunctionType]]:
        cur = self
        while cur:
            if name in cur.names:
                return cur.names[name]
            cur = cur.parent
        return None


class TypeChecker:
    def __init__(self):
        self.scope = StaticScope()
        self.function: Optional[FunctionDecl] = None

    def check(self, program: Program) -> Program:
        """Validate the whole program and hand it back unchanged."""
        self.check_statements(program.body)
        return program

    def error(self, reason: str, node: Node):
        raise TypeCheckError(reason, node.position)

    def push_scope(self) -> None:
        self.scope = StaticScope(parent=self.scope)

    def pop_scope(self) -> None:
        self.scope = self.scope.parent

    def check_statements(self, statements: List[Node]) -> None:
        for stmt in statements:
            try:
                self.check_statement(stmt)
            except RecursionError:
                raise TypeCheckError("expression is nested too deeply", stmt.position) from None

    def check_block(self, block: Block) -> None:
        self.push_scope()
        try:
            self.check_statements(block.statements)
        finally:
            self.pop_scope()

    def resolve_type(self, spec: TypeSpec, node: Node) -> TypeSpec:
        if not spec.is_primitive:
            self.error(f"unknown type '{spec.kind}'; expected one of {', '.join(PRIMITIVE_KINDS)}", node)
        return spec

    def declare(self, name: str, kind: Union[TypeSpec, FunctionType], node: Node) -> None:
        if not self.scope.define(name, kind):
            self.error(f"'{name}' is already declared in this scope", node)

    def require(self, expected: TypeSpec, got: TypeSpec, node: Node, context: str) -> None:
        if expected != got:
            self.error(f"{context} expected to be of type {expected!r}, but got {got!r}", node)

    def check_statement(self, stmt: Node) -> None:
        if isinstance(stmt, VarDecl):
            declared = self.resolve_type(stmt.type_spec, stmt)
            if stmt.initializer is not None:
                got = self.check_expr(stmt.initializer)
                self.require(declared, got, stmt.initializer, f"initializer of '{stmt.name}'")
            self.declare(stmt.name, declared, stmt)
        elif isinstance(stmt, Assignment):
            target = self.scope.lookup(stmt.name)
            if target is None:
                self.error(f"assignment to undeclared variable '{stmt.name}'", stmt)
            if isinstance(target, FunctionType):
                self.error(f"cannot assign to function '{stmt.name}'", stmt)
            got = self.check_expr(stmt.value)
            self.require(target, got, stmt.value, f"value assigned to '{stmt.name}'")
        elif isinstance(stmt, (IfStmt, WhileStmt)):
            what = 'if' if isinstance(stmt, IfStmt) else 'while'
            got = self.check_expr(stmt.condition)
            self.require(BOOL, got, stmt.condition, f"{what} condition")
            self.check_block(stmt.body)
        elif isinstance(stmt, FunctionDecl):
            self.check_function(stmt)
        elif isinstance(stmt, ReturnStmt):
            self.check_return(stmt)
        elif isinstance(stmt, DisplayStmt):
            self.check_expr(stmt.value)
        else:
            self.error(f"unexpected statement {type(stmt).__name__}", stmt)

    def check_function(self, fn: FunctionDecl) -> None:
        params = tuple(self.resolve_type(p.type_spec, p) for p in fn.params)
        return_type = None
        if fn.return_type is not None:
            return_type = self.resolve_type(fn.return_type, fn)
        # bound before the body so the function can call itself
        self.declare(fn.name, FunctionType(params, return_type), fn)

        enclosing = self.function
        self.function = fn
        self.push_scope()
        try:
            for param in fn.params:
                self.declare(param.name, param.type_spec, param)
            self.check_statements(fn.body.statements)
        finally:
            self.pop_scope()
            self.function = enclosing

        if return_type is not None and not any(isinstance(s, ReturnStmt) for s in fn.body.statements):
            self.error(f"function '{fn.name}' may finish without returning a {return_type!r} value", fn)

    def check_return(self, stmt: ReturnStmt) -> None:
        fn = self.function
        if fn is None:
            self.error("'return' outside of a function", stmt)
        if fn.return_type is None:
            if stmt.value is not None:
                self.error(f"function '{fn.name}' has no return type but returns a value", stmt)
            return
        if stmt.value is None:
            self.error(f"function '{fn.name}' must return a {fn.return_type!r} value", stmt)
        got = self.check_expr(stmt.value)
        self.require(fn.return_type, got, stmt.value, f"return value of '{fn.name}'")

    # ---------- Expression typing ----------
    def check_expr(self, expr: Node) -> TypeSpec:
        if isinstance(expr, Literal):
            return TypeSpec(expr.kind)

        if isinstance(expr, Identifier):
            found = self.scope.lookup(expr.name)
            if found is None:
                self.error(f"unknown identifier '{expr.name}'", expr)
            if isinstance(found, FunctionType):
                self.error(f"function '{expr.name}' cannot be used as a value", expr)
            return found

        if isinstance(expr, UnaryExpr):
            got = self.check_expr(expr.operand)
            if expr.op == '!':
                self.require(BOOL, got, expr.operand, "operand of '!'")
                return BOOL
            if expr.op == '~':
                self.require(NUM, got, expr.operand, "operand of '~'")
                return NUM
            self.error(f"unknown unary operator '{expr.op}'", expr)

        if isinstance(expr, BinaryExpr):
            # chains such as 1 + 2 + ... + n are left-deep; the left spine is walked in a loop
            spine: List[BinaryExpr] = []
            current = expr
            while isinstance(current, BinaryExpr):
                spine.append(current)
                current = current.left
            left = self.check_expr(current)
            for binary in reversed(spine):
                right = self.check_expr(binary.right)
                left = self.check_binary(binary, left, right)
            return left

        if isinstance(expr, Call):
            return self.check_call(expr)

        self.error(f"unexpected expression {type(expr).__name__}", expr)

    def check_binary(self, expr: BinaryExpr, left: TypeSpec, right: TypeSpec) -> TypeSpec:
        if expr.op in ARITHMETIC_OPS:
            self.require(NUM, left, expr.left, f"left operand of '{expr.op}'")
            self.require(NUM, right, expr.right, f"right operand of '{expr.op}'")
            return NUM
        if expr.op in ORDERING_OPS:
            self.require(NUM, left, expr.left, f"left operand of '{expr.op}'")
            self.require(NUM, right, expr.right, f"right operand of '{expr.op}'")
            return BOOL
        if expr.op == '==':
            self.require(left, right, expr.right, "right operand of '=='")
            return BOOL
        self.error(f"unknown binary operator '{expr.op}'", expr)

    def check_call(self, call: Call) -> TypeSpec:
        signature = self.scope.lookup(call.callee)
        if signature is None:
            self.error(f"call to undeclared function '{call.callee}'", call)
        if not isinstance(signature, FunctionType):
            self.error(f"'{call.callee}' is a variable, not a function", call)
        if len(call.args) != len(signature.params):
            self.error(
                f"function '{call.callee}' expects {len(signature.params)} arguments but got {len(call.args)}",
                call,
            )
        for i, (arg, expected) in enumerate(zip(call.args, signature.params), start=1):
            got = self.check_expr(arg)
            self.require(expected, got, arg, f"argument {i} of '{call.callee}'")
        if signature.return_type is None:
            self.error(f"function '{call.callee}' has no return value and cannot be used in an expression", call)
        return signature.return_type


def check(program: Program) -> Program:
    """Type check a program, raising `TypeCheckError` on the first violation."""
    return TypeChecker().check(program)
