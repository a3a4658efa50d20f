"""Interpreter for the Till language.

This module holds the tree-walking interpreter and the pipeline helpers that
take source text all the way to execution:

    source -> tokenize -> parse -> TypeChecker -> Interpreter

Every phase fails fast with its own `TillError` subclass, and a later phase
never runs on the output of a phase that failed. Once a program has passed
the type checker the only errors left are genuine runtime faults such as
division by zero; the dynamic checks kept here guard programs that are run
without checking, for instance ASTs loaded from JSON.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional

from .ast import (
    Program, Block, VarDecl, Param, FunctionDecl, IfStmt, WhileStmt,
    Assignment, ReturnStmt, DisplayStmt, BinaryExpr, UnaryExpr, Literal,
    Identifier, Call, Node,
)
from .checker import TypeChecker
from .environment import Environment
from .errors import ReturnSignal, TillRuntimeError
from .grammar import parse_with_lark
from .parser import parse_program
from .types import UNIT, CharVal, TypeSpec, check_value, to_string, type_name


class FunctionValue:
    """Represents a user-defined Till function."""
    def __init__(self, name: str, params: List[Param], return_type: Optional[TypeSpec], body: Block, scope: int):
        self.name = name
        self.params = params
        self.return_type = return_type
        self.body = body
        self.scope = scope  # handle of the defining scope

    def __repr__(self) -> str:
        return f"<function {self.name}>"


class Interpreter:
    """Core interpreter that executes a Till AST."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 output: Optional[Callable[[str], Any]] = None):
        self.env = Environment()
        self.output = output if output is not None else print
        self.displayed: List[str] = []
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    # Public API
    def run(self, program: Program) -> None:
        try:
            self.execute_block(program.body, Environment.GLOBAL)
        except ReturnSignal:
            raise TillRuntimeError("'return' outside of a function")
        except RecursionError:
            raise TillRuntimeError('call stack exhausted')
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def execute_block(self, statements: List[Node], scope: int) -> None:
        for stmt in statements:
            self.execute(stmt, scope)

    def execute(self, node: Node, scope: int) -> None:
        if isinstance(node, VarDecl):
            value = self.evaluate(node.initializer, scope) if node.initializer is not None else None
            self.env.declare(scope, node.name, node.type_spec, value)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name}: {node.type_spec!r} = {self.env.get(scope, node.name)!r}")
            return
        if isinstance(node, Assignment):
            value = self.evaluate(node.value, scope)
            self.env.set(scope, node.name, value)
            if self.debug_level >= 2:
                self.debug(f"assign {node.name} = {value!r}")
            return
        if isinstance(node, FunctionDecl):
            func_value = FunctionValue(node.name, node.params, node.return_type, node.body, scope)
            self.env.declare_function(scope, node.name, func_value)
            if self.debug_level >= 2:
                self.debug(f"define function {node.name}")
            return
        if isinstance(node, IfStmt):
            cond = self.condition(node.condition, scope)
            if self.debug_level >= 3:
                self.debug(f"if condition -> {to_string(cond)}")
            if cond:
                with self.env.child(scope) as body_scope:
                    self.execute_block(node.body.statements, body_scope)
            return
        if isinstance(node, WhileStmt):
            while True:
                cond = self.condition(node.condition, scope)
                if self.debug_level >= 3:
                    self.debug(f"while condition -> {to_string(cond)}")
                if not cond:
                    break
                with self.env.child(scope) as body_scope:
                    self.execute_block(node.body.statements, body_scope)
            return
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.value, scope) if node.value is not None else UNIT
            raise ReturnSignal(value)
        if isinstance(node, DisplayStmt):
            text = to_string(self.evaluate(node.value, scope))
            if self.debug_level >= 1:
                self.debug(f"display {text!r}")
            self.displayed.append(text)
            self.output(text)
            return
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def condition(self, node: Node, scope: int) -> bool:
        value = self.evaluate(node, scope)
        if not isinstance(value, bool):
            raise TillRuntimeError(f'condition must be Bool, got {type_name(value)}', node.position)
        return value

    def evaluate(self, node: Node, scope: int) -> Any:
        # Evaluate expression nodes
        if isinstance(node, Literal):
            if node.kind == 'Num':
                return float(node.value)
            if node.kind == 'Char':
                return CharVal(node.value)
            return node.value
        if isinstance(node, Identifier):
            value = self.env.get(scope, node.name)
            if isinstance(value, FunctionValue):
                raise TillRuntimeError(f'function {node.name} cannot be used as a value', node.position)
            return value
        if isinstance(node, UnaryExpr):
            operand = self.evaluate(node.operand, scope)
            if node.op == '!':
                if not isinstance(operand, bool):
                    raise TillRuntimeError(f"'!' expects Bool, got {type_name(operand)}", node.position)
                return not operand
            if node.op == '~':
                if type_name(operand) != 'Num':
                    raise TillRuntimeError(f"'~' expects Num, got {type_name(operand)}", node.position)
                return -operand
            raise TillRuntimeError(f'unsupported unary operator {node.op}', node.position)
        if isinstance(node, BinaryExpr):
            # left-deep chains are folded in a loop, operands still left to right
            spine: List[BinaryExpr] = []
            current = node
            while isinstance(current, BinaryExpr):
                spine.append(current)
                current = current.left
            value = self.evaluate(current, scope)
            for binary in reversed(spine):
                value = self.apply_binary_op(binary, value, self.evaluate(binary.right, scope))
            return value
        if isinstance(node, Call):
            func = self.env.get(scope, node.callee)
            # arguments are evaluated left to right before the call scope exists
            args = [self.evaluate(arg, scope) for arg in node.args]
            return self.call_function(func, args, node)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def call_function(self, func: Any, args: List[Any], call: Call) -> Any:
        if not isinstance(func, FunctionValue):
            raise TillRuntimeError(f'{call.callee} is not a function', call.position)
        if len(args) != len(func.params):
            raise TillRuntimeError(f"{func.name} expects {len(func.params)} arguments", call.position)
        if self.debug_level >= 1:
            self.debug(f"call {func.name}({', '.join(to_string(a) for a in args)})")
        # Create new scope for call; closure's scope is parent
        with self.env.child(func.scope) as call_scope:
            for param, arg in zip(func.params, args):
                self.env.declare(call_scope, param.name, param.type_spec, arg)
            try:
                self.execute_block(func.body.statements, call_scope)
                ret_val = UNIT
            except ReturnSignal as r:
                ret_val = r.value
        # Check return type
        if func.return_type is None:
            return UNIT
        if ret_val is UNIT:
            raise TillRuntimeError(f'function {func.name} finished without returning a value', call.position)
        try:
            check_value(ret_val, func.return_type)
        except TypeError as e:
            raise TillRuntimeError(f'return type mismatch in function {func.name}: {e}', call.position)
        return ret_val

    def apply_binary_op(self, node: BinaryExpr, a: Any, b: Any) -> Any:
        op = node.op
        if op == '==':
            return type_name(a) == type_name(b) and a == b
        if type_name(a) != 'Num' or type_name(b) != 'Num':
            raise TillRuntimeError(f'unsupported {op} for {type_name(a)} and {type_name(b)}', node.position)
        if op == '+':
            return a + b
        if op == '-':
            return a - b
        if op == '*':
            return a * b
        if op == '/':
            if b == 0:
                raise TillRuntimeError('division by zero', node.position)
            return a / b
        if op == '<':
            return a < b
        if op == '>':
            return a > b
        raise TillRuntimeError(f'unsupported binary operator {op}', node.position)


###############################################################################
# Pipeline
###############################################################################

FRONTENDS = ('descent', 'lark')


def parse_source(source: str, frontend: str = 'descent') -> Program:
    """Lex and parse source text with the chosen front end."""
    if frontend == 'descent':
        return parse_program(source)
    if frontend == 'lark':
        return parse_with_lark(source)
    raise ValueError(f"unknown frontend {frontend!r}; expected one of {FRONTENDS}")


def compile_program(source: str, frontend: str = 'descent') -> Program:
    """Lex, parse and type check source text, returning the checked AST."""
    program = parse_source(source, frontend)
    return TypeChecker().check(program)


def run_program(source: str, output: Optional[Callable[[str], Any]] = None,
                debug_level: int = 0, frontend: str = 'descent') -> List[str]:
    """Compile and execute a program, returning the lines it displayed.

    Each line is also passed to `output` (``print`` by default) as soon as it
    is displayed, so output produced before a runtime error is not lost.
    """
    program = compile_program(source, frontend)
    interpreter = Interpreter(debug_level=debug_level, output=output)
    interpreter.run(program)
    return interpreter.displayed
