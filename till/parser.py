"""Recursive-descent parser for the Till language.

The parser consumes the token list produced by :mod:`till.lexer` strictly
left to right with one token of lookahead (two when telling the three kinds
of identifier-led statement apart). Statements are dispatched on their first
token; expressions use one left-associative loop per precedence layer:

    expression     := equality
    equality       := relational ("==" relational)*
    relational     := additive (("<" | ">") additive)*
    additive       := multiplicative (("+" | "-") multiplicative)*
    multiplicative := unary (("*" | "/") unary)*
    unary          := ("!" | "~") unary | primary
    primary        := NUMBER | STRING | CHAR | BOOL
                    | NAME "(" [expression ("," expression)*] ")"
                    | NAME
                    | "(" expression ")"

There is no expression statement, so a bare call at statement level is a
syntax error: an identifier followed by "(" always starts a function
declaration.
"""

from __future__ import annotations

from typing import List, Union

from lark import Token

from .ast import (
    Program, Block, VarDecl, Param, FunctionDecl, IfStmt, WhileStmt,
    Assignment, ReturnStmt, DisplayStmt, BinaryExpr, UnaryExpr, Literal,
    Identifier, Call, Node,
)
from .errors import ParseError, Position
from .lexer import (
    NAME, NUMBER, STRING, CHAR, BOOL, KEYWORD, OP, NEWLINE, INDENT, DEDENT, EOF,
    decode_literal, tokenize,
)
from .types import TypeSpec


def describe(token: Token) -> str:
    """Human readable name of a token for error messages."""
    if token.type == NEWLINE:
        return 'end of line'
    if token.type == INDENT:
        return 'indent'
    if token.type == DEDENT:
        return 'dedent'
    if token.type == EOF:
        return 'end of input'
    return repr(token.value)


def position_of(token: Token) -> Position:
    return Position(token.line, token.column)


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    @staticmethod
    def _is(token: Token, expected: str) -> bool:
        # keywords and operators are matched by text, everything else by kind
        if token.type == expected:
            return True
        return token.type in (KEYWORD, OP) and token.value == expected

    def match(self, expected: Union[str, List[str]], offset: int = 0) -> bool:
        token = self.peek(offset)
        if isinstance(expected, list):
            return any(self._is(token, e) for e in expected)
        return self._is(token, expected)

    def consume(self, expected: Union[str, List[str]], description: str = '') -> Token:
        token = self.peek()
        if not self.match(expected):
            if not description:
                description = ' or '.join(expected) if isinstance(expected, list) else expected
            raise ParseError(description, describe(token), position_of(token))
        self.pos += 1
        return token

    def parse_program(self) -> Program:
        statements: List[Node] = []
        while not self.match(EOF):
            statements.append(self.parse_statement())
        return Program(statements, position=Position(1, 1))

    def parse_statement(self) -> Node:
        start = self.peek()
        try:
            return self.dispatch_statement()
        except RecursionError:
            raise ParseError("less deeply nested expression", "too many nested levels",
                             position_of(start)) from None

    def dispatch_statement(self) -> Node:
        token = self.peek()
        if self.match('if'):
            return self.parse_if_stmt()
        if self.match('while'):
            return self.parse_while_stmt()
        if self.match('return'):
            return self.parse_return_stmt()
        if self.match('display'):
            return self.parse_display_stmt()
        if token.type == NAME:
            following = self.peek(1)
            if self.match('(', offset=1):
                return self.parse_function_decl()
            if following.type == NAME:
                return self.parse_var_decl()
            if self.match('=', offset=1):
                return self.parse_assignment()
            raise ParseError("a declaration or assignment after identifier",
                             describe(following), position_of(following))
        raise ParseError('statement', describe(token), position_of(token))

    def end_simple_statement(self) -> None:
        # the last statement of a block or of the file needs no separator
        if self.match([DEDENT, EOF]):
            return
        self.consume(NEWLINE, 'end of line')

    def parse_block(self) -> Block:
        self.consume(NEWLINE, 'end of line before block')
        self.consume(INDENT, 'indented block')
        start = self.peek()
        statements: List[Node] = []
        while not self.match([DEDENT, EOF]):
            statements.append(self.parse_statement())
        if not statements:
            raise ParseError('statement', describe(self.peek()), position_of(self.peek()))
        self.consume(DEDENT, 'dedent')
        return Block(statements, position=position_of(start))

    def parse_type(self) -> TypeSpec:
        token = self.consume(NAME, 'type identifier')
        return TypeSpec(token.value)

    def parse_var_decl(self) -> VarDecl:
        start = self.peek()
        type_spec = self.parse_type()
        name_token = self.consume(NAME, 'variable name')
        initializer = None
        if self.match('='):
            self.consume('=')
            initializer = self.parse_expression()
        self.end_simple_statement()
        return VarDecl(type_spec, name_token.value, initializer, position=position_of(start))

    def parse_assignment(self) -> Assignment:
        name_token = self.consume(NAME)
        self.consume('=')
        value = self.parse_expression()
        self.end_simple_statement()
        return Assignment(name_token.value, value, position=position_of(name_token))

    def parse_function_decl(self) -> FunctionDecl:
        name_token = self.consume(NAME)
        self.consume('(')
        params: List[Param] = []
        if not self.match(')'):
            params = self.parse_param_list()
        self.consume(')')
        return_type = None
        if self.match('->'):
            self.consume('->')
            return_type = self.parse_type()
        body = self.parse_block()
        return FunctionDecl(name_token.value, params, return_type, body, position=position_of(name_token))

    def parse_param_list(self) -> List[Param]:
        params: List[Param] = []
        while True:
            start = self.peek()
            type_spec = self.parse_type()
            name_token = self.consume(NAME, 'parameter name')
            params.append(Param(type_spec, name_token.value, position=position_of(start)))
            if not self.match(','):
                break
            self.consume(',')
        return params

    def parse_if_stmt(self) -> IfStmt:
        keyword = self.consume('if')
        condition = self.parse_expression()
        body = self.parse_block()
        return IfStmt(condition, body, position=position_of(keyword))

    def parse_while_stmt(self) -> WhileStmt:
        keyword = self.consume('while')
        condition = self.parse_expression()
        body = self.parse_block()
        return WhileStmt(condition, body, position=position_of(keyword))

    def parse_return_stmt(self) -> ReturnStmt:
        keyword = self.consume('return')
        if self.match([NEWLINE, DEDENT, EOF]):
            self.end_simple_statement()
            return ReturnStmt(None, position=position_of(keyword))
        value = self.parse_expression()
        self.end_simple_statement()
        return ReturnStmt(value, position=position_of(keyword))

    def parse_display_stmt(self) -> DisplayStmt:
        keyword = self.consume('display')
        value = self.parse_expression()
        self.end_simple_statement()
        return DisplayStmt(value, position=position_of(keyword))

    # Expression parsing (precedence climbing)
    def parse_expression(self) -> Node:
        return self.parse_equality()

    def parse_binary_layer(self, operators: List[str], operand) -> Node:
        node = operand()
        while self.match(operators):
            op_token = self.consume(operators)
            right = operand()
            node = BinaryExpr(op_token.value, node, right, position=position_of(op_token))
        return node

    def parse_equality(self) -> Node:
        return self.parse_binary_layer(['=='], self.parse_relational)

    def parse_relational(self) -> Node:
        return self.parse_binary_layer(['<', '>'], self.parse_additive)

    def parse_additive(self) -> Node:
        return self.parse_binary_layer(['+', '-'], self.parse_multiplicative)

    def parse_multiplicative(self) -> Node:
        return self.parse_binary_layer(['*', '/'], self.parse_unary)

    def parse_unary(self) -> Node:
        if self.match(['!', '~']):
            op_token = self.consume(['!', '~'])
            operand = self.parse_unary()
            return UnaryExpr(op_token.value, operand, position=position_of(op_token))
        return self.parse_primary()

    def parse_primary(self) -> Node:
        token = self.peek()
        position = position_of(token)
        if token.type == NUMBER:
            self.consume(NUMBER)
            return Literal(float(token.value), 'Num', position=position)
        if token.type == STRING:
            self.consume(STRING)
            return Literal(decode_literal(token.value), 'Str', position=position)
        if token.type == CHAR:
            self.consume(CHAR)
            return Literal(decode_literal(token.value), 'Char', position=position)
        if token.type == BOOL:
            self.consume(BOOL)
            return Literal(token.value == 'true', 'Bool', position=position)
        if token.type == NAME:
            self.consume(NAME)
            if self.match('('):
                return Call(token.value, self.parse_arguments(), position=position)
            return Identifier(token.value, position=position)
        if self.match('('):
            self.consume('(')
            expr = self.parse_expression()
            self.consume(')')
            return expr
        raise ParseError('expression', describe(token), position)

    def parse_arguments(self) -> List[Node]:
        self.consume('(')
        args: List[Node] = []
        if not self.match(')'):
            args.append(self.parse_expression())
            while self.match(','):
                self.consume(',')
                args.append(self.parse_expression())
        self.consume(')')
        return args


def parse(tokens: List[Token]) -> Program:
    """Parse a token list produced by `tokenize` into a Program AST."""
    return Parser(tokens).parse_program()


def parse_program(source: str) -> Program:
    """Parse Till source code into a Program AST with the custom parser."""
    return parse(tokenize(source))
