"""Grammar-driven parser for the Till language.

This module describes Till a second time, as a Lark LALR grammar, and is
used to cross-check the hand written recursive-descent parser in
:mod:`till.parser`. The two share the tokenizer: a custom Lark lexer runs
:func:`till.lexer.tokenize` and renames each token to the terminal the
grammar expects, so indentation is handled in exactly one place. Keywords
and punctuation whose only role is structural are given terminal names
starting with an underscore, which makes Lark drop them from the tree.

The resulting parse tree is transformed into the same AST classes the
recursive-descent parser builds; `parse_with_lark` and
`till.parser.parse_program` return equal trees for every valid program.
"""

from __future__ import annotations

from typing import Iterator, List

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput, UnexpectedToken
from lark.lexer import Lexer

from .ast import (
    Program, Block, VarDecl, Param, FunctionDecl, IfStmt, WhileStmt,
    Assignment, ReturnStmt, DisplayStmt, BinaryExpr, UnaryExpr, Literal,
    Identifier, Call,
)
from .errors import ParseError, Position
from .lexer import (
    NAME, NUMBER, STRING, CHAR, BOOL, NEWLINE, INDENT, DEDENT, EOF,
    decode_literal, tokenize,
)
from .types import TypeSpec


TILL_GRAMMAR = r"""
    start: _statement*

    _statement: _simple_stmt _NEWLINE
              | _compound_stmt

    _simple_stmt: var_decl
                | assignment
                | return_stmt
                | display_stmt

    _compound_stmt: if_stmt
                  | while_stmt
                  | func_decl

    var_decl: NAME NAME (_ASSIGN expr)?
    assignment: NAME _ASSIGN expr
    return_stmt: RETURN expr?
    display_stmt: DISPLAY expr

    if_stmt: IF expr block
    while_stmt: WHILE expr block

    func_decl: NAME _LPAR params? _RPAR return_type? block
    params: param (_COMMA param)*
    param: NAME NAME
    return_type: _ARROW NAME

    block: _NEWLINE _INDENT _statement+ _DEDENT

    // Expressions with precedence
    ?expr: equality
    ?equality: relational (EQ relational)*
    ?relational: additive (REL_OP additive)*
    ?additive: multiplicative (ADD_OP multiplicative)*
    ?multiplicative: unary (MUL_OP unary)*
    ?unary: UNARY_OP unary -> unary_op
          | primary
    ?primary: NUMBER -> number
            | STRING -> string
            | CHAR -> char
            | TRUE -> true
            | FALSE -> false
            | NAME _LPAR args? _RPAR -> call
            | NAME -> identifier
            | _LPAR expr _RPAR
    args: expr (_COMMA expr)*

    // Tokens are produced by till.lexer
    %declare NAME NUMBER STRING CHAR TRUE FALSE
    %declare IF WHILE RETURN DISPLAY
    %declare EQ REL_OP ADD_OP MUL_OP UNARY_OP
    %declare _LPAR _RPAR _COMMA _ARROW _ASSIGN
    %declare _NEWLINE _INDENT _DEDENT
"""

# Grammar terminal for each keyword / operator lexeme
TERMINALS = {
    'if': 'IF',
    'while': 'WHILE',
    'return': 'RETURN',
    'display': 'DISPLAY',
    '==': 'EQ',
    '<': 'REL_OP',
    '>': 'REL_OP',
    '+': 'ADD_OP',
    '-': 'ADD_OP',
    '*': 'MUL_OP',
    '/': 'MUL_OP',
    '!': 'UNARY_OP',
    '~': 'UNARY_OP',
    '(': '_LPAR',
    ')': '_RPAR',
    ',': '_COMMA',
    '->': '_ARROW',
    '=': '_ASSIGN',
}

STRUCTURAL = {
    NEWLINE: '_NEWLINE',
    INDENT: '_INDENT',
    DEDENT: '_DEDENT',
}

# Reverse mapping used to describe what the grammar expected
DESCRIPTIONS = {
    'IF': "'if'",
    'WHILE': "'while'",
    'RETURN': "'return'",
    'DISPLAY': "'display'",
    'EQ': "'=='",
    'REL_OP': "'<' or '>'",
    'ADD_OP': "'+' or '-'",
    'MUL_OP': "'*' or '/'",
    'UNARY_OP': "'!' or '~'",
    '_LPAR': "'('",
    '_RPAR': "')'",
    '_COMMA': "','",
    '_ARROW': "'->'",
    '_ASSIGN': "'='",
    '_NEWLINE': 'end of line',
    '_INDENT': 'indented block',
    '_DEDENT': 'dedent',
    'TRUE': "'true'",
    'FALSE': "'false'",
    '$END': 'end of input',
}


def grammar_terminal(token: Token) -> str:
    """Name of the grammar terminal a till.lexer token stands for."""
    if token.type in STRUCTURAL:
        return STRUCTURAL[token.type]
    if token.type == BOOL:
        return token.value.upper()
    if token.type in (NAME, NUMBER, STRING, CHAR):
        return token.type
    return TERMINALS[token.value]


class TillLarkLexer(Lexer):
    """Feeds the tokens of till.lexer to Lark under the grammar's terminal names."""

    def __init__(self, lexer_conf):
        pass

    def lex(self, data: str) -> Iterator[Token]:
        for token in tokenize(data):
            if token.type == EOF:
                break
            yield Token.new_borrow_pos(grammar_terminal(token), token.value, token)


TILL_PARSER = Lark(
    TILL_GRAMMAR,
    parser='lalr',
    lexer=TillLarkLexer,
    maybe_placeholders=False,
)


def position_of(token: Token) -> Position:
    return Position(token.line, token.column)


def fold_binary(items) -> BinaryExpr:
    # items pattern: expr (op expr)*; rebuild left-associatively
    left = items[0]
    i = 1
    while i < len(items):
        op = items[i]
        right = items[i + 1]
        left = BinaryExpr(str(op), left, right, position=position_of(op))
        i += 2
    return left


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def start(self, items):
        return Program(list(items), position=Position(1, 1))

    def block(self, items):
        return Block(list(items), position=items[0].position)

    def var_decl(self, items):
        type_token, name_token = items[0], items[1]
        initializer = items[2] if len(items) > 2 else None
        return VarDecl(TypeSpec(str(type_token)), str(name_token), initializer,
                       position=position_of(type_token))

    def assignment(self, items):
        name_token, value = items
        return Assignment(str(name_token), value, position=position_of(name_token))

    def return_stmt(self, items):
        value = items[1] if len(items) > 1 else None
        return ReturnStmt(value, position=position_of(items[0]))

    def display_stmt(self, items):
        return DisplayStmt(items[1], position=position_of(items[0]))

    def if_stmt(self, items):
        keyword, condition, body = items
        return IfStmt(condition, body, position=position_of(keyword))

    def while_stmt(self, items):
        keyword, condition, body = items
        return WhileStmt(condition, body, position=position_of(keyword))

    def func_decl(self, items):
        name_token = items[0]
        params: List[Param] = []
        return_type = None
        for item in items[1:-1]:
            if isinstance(item, list):
                params = item
            elif isinstance(item, TypeSpec):
                return_type = item
        return FunctionDecl(str(name_token), params, return_type, items[-1],
                            position=position_of(name_token))

    def params(self, items):
        return list(items)

    def param(self, items):
        type_token, name_token = items
        return Param(TypeSpec(str(type_token)), str(name_token), position=position_of(type_token))

    def return_type(self, items):
        return TypeSpec(str(items[0]))

    # Expressions
    def equality(self, items):
        return fold_binary(items)

    def relational(self, items):
        return fold_binary(items)

    def additive(self, items):
        return fold_binary(items)

    def multiplicative(self, items):
        return fold_binary(items)

    def unary_op(self, items):
        op, operand = items
        return UnaryExpr(str(op), operand, position=position_of(op))

    def number(self, items):
        token = items[0]
        return Literal(float(token), 'Num', position=position_of(token))

    def string(self, items):
        token = items[0]
        return Literal(decode_literal(str(token)), 'Str', position=position_of(token))

    def char(self, items):
        token = items[0]
        return Literal(decode_literal(str(token)), 'Char', position=position_of(token))

    def true(self, items):
        return Literal(True, 'Bool', position=position_of(items[0]))

    def false(self, items):
        return Literal(False, 'Bool', position=position_of(items[0]))

    def identifier(self, items):
        token = items[0]
        return Identifier(str(token), position=position_of(token))

    def call(self, items):
        name_token = items[0]
        args = items[1] if len(items) > 1 else []
        return Call(str(name_token), args, position=position_of(name_token))

    def args(self, items):
        return list(items)


def describe_expected(expected) -> str:
    names = sorted({DESCRIPTIONS.get(name, name.lower()) for name in expected})
    return ' or '.join(names) if names else 'nothing'


def describe_found(token: Token) -> str:
    if token.type in DESCRIPTIONS and token.type.startswith(('_', '$')):
        return DESCRIPTIONS[token.type]
    return repr(token.value)


def parse_with_lark(source: str) -> Program:
    """Parse Till source code into a Program AST using the Lark grammar.

    Lexical errors surface as `LexError` exactly as with the recursive-descent
    parser; grammar mismatches are converted into `ParseError`.
    """
    try:
        tree = TILL_PARSER.parse(source)
    except UnexpectedToken as e:
        token = e.token
        position = None
        if isinstance(getattr(token, 'line', None), int) and token.line > 0:
            position = position_of(token)
        raise ParseError(describe_expected(e.expected), describe_found(token), position) from e
    except UnexpectedInput as e:
        raise ParseError('valid syntax', 'unexpected input', None) from e
    try:
        return ASTTransformer().transform(tree)
    except RecursionError:
        raise ParseError("less deeply nested expression", "too many nested levels", None) from None
