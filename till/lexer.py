"""Tokenizer for the Till language.

Till delimits blocks by indentation, so the lexer rather than the parser is
responsible for block structure. Source text is scanned one physical line at
a time. For every line that starts a new logical line, the width of its
leading whitespace is compared with an explicit indentation stack:

* wider than the top of the stack: push the width and emit ``INDENT``;
* narrower: pop and emit one ``DEDENT`` per level until the top is not wider,
  which must leave the width exactly on the stack (otherwise the dedent is
  inconsistent and a `LexError` is raised);
* equal: nothing.

Blank and whitespace-only lines produce no tokens at all. Every non-blank
logical line ends with exactly one ``NEWLINE``, and at the end of input one
``DEDENT`` is emitted for each level still open, followed by ``EOF``.

A line break inside parentheses does not end the logical line; the following
line is a continuation and its indentation is ignored.

Tokens are `lark.Token` objects so the same stream can drive the grammar
parser in :mod:`till.grammar`.
"""

from __future__ import annotations

from typing import List

from lark import Token

from .errors import LexError, Position

# Token kinds
NAME = 'NAME'
NUMBER = 'NUMBER'
STRING = 'STRING'
CHAR = 'CHAR'
BOOL = 'BOOL'
KEYWORD = 'KEYWORD'
OP = 'OP'
NEWLINE = 'NEWLINE'
INDENT = 'INDENT'
DEDENT = 'DEDENT'
EOF = 'EOF'

KEYWORDS = {'if', 'while', 'return', 'display'}
BOOLEANS = {'true', 'false'}

TWO_CHAR_OPS = {'==', '->'}
SINGLE_CHAR_OPS = {'<', '>', '+', '-', '*', '/', '!', '~', '=', '(', ')', ','}

# Escape sequences accepted inside string and character literals
ESCAPES = {
    'n': '\n',
    't': '\t',
    '0': '\0',
    '\\': '\\',
    '"': '"',
    '\'': '\'',
}


def is_digit(c: str) -> bool:
    # ASCII only: str.isdigit also accepts superscripts and other scripts' digits
    return '0' <= c <= '9'


def decode_literal(raw: str) -> str:
    """Strip the quotes from a STRING or CHAR lexeme and resolve its escapes.

    The lexer has already validated the escapes, so this never fails on a
    lexeme it produced.
    """
    body = raw[1:-1]
    chars: List[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c == '\\':
            chars.append(ESCAPES[body[i + 1]])
            i += 2
            continue
        chars.append(c)
        i += 1
    return ''.join(chars)


class Lexer:
    """Converts Till source text into a list of tokens."""

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Token] = []
        self.indents: List[int] = [0]
        self.depth = 0  # parenthesis nesting
        self.offset = 0  # offset of the current line in the source

    def tokenize(self) -> List[Token]:
        lines = self.source.split('\n')
        line_no = 0
        for line_no, line in enumerate(lines, start=1):
            length = len(line) + 1
            if line.endswith('\r'):
                line = line[:-1]
            continuation = self.depth > 0
            if not line.strip(' \t'):
                self.offset += length
                continue
            start = 0
            if not continuation:
                start = self.measure_indent(line, line_no)
                self.change_indent(start, line_no)
            self.scan_line(line, line_no, start)
            if self.depth == 0:
                self.emit(NEWLINE, '', line_no, len(line) + 1)
            self.offset += length
        # close the open logical line of an unbalanced '(' so the parser
        # reports the missing ')' rather than a missing newline
        if self.depth > 0:
            self.emit(NEWLINE, '', line_no, len(lines[-1]) + 1)
        end_line = max(line_no, 1)
        end_column = len(lines[-1]) + 1
        while len(self.indents) > 1:
            self.indents.pop()
            self.emit(DEDENT, '', end_line, end_column)
        self.emit(EOF, '', end_line, end_column)
        return self.tokens

    def emit(self, kind: str, value: str, line: int, column: int) -> None:
        self.tokens.append(Token(kind, value, start_pos=self.offset + column - 1, line=line, column=column))

    def measure_indent(self, line: str, line_no: int) -> int:
        width = 0
        for c in line:
            if c == ' ':
                width += 1
            elif c == '\t':
                raise LexError("tab character in indentation", Position(line_no, width + 1))
            else:
                break
        return width

    def change_indent(self, width: int, line_no: int) -> None:
        column = width + 1
        if width > self.indents[-1]:
            self.indents.append(width)
            self.emit(INDENT, '', line_no, column)
            return
        while width < self.indents[-1]:
            self.indents.pop()
            self.emit(DEDENT, '', line_no, column)
        if width != self.indents[-1]:
            raise LexError(
                f"inconsistent dedent: column {column} matches no enclosing indentation level",
                Position(line_no, column),
            )

    def scan_line(self, line: str, line_no: int, start: int) -> None:
        i = start
        length = len(line)
        while i < length:
            c = line[i]
            column = i + 1
            if c == ' ':
                i += 1
                continue
            if c == '\t':
                raise LexError("tab characters are not allowed", Position(line_no, column))
            # Identifiers, keywords and boolean literals
            if c.isalpha() or c == '_':
                j = i
                while j < length and (line[j].isalnum() or line[j] == '_'):
                    j += 1
                word = line[i:j]
                if word in KEYWORDS:
                    kind = KEYWORD
                elif word in BOOLEANS:
                    kind = BOOL
                else:
                    kind = NAME
                self.emit(kind, word, line_no, column)
                i = j
                continue
            # Numbers: digits with an optional fractional part
            if is_digit(c):
                j = i
                while j < length and is_digit(line[j]):
                    j += 1
                if j + 1 < length and line[j] == '.' and is_digit(line[j + 1]):
                    j += 1
                    while j < length and is_digit(line[j]):
                        j += 1
                self.emit(NUMBER, line[i:j], line_no, column)
                i = j
                continue
            # String and character literals
            if c == '"' or c == '\'':
                i = self.scan_quoted(line, line_no, i)
                continue
            pair = line[i:i + 2]
            if pair in TWO_CHAR_OPS:
                self.emit(OP, pair, line_no, column)
                i += 2
                continue
            if c in SINGLE_CHAR_OPS:
                if c == '(':
                    self.depth += 1
                elif c == ')' and self.depth > 0:
                    self.depth -= 1
                self.emit(OP, c, line_no, column)
                i += 1
                continue
            raise LexError(f"unrecognized character {c!r}", Position(line_no, column))

    def scan_quoted(self, line: str, line_no: int, start: int) -> int:
        quote = line[start]
        what = 'string' if quote == '"' else 'character'
        chars = 0
        i = start + 1
        while i < len(line):
            ch = line[i]
            if ch == '\\':
                if i + 1 >= len(line):
                    break
                if line[i + 1] not in ESCAPES:
                    raise LexError(f"unknown escape sequence \\{line[i + 1]}", Position(line_no, i + 1))
                chars += 1
                i += 2
                continue
            if ch == quote:
                raw = line[start:i + 1]
                if quote == '\'':
                    if chars != 1:
                        raise LexError("character literal must hold exactly one character",
                                       Position(line_no, start + 1))
                    self.emit(CHAR, raw, line_no, start + 1)
                else:
                    self.emit(STRING, raw, line_no, start + 1)
                return i + 1
            chars += 1
            i += 1
        raise LexError(f"unterminated {what} literal", Position(line_no, start + 1))


def tokenize(source: str) -> List[Token]:
    """Convert source code into a list of tokens ending with EOF."""
    return Lexer(source).tokenize()
