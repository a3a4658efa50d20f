import glob
import os

import pytest

from till.errors import LexError, Position
from till.lexer import tokenize, decode_literal

EXAMPLES = os.path.join(os.path.dirname(__file__), '..', 'examples')


def kinds(source):
    return [t.type for t in tokenize(source)]


def test_indent_and_dedent_tokens():
    source = "if true\n    display 1\ndisplay 2\n"
    assert kinds(source) == [
        'KEYWORD', 'BOOL', 'NEWLINE',
        'INDENT', 'KEYWORD', 'NUMBER', 'NEWLINE',
        'DEDENT', 'KEYWORD', 'NUMBER', 'NEWLINE',
        'EOF',
    ]


def test_open_blocks_are_closed_at_end_of_input():
    source = "if true\n    if true\n        display 1"
    assert kinds(source)[-4:] == ['NEWLINE', 'DEDENT', 'DEDENT', 'EOF']


def test_indent_dedent_balance_in_examples():
    paths = sorted(glob.glob(os.path.join(EXAMPLES, '*.till')))
    assert paths
    for path in paths:
        with open(path, 'r', encoding='utf-8') as f:
            token_kinds = kinds(f.read())
        assert token_kinds.count('INDENT') == token_kinds.count('DEDENT'), path


def test_inconsistent_dedent_names_offending_line():
    source = "if true\n    if true\n        display 1\n  display 2\n"
    with pytest.raises(LexError) as excinfo:
        tokenize(source)
    assert excinfo.value.position == Position(4, 3)
    assert 'inconsistent dedent' in excinfo.value.reason


def test_tab_indentation_is_rejected():
    with pytest.raises(LexError) as excinfo:
        tokenize("if true\n\tdisplay 1\n")
    assert excinfo.value.position == Position(2, 1)


def test_blank_lines_produce_no_tokens():
    source = "display 1\n\n   \n\ndisplay 2"
    assert kinds(source) == [
        'KEYWORD', 'NUMBER', 'NEWLINE',
        'KEYWORD', 'NUMBER', 'NEWLINE',
        'EOF',
    ]


def test_empty_source():
    assert kinds('') == ['EOF']


def test_crlf_line_endings():
    assert kinds("display 1\r\ndisplay 2\r\n") == kinds("display 1\ndisplay 2\n")


def test_newline_inside_parentheses_continues_line():
    source = "display f(1,\n        2)\n"
    assert kinds(source) == ['KEYWORD', 'NAME', 'OP', 'NUMBER', 'OP', 'NUMBER', 'OP', 'NEWLINE', 'EOF']


def test_keywords_booleans_and_identifiers():
    tokens = tokenize("display displayed == false")
    assert [(t.type, t.value) for t in tokens[:4]] == [
        ('KEYWORD', 'display'),
        ('NAME', 'displayed'),
        ('OP', '=='),
        ('BOOL', 'false'),
    ]


def test_operators_and_numbers():
    tokens = tokenize("f(Num a) -> Num\n")
    assert [t.value for t in tokens if t.type == 'OP'] == ['(', ')', '->']
    tokens = tokenize("display 3.5 * ~2")
    assert [(t.type, t.value) for t in tokens[1:5]] == [
        ('NUMBER', '3.5'), ('OP', '*'), ('OP', '~'), ('NUMBER', '2'),
    ]


def test_token_positions():
    tokens = tokenize("Num x = 42\n  \ndisplay x")
    number = tokens[3]
    assert (number.type, number.line, number.column) == ('NUMBER', 1, 9)
    display = tokens[5]
    assert (display.value, display.line, display.column) == ('display', 3, 1)


def test_string_and_char_escapes():
    tokens = tokenize(r'Str s = "a\n\"b" + '"'\\''")
    string = tokens[3]
    assert string.type == 'STRING'
    assert decode_literal(string.value) == 'a\n"b'
    char = tokens[5]
    assert char.type == 'CHAR'
    assert decode_literal(char.value) == "'"


def test_unknown_escape():
    with pytest.raises(LexError) as excinfo:
        tokenize(r'display "a\q"')
    assert excinfo.value.position == Position(1, 11)


def test_unterminated_string():
    with pytest.raises(LexError) as excinfo:
        tokenize('display "abc')
    assert excinfo.value.reason == 'unterminated string literal'
    assert excinfo.value.position == Position(1, 9)


def test_unterminated_char():
    with pytest.raises(LexError) as excinfo:
        tokenize("display 'a")
    assert excinfo.value.reason == 'unterminated character literal'


def test_char_literal_must_hold_one_character():
    with pytest.raises(LexError):
        tokenize("display 'ab'")
    with pytest.raises(LexError):
        tokenize("display ''")


def test_unrecognized_character():
    with pytest.raises(LexError) as excinfo:
        tokenize("display 1 $ 2")
    assert excinfo.value.reason == "unrecognized character '$'"
    assert str(excinfo.value) == "LexError: unrecognized character '$' at 1:11"


def test_non_ascii_digits_are_not_numbers():
    with pytest.raises(LexError) as excinfo:
        tokenize("display ²\n")
    assert excinfo.value.reason == "unrecognized character '²'"
    assert excinfo.value.position == Position(1, 9)
    with pytest.raises(LexError):
        tokenize("display 1.²\n")
