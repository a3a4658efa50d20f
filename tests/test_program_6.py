import os

from till.interpreter import compile_program, Interpreter

EXAMPLES = os.path.join(os.path.dirname(__file__), '..', 'examples')


def test_program_6_chars_strings_bools(capsys):
    with open(os.path.join(EXAMPLES, 'program_6.till'), 'r', encoding='utf-8') as f:
        source = f.read()
    ast = compile_program(source)
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    expected = ['x', 'say "hi"', 'true', 'true', 'false', 'true', 'true']
    assert out_lines == expected
