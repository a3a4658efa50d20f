import os

from till.interpreter import compile_program, Interpreter

EXAMPLES = os.path.join(os.path.dirname(__file__), '..', 'examples')


def test_program_1(capsys):
    with open(os.path.join(EXAMPLES, 'program_1.till'), 'r', encoding='utf-8') as f:
        source = f.read()
    ast = compile_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == 'Hello World!!'
