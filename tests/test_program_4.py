import os

from till.interpreter import compile_program, Interpreter

EXAMPLES = os.path.join(os.path.dirname(__file__), '..', 'examples')


def test_program_4_globals_and_shadowing(capsys):
    with open(os.path.join(EXAMPLES, 'program_4.till'), 'r', encoding='utf-8') as f:
        source = f.read()
    ast = compile_program(source)
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    # bump() updates the global counter; the if body shadows it only locally
    assert out_lines == ['2', '5', '5', '100', '5']
