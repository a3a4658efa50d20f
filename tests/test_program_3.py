import os

from till.interpreter import compile_program, Interpreter

EXAMPLES = os.path.join(os.path.dirname(__file__), '..', 'examples')


def test_program_3_recursive_fibonacci(capsys):
    with open(os.path.join(EXAMPLES, 'program_3.till'), 'r', encoding='utf-8') as f:
        source = f.read()
    ast = compile_program(source)
    interp = Interpreter()
    interp.run(ast)
    out_lines = capsys.readouterr().out.strip().split('\n')
    assert out_lines == ['0', '1', '1', '2', '3', '5', '8', '13', '21', '34']
