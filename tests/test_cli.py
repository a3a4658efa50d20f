import json
import os

import pytest

from till.__main__ import main

EXAMPLES = os.path.join(os.path.dirname(__file__), '..', 'examples')


def example(name):
    return os.path.join(EXAMPLES, name)


def test_run_program_file(capsys):
    main([example('program_2.till')])
    assert capsys.readouterr().out == '120\n'


def test_run_with_lark_frontend(capsys):
    main(['--frontend', 'lark', example('program_3.till')])
    assert capsys.readouterr().out.split() == ['0', '1', '1', '2', '3', '5', '8', '13', '21', '34']


def test_runtime_error_exit_status(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([example('program_5.till')])
    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert captured.out.split() == ['2.5', '-4', '7', '2', '9']
    assert captured.err.strip() == 'RuntimeError: division by zero at 8:11'


def test_type_error_produces_no_output(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([example('program_8.till')])
    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == ''
    assert captured.err.strip() == "TypeError: call to undeclared function 'twice' at 5:9"


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / 'nope.till')])
    assert excinfo.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_emit_ast_then_run(tmp_path, capsys):
    source = tmp_path / 'square.till'
    source.write_text("sq(Num n) -> Num\n    return n * n\ndisplay sq(7)\n", encoding='utf-8')
    main(['--emit-ast', str(source)])
    out_path = capsys.readouterr().out.strip()
    assert out_path == str(tmp_path / 'square.till.ast.json')
    with open(out_path, 'r', encoding='utf-8') as f:
        assert json.load(f)['type'] == 'Program'
    main(['--ast', out_path])
    assert capsys.readouterr().out == '49\n'


def test_ast_file_is_type_checked(tmp_path, capsys):
    ast_path = tmp_path / 'bad.ast.json'
    ast_path.write_text(json.dumps({
        'type': 'Program',
        'body': [{
            'type': 'VarDecl',
            'type_spec': 'Num',
            'name': 'x',
            'initializer': {'type': 'Literal', 'value': True, 'kind': 'Bool', 'position': [1, 9]},
            'position': [1, 1],
        }],
    }), encoding='utf-8')
    with pytest.raises(SystemExit) as excinfo:
        main(['--ast', str(ast_path)])
    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith("TypeError: initializer of 'x'")


def test_format(tmp_path, capsys):
    source = tmp_path / 'messy.till'
    source.write_text("Num x=(1+2)\nif x>2\n  display x\n", encoding='utf-8')
    main(['--format', str(source)])
    assert capsys.readouterr().out == "Num x = 1 + 2\nif x > 2\n    display x\n"


def test_verbose_writes_debug_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(['-vv', example('program_1.till')])
    assert capsys.readouterr().out == 'Hello World!!\n'
    log = (tmp_path / 'debug.txt').read_text(encoding='utf-8')
    assert "display 'Hello World!!'" in log


def test_malformed_ast_file(tmp_path, capsys):
    ast_path = tmp_path / 'broken.ast.json'
    ast_path.write_text('{"type": "Program", "body": [', encoding='utf-8')
    with pytest.raises(SystemExit) as excinfo:
        main(['--ast', str(ast_path)])
    assert excinfo.value.code == 1
    assert 'invalid AST file' in capsys.readouterr().err


def test_deep_nesting_reported_as_parse_error(tmp_path, capsys):
    source = tmp_path / 'deep.till'
    source.write_text("display " + "(" * 1000 + "1" + ")" * 1000 + "\n", encoding='utf-8')
    with pytest.raises(SystemExit) as excinfo:
        main([str(source)])
    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith('ParseError: expected less deeply nested expression')
