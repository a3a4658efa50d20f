import pytest

from till.ast import DisplayStmt, Literal, Program, UnaryExpr
from till.checker import TypeChecker, check
from till.errors import Position, TypeCheckError
from till.parser import parse_program


def check_source(source):
    return check(parse_program(source))


def check_error(source):
    with pytest.raises(TypeCheckError) as excinfo:
        check_source(source)
    return excinfo.value


def test_valid_program_is_returned_unchanged():
    program = parse_program("Num x = 1\nx = x + 1\ndisplay x\n")
    assert TypeChecker().check(program) is program


def test_recursive_function_is_accepted():
    check_source(
        "fact(Num n) -> Num\n"
        "    Num result = 1\n"
        "    if n > 1\n"
        "        result = n * fact(n - 1)\n"
        "    return result\n"
        "display fact(5)\n"
    )


def test_block_scoped_variable_is_unknown_after_block():
    err = check_error("if true\n    Num x = 1\ndisplay x\n")
    assert err.reason == "unknown identifier 'x'"
    assert err.position == Position(3, 9)


def test_shadowing_in_child_scope_is_allowed():
    check_source("Num x = 1\nif true\n    Str x = \"inner\"\n    display x\ndisplay x\n")


def test_duplicate_declaration():
    err = check_error("Num x\nNum x\n")
    assert err.reason == "'x' is already declared in this scope"
    assert err.position == Position(2, 1)


def test_initializer_type_mismatch():
    err = check_error("Num x = true\n")
    assert err.reason == "initializer of 'x' expected to be of type Num, but got Bool"
    assert err.position == Position(1, 9)
    assert str(err) == "TypeError: initializer of 'x' expected to be of type Num, but got Bool at 1:9"


def test_initializer_is_checked_before_binding():
    err = check_error("Num x = x\n")
    assert err.reason == "unknown identifier 'x'"


def test_unknown_type():
    err = check_error("Int x\n")
    assert err.reason.startswith("unknown type 'Int'")


def test_assignment_rules():
    assert check_error("y = 1\n").reason == "assignment to undeclared variable 'y'"
    err = check_error("Char c\nc = \"text\"\n")
    assert err.reason == "value assigned to 'c' expected to be of type Char, but got Str"
    err = check_error("f() -> Num\n    return 1\nf = 2\n")
    assert err.reason == "cannot assign to function 'f'"


def test_conditions_must_be_bool():
    err = check_error("if 1\n    display 1\n")
    assert err.reason == "if condition expected to be of type Bool, but got Num"
    err = check_error("while \"yes\"\n    display 1\n")
    assert err.reason == "while condition expected to be of type Bool, but got Str"


def test_operator_types():
    assert check_error("display 1 + true\n").reason == "right operand of '+' expected to be of type Num, but got Bool"
    assert check_error("display 'a' < 'b'\n").reason == "left operand of '<' expected to be of type Num, but got Char"
    assert check_error("display 1 == 'a'\n").reason == "right operand of '==' expected to be of type Num, but got Char"
    assert check_error("display !1\n").reason == "operand of '!' expected to be of type Bool, but got Num"
    assert check_error("display ~false\n").reason == "operand of '~' expected to be of type Num, but got Bool"


def test_comparison_results_are_bool():
    check_source("Bool b = 1 < 2\nBool c = 'a' == 'b'\nBool d = !(b == c)\n")


def test_call_rules():
    header = "f(Num a) -> Num\n    return a\n"
    assert check_error("display g(1)\n").reason == "call to undeclared function 'g'"
    assert check_error(header + "display f(1, 2)\n").reason == "function 'f' expects 1 arguments but got 2"
    err = check_error(header + "display f('a')\n")
    assert err.reason == "argument 1 of 'f' expected to be of type Num, but got Char"
    assert check_error("Num f\ndisplay f(1)\n").reason == "'f' is a variable, not a function"
    assert check_error(header + "display f\n").reason == "function 'f' cannot be used as a value"


def test_void_function_cannot_be_used_in_expression():
    err = check_error("hello()\n    display 1\ndisplay hello()\n")
    assert err.reason == "function 'hello' has no return value and cannot be used in an expression"


def test_return_rules():
    assert check_error("return 1\n").reason == "'return' outside of a function"
    err = check_error("f()\n    return 1\n")
    assert err.reason == "function 'f' has no return type but returns a value"
    err = check_error("f() -> Num\n    return\n")
    assert err.reason == "function 'f' must return a Num value"
    err = check_error("f() -> Num\n    return true\n")
    assert err.reason == "return value of 'f' expected to be of type Num, but got Bool"


def test_function_with_return_type_needs_top_level_return():
    err = check_error("f(Num n) -> Num\n    if n > 0\n        return 1\n")
    assert err.reason == "function 'f' may finish without returning a Num value"
    assert err.position == Position(1, 1)


def test_parameters_share_scope_with_body():
    err = check_error("f(Num n) -> Num\n    Num n = 2\n    return n\n")
    assert err.reason == "'n' is already declared in this scope"


def test_function_sees_enclosing_variables():
    check_source(
        "Num total = 0\n"
        "add(Num x) -> Num\n"
        "    total = total + x\n"
        "    return total\n"
        "display add(2)\n"
    )


def test_function_scope_is_closed_after_declaration():
    err = check_error("f(Num n) -> Num\n    Num local = n\n    return local\ndisplay local\n")
    assert err.reason == "unknown identifier 'local'"


def test_long_left_deep_chain_is_checked():
    source = "display " + " + ".join(["1"] * 1500) + " == 1500\n"
    check_source(source)


def test_expression_nested_too_deeply():
    expr = Literal(1.0, 'Num')
    for _ in range(5000):
        expr = UnaryExpr('~', expr)
    program = Program([DisplayStmt(expr, position=Position(4, 1))])
    with pytest.raises(TypeCheckError) as excinfo:
        check(program)
    assert excinfo.value.reason == 'expression is nested too deeply'
    assert excinfo.value.position == Position(4, 1)


def test_functions_cannot_be_overloaded():
    err = check_error("f(Num a) -> Num\n    return a\nf(Char c) -> Num\n    return 1\n")
    assert err.reason == "'f' is already declared in this scope"
    assert err.position == Position(3, 1)
