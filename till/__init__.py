# Till language package
# This package provides a front end, type checker and interpreter for Till.
from .errors import TillError, LexError, ParseError, TypeCheckError, TillRuntimeError
from .interpreter import run_program, compile_program, Interpreter

__all__ = [
    'run_program',
    'compile_program',
    'Interpreter',
    'TillError',
    'LexError',
    'ParseError',
    'TypeCheckError',
    'TillRuntimeError',
]
