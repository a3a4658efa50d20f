from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from till.errors import TillRuntimeError
from till.types import TypeSpec, check_value, default_value


class Scope:
    """One lexical scope: identifiers mapped to their declared type and value."""
    def __init__(self, parent: Optional[int] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}
        self.types: Dict[str, Optional[TypeSpec]] = {}


class Environment:
    """Arena of nested scopes addressed by integer handle.

    Scopes never point at each other directly: a scope records the handle of
    its enclosing scope and a function value records the handle of the scope
    it was declared in. Scopes are created and released in stack order (a
    call or block always finishes before the one that started it), so
    releasing a scope simply truncates the arena at its handle.
    """
    GLOBAL = 0

    def __init__(self):
        self.scopes: List[Scope] = [Scope()]

    def push(self, parent: int) -> int:
        self.scopes.append(Scope(parent))
        return len(self.scopes) - 1

    def release(self, handle: int) -> None:
        del self.scopes[handle:]

    @contextmanager
    def child(self, parent: int) -> Iterator[int]:
        """Open a scope nested in `parent` for the duration of a block or call."""
        handle = self.push(parent)
        try:
            yield handle
        finally:
            self.release(handle)

    def resolve(self, handle: int, name: str) -> Optional[Scope]:
        current: Optional[int] = handle
        while current is not None:
            scope = self.scopes[current]
            if name in scope.values:
                return scope
            current = scope.parent
        return None

    def get(self, handle: int, name: str) -> Any:
        scope = self.resolve(handle, name)
        if scope is None:
            raise TillRuntimeError(f'undefined variable {name}')
        return scope.values[name]

    def set(self, handle: int, name: str, value: Any):
        scope = self.resolve(handle, name)
        if scope is None:
            raise TillRuntimeError(f'assignment to undeclared variable {name}')
        type_spec = scope.types[name]
        if type_spec is None:
            raise TillRuntimeError(f'cannot assign to function {name}')
        try:
            check_value(value, type_spec)
        except TypeError as e:
            raise TillRuntimeError(f'cannot assign to {name}: {e}')
        scope.values[name] = value

    def declare(self, handle: int, name: str, type_spec: TypeSpec, value: Any):
        scope = self.scopes[handle]
        if name in scope.values:
            raise TillRuntimeError(f'variable {name} already declared')
        try:
            if value is None:
                value = default_value(type_spec)
            check_value(value, type_spec)
        except TypeError as e:
            raise TillRuntimeError(f'cannot declare {name}: {e}')
        scope.values[name] = value
        scope.types[name] = type_spec

    def declare_function(self, handle: int, name: str, function: Any):
        scope = self.scopes[handle]
        if name in scope.values:
            raise TillRuntimeError(f'function {name} already declared')
        scope.values[name] = function
        scope.types[name] = None
