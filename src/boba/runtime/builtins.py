"""
Built-in function registry for the boba interpreter.

Native functions are declared in every fresh global frame. Each one is
bound to the output stream of the environment it is installed into, so
independent interpreter instances never share output.
"""

import functools
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TextIO

from .values import Value, NativeFunction, NONE, function_val, display


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and arity.

    The implementation receives the output stream first, then the
    argument Values.
    """
    name: str
    arity: int
    implementation: Callable[..., Value]
    doc: str = ""


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and instantiated per environment by
    :func:`install_builtins`.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def names(self) -> List[str]:
        return sorted(self._functions)

    def functions(self) -> List[BuiltinFunction]:
        return [self._functions[name] for name in self.names()]

    def _register_all(self) -> None:
        self._register_io_functions()

    # --- I/O Functions ---

    def _register_io_functions(self) -> None:

        def _print(output: TextIO, value: Value) -> Value:
            """Write a value's display text and a newline."""
            output.write(display(value) + "\n")
            return NONE

        self.register(BuiltinFunction("print", 1, _print, "print(value) -> none"))


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def install_builtins(frame, output: TextIO) -> None:
    """Declare every registered builtin in frame, writing to output."""
    for builtin in get_builtin_registry().functions():
        native = NativeFunction(
            name=builtin.name,
            arity=builtin.arity,
            impl=functools.partial(builtin.implementation, output),
        )
        frame.declare(builtin.name, function_val(native))
