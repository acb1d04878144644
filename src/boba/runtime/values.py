"""
Runtime values for the boba interpreter.

Every runtime value is a :class:`Value`: an immutable pair of Python data
and a :class:`ValueKind` tag. The set of kinds is closed; operator
dispatch in :mod:`boba.runtime.operators` is keyed on it.

    kind       data
    ---------  -----------------------------------------
    NONE       None
    INT        int (unbounded)
    FLOAT      float (IEEE-754 double)
    BOOL       bool
    STRING     str
    TUPLE      tuple of Value
    FUNCTION   Closure or NativeFunction (compared by identity)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, TYPE_CHECKING

from ..digits import int_to_decimal

if TYPE_CHECKING:
    from ..ast import Block
    from .environment import Frame


class ValueKind(Enum):
    """Type tags for runtime values, as named in error messages."""
    NONE = "none"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    TUPLE = "tuple"
    FUNCTION = "function"


@dataclass(frozen=True)
class Value:
    """
    A runtime value.

    Values never change after construction; assignment rebinds a slot in
    a frame to a different Value.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        if self.kind == ValueKind.INT:
            return f"Value({int_to_decimal(self.data)}, int)"
        return f"Value({self.data!r}, {self.kind.value})"

    def __str__(self) -> str:
        return display(self)

    @property
    def type_name(self) -> str:
        return self.kind.value


@dataclass(eq=False)
class Closure:
    """
    A user-defined function: parameters and body plus the frame that was
    current when the function literal was evaluated.

    The body is shared with the AST; the captured frame is shared with
    every other closure created in it.
    """
    parameters: List[str]
    body: "Block"
    env: "Frame"
    name: Optional[str] = None

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def __repr__(self) -> str:
        return f"<fn {self.name}>" if self.name else "<fn>"


@dataclass(eq=False)
class NativeFunction:
    """A function implemented in Python, e.g. print."""
    name: str
    arity: int
    impl: Callable[..., "Value"]

    def __repr__(self) -> str:
        return f"<native fn {self.name}>"


# Convenience constructors

def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(int(n), ValueKind.INT)


def float_val(x: float) -> Value:
    """Create a float value."""
    return Value(float(x), ValueKind.FLOAT)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return TRUE if b else FALSE


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueKind.STRING)


def tuple_val(items: Sequence[Value]) -> Value:
    """Create a tuple value from a sequence of Values."""
    return Value(tuple(items), ValueKind.TUPLE)


def none_val() -> Value:
    return NONE


def function_val(fn) -> Value:
    """Wrap a Closure or NativeFunction."""
    return Value(fn, ValueKind.FUNCTION)


NONE = Value(None, ValueKind.NONE)
TRUE = Value(True, ValueKind.BOOL)
FALSE = Value(False, ValueKind.BOOL)


# Display

_STRING_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\0": "\\0",
}


def quote_string(s: str) -> str:
    """Render a string as a literal that the lexer reads back unchanged."""
    quote = '"' if "'" in s and '"' not in s else "'"
    out = [quote]
    for ch in s:
        if ch == quote:
            out.append("\\" + ch)
        else:
            out.append(_STRING_ESCAPES.get(ch, ch))
    out.append(quote)
    return "".join(out)


def format_float(x: float) -> str:
    return repr(x)


def repr_value(value: Value) -> str:
    """Source-like rendering: strings are quoted."""
    if value.kind == ValueKind.STRING:
        return quote_string(value.data)
    return display(value)


def display(value: Value) -> str:
    """Human-readable rendering, as written by print."""
    kind = value.kind
    if kind == ValueKind.NONE:
        return "none"
    if kind == ValueKind.INT:
        return int_to_decimal(value.data)
    if kind == ValueKind.FLOAT:
        return format_float(value.data)
    if kind == ValueKind.BOOL:
        return "true" if value.data else "false"
    if kind == ValueKind.STRING:
        return value.data
    if kind == ValueKind.TUPLE:
        items = value.data
        if len(items) == 1:
            return f"({repr_value(items[0])},)"
        return "(" + ", ".join(repr_value(v) for v in items) + ")"
    if kind == ValueKind.FUNCTION:
        return repr(value.data)
    raise RuntimeError(f"unknown value kind {kind!r}")
