"""
boba runtime - tree-walking evaluation of parsed programs.

This module provides:
- Interpreter: Executes programs against an Environment
- Session: Persistent global environment across sequential evaluations
- Value: Immutable runtime values tagged with a ValueKind
- Environment / Frame: Lexical scope chain
- BuiltinRegistry: Native functions installed in every global frame
"""

from .values import (
    Value,
    ValueKind,
    Closure,
    NativeFunction,
    int_val,
    float_val,
    bool_val,
    string_val,
    tuple_val,
    none_val,
    function_val,
    display,
    repr_value,
    int_to_decimal,
    NONE,
    TRUE,
    FALSE,
)

from .operators import (
    binary_op,
    unary_op,
    values_equal,
)

from .environment import (
    Frame,
    Environment,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    Session,
    StepHook,
    run,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'Closure',
    'NativeFunction',
    'int_val',
    'float_val',
    'bool_val',
    'string_val',
    'tuple_val',
    'none_val',
    'function_val',
    'display',
    'repr_value',
    'int_to_decimal',
    'NONE',
    'TRUE',
    'FALSE',

    # Operators
    'binary_op',
    'unary_op',
    'values_equal',

    # Environment
    'Frame',
    'Environment',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',

    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'Session',
    'StepHook',
    'run',
]
