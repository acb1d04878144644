"""
Operator semantics for runtime values.

Each binary operator owns a dispatch table keyed by the operand kinds
``(ValueKind, ValueKind)``. A pair missing from the table is a type
error naming the operator and both kinds. Equality is total and is not
table driven.

Numeric rules:
- Int op Int stays Int for + - * % and for ** with a non-negative exponent
- any Float operand promotes the result to Float
- / is true division and always yields Float
- % is Euclidean: the result is never negative
"""

import math
from typing import Callable, Dict, Tuple

from ..config import InterpreterConfig
from ..errors import (
    error_operand_types,
    error_unary_operand_type,
    error_math,
)
from ..tokens import SourceSpan, TokenType, operator_symbol
from .values import (
    Value, ValueKind, int_val, float_val, bool_val, string_val, display,
)

INT = ValueKind.INT
FLOAT = ValueKind.FLOAT
BOOL = ValueKind.BOOL
STRING = ValueKind.STRING

NUMERIC_PAIRS = ((INT, INT), (INT, FLOAT), (FLOAT, INT), (FLOAT, FLOAT))

Handler = Callable[[Value, Value, InterpreterConfig, SourceSpan], Value]


# =============================================================================
# Helpers
# =============================================================================

def _to_float(value: Value, span: SourceSpan) -> float:
    try:
        return float(value.data)
    except OverflowError:
        raise error_math("integer too large to convert to float", span) from None


def _checked_float(result: float, a: float, b: float, span: SourceSpan) -> Value:
    """Reject an infinite result computed from finite operands."""
    if math.isinf(result) and math.isfinite(a) and math.isfinite(b):
        raise error_math("float overflow", span)
    return float_val(result)


def _check_int_bits(bits: int, config: InterpreterConfig, span: SourceSpan) -> None:
    if config.max_int_bits is not None and bits > config.max_int_bits:
        raise error_math(
            f"integer result too large (more than {config.max_int_bits} bits)", span
        )


def _check_string_length(length: int, config: InterpreterConfig, span: SourceSpan) -> None:
    if config.max_string_length is not None and length > config.max_string_length:
        raise error_math(
            f"string result too long (more than {config.max_string_length} characters)", span
        )


def _float_binary(fn: Callable[[float, float], float]) -> Handler:
    """Lift a float operation over any numeric pair."""
    def handler(left, right, config, span):
        a = _to_float(left, span)
        b = _to_float(right, span)
        return _checked_float(fn(a, b), a, b, span)
    return handler


# =============================================================================
# Arithmetic
# =============================================================================

def _int_add(left, right, config, span):
    return int_val(left.data + right.data)


def _int_sub(left, right, config, span):
    return int_val(left.data - right.data)


def _int_mul(left, right, config, span):
    _check_int_bits(left.data.bit_length() + right.data.bit_length(), config, span)
    return int_val(left.data * right.data)


def _divide(left, right, config, span):
    if right.data == 0:
        raise error_math("division by zero", span)
    if left.kind == INT and right.kind == INT:
        try:
            return float_val(left.data / right.data)
        except OverflowError:
            raise error_math("quotient too large for a float", span) from None
    a = _to_float(left, span)
    b = _to_float(right, span)
    return _checked_float(a / b, a, b, span)


def _int_mod(left, right, config, span):
    if right.data == 0:
        raise error_math("modulo by zero", span)
    result = left.data % right.data
    if result < 0:
        result += abs(right.data)
    return int_val(result)


def _float_mod(left, right, config, span):
    a = _to_float(left, span)
    b = _to_float(right, span)
    if b == 0.0:
        raise error_math("modulo by zero", span)
    result = math.fmod(a, b)
    if result < 0:
        result += abs(b)
    return float_val(result)


def _int_pow(left, right, config, span):
    base, exponent = left.data, right.data
    if exponent < 0:
        return _float_pow(left, right, config, span)
    if abs(base) > 1:
        # |base| >= 2, so the result has at least `exponent` bits
        if exponent.bit_length() > 64:
            bits = exponent
        else:
            bits = int(exponent * math.log2(abs(base))) + 1
        _check_int_bits(bits, config, span)
    return int_val(base ** exponent)


def _float_pow(left, right, config, span):
    a = _to_float(left, span)
    b = _to_float(right, span)
    if a == 0.0 and b < 0:
        raise error_math("zero raised to a negative power", span)
    try:
        return float_val(math.pow(a, b))
    except OverflowError:
        raise error_math("float overflow", span) from None
    except ValueError:
        raise error_math(f"{display(left)} ** {display(right)} is not a real number", span) from None


def _string_concat(left, right, config, span):
    text = display(right)
    _check_string_length(len(left.data) + len(text), config, span)
    return string_val(left.data + text)


def _string_repeat(left, right, config, span):
    count = int(right.data)
    if count <= 0 or not left.data:
        return string_val("")
    _check_string_length(len(left.data) * count, config, span)
    return string_val(left.data * count)


_ADD: Dict[Tuple[ValueKind, ValueKind], Handler] = {
    (INT, INT): _int_add,
    (INT, FLOAT): _float_binary(lambda a, b: a + b),
    (FLOAT, INT): _float_binary(lambda a, b: a + b),
    (FLOAT, FLOAT): _float_binary(lambda a, b: a + b),
    (STRING, STRING): _string_concat,
    (STRING, INT): _string_concat,
    (STRING, FLOAT): _string_concat,
    (STRING, BOOL): _string_concat,
}

_SUB = {
    (INT, INT): _int_sub,
    (INT, FLOAT): _float_binary(lambda a, b: a - b),
    (FLOAT, INT): _float_binary(lambda a, b: a - b),
    (FLOAT, FLOAT): _float_binary(lambda a, b: a - b),
}

_MUL = {
    (INT, INT): _int_mul,
    (INT, FLOAT): _float_binary(lambda a, b: a * b),
    (FLOAT, INT): _float_binary(lambda a, b: a * b),
    (FLOAT, FLOAT): _float_binary(lambda a, b: a * b),
    (STRING, INT): _string_repeat,
    (STRING, BOOL): _string_repeat,
}

_DIV = {pair: _divide for pair in NUMERIC_PAIRS}

_MOD = {
    (INT, INT): _int_mod,
    (INT, FLOAT): _float_mod,
    (FLOAT, INT): _float_mod,
    (FLOAT, FLOAT): _float_mod,
}

_POW = {
    (INT, INT): _int_pow,
    (INT, FLOAT): _float_pow,
    (FLOAT, INT): _float_pow,
    (FLOAT, FLOAT): _float_pow,
}


# =============================================================================
# Ordering
# =============================================================================

def _ordering(compare: Callable[[object, object], bool]) -> Dict[Tuple[ValueKind, ValueKind], Handler]:
    """Build an ordering table over numeric pairs, string pairs and bool pairs."""
    def handler(left, right, config, span):
        return bool_val(compare(left.data, right.data))
    pairs = NUMERIC_PAIRS + ((STRING, STRING), (BOOL, BOOL))
    return {pair: handler for pair in pairs}


BINARY_TABLES: Dict[TokenType, Dict[Tuple[ValueKind, ValueKind], Handler]] = {
    TokenType.PLUS: _ADD,
    TokenType.MINUS: _SUB,
    TokenType.STAR: _MUL,
    TokenType.SLASH: _DIV,
    TokenType.PERCENT: _MOD,
    TokenType.DOUBLE_STAR: _POW,
    TokenType.LT: _ordering(lambda a, b: a < b),
    TokenType.LE: _ordering(lambda a, b: a <= b),
    TokenType.GT: _ordering(lambda a, b: a > b),
    TokenType.GE: _ordering(lambda a, b: a >= b),
}


# =============================================================================
# Equality
# =============================================================================

def values_equal(left: Value, right: Value) -> bool:
    """Language equality: structural for tuples, identity for functions."""
    if left.kind != right.kind:
        if (left.kind, right.kind) in NUMERIC_PAIRS:
            return left.data == right.data
        return False
    if left.kind == ValueKind.TUPLE:
        if len(left.data) != len(right.data):
            return False
        return all(values_equal(a, b) for a, b in zip(left.data, right.data))
    if left.kind == ValueKind.FUNCTION:
        return left.data is right.data
    return left.data == right.data


# =============================================================================
# Entry points
# =============================================================================

def binary_op(op: TokenType, left: Value, right: Value, span: SourceSpan,
              config: InterpreterConfig) -> Value:
    """Apply a non-short-circuit binary operator."""
    if op == TokenType.EQ:
        return bool_val(values_equal(left, right))
    if op == TokenType.NE:
        return bool_val(not values_equal(left, right))

    table = BINARY_TABLES.get(op)
    if table is None:
        raise RuntimeError(f"no dispatch table for operator {op!r}")
    handler = table.get((left.kind, right.kind))
    if handler is None:
        raise error_operand_types(operator_symbol(op), left.type_name, right.type_name, span)
    return handler(left, right, config, span)


def unary_op(op: TokenType, operand: Value, span: SourceSpan) -> Value:
    """Apply unary minus, unary plus or logical not."""
    if op == TokenType.PLUS:
        if operand.kind in (INT, FLOAT):
            return operand
    elif op == TokenType.MINUS:
        if operand.kind == INT:
            return int_val(-operand.data)
        if operand.kind == FLOAT:
            return float_val(-operand.data)
    elif op == TokenType.NOT:
        if operand.kind == BOOL:
            return bool_val(not operand.data)
    else:
        raise RuntimeError(f"unknown unary operator {op!r}")
    raise error_unary_operand_type(operator_symbol(op), operand.type_name, span)
