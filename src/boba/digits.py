"""
Decimal conversion for integers of unbounded size.

Python refuses str <-> int conversions past a few thousand digits. The
lexer, the runtime and the AST printer all go through these helpers
instead, which split the work so no single conversion crosses the limit.
"""

# Digit runs up to this length go straight through int()
_DIGIT_CHUNK = 1000

# Below this, str() is safe from the int->str digit limit
_SMALL_INT_LIMIT = 10 ** 1000
_LOG10_2 = 0.30102999566398120


def parse_digits(digits: str) -> int:
    """Convert an ASCII digit string of any length to an int."""
    if len(digits) <= _DIGIT_CHUNK:
        return int(digits)
    split = len(digits) // 2
    low_len = len(digits) - split
    return parse_digits(digits[:split]) * 10 ** low_len + parse_digits(digits[split:])


def int_to_decimal(n: int) -> str:
    """Render an int of any size as decimal digits."""
    if n < 0:
        return "-" + int_to_decimal(-n)
    if n < _SMALL_INT_LIMIT:
        return str(n)
    # Split at roughly half the digit count
    k = max(1, int((n.bit_length() - 1) * _LOG10_2) // 2)
    hi, lo = divmod(n, 10 ** k)
    return int_to_decimal(hi) + int_to_decimal(lo).rjust(k, "0")
