"""
Exceptions and diagnostics for the boba language core.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx: Type errors
- E3xx: Binding, destructuring and call errors
- E4xx: Arithmetic, interruption and fatal runtime errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    FATAL = "fatal"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: Optional[SourceSpan] = None
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        if self.span is not None:
            parts.append(f"{self.span.start}: {self.severity.value}[{self.code}]: {self.message}")
        else:
            parts.append(f"{self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.span is not None and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        result = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "hints": self.hints,
        }
        if self.span is not None:
            result["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return result


class ScriptError(Exception):
    """Base exception for every error raised by the language core."""

    kind = "ScriptError"

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def span(self) -> Optional[SourceSpan]:
        return self.diagnostic.span

    @property
    def code(self) -> str:
        return self.diagnostic.code

    def attach_source(self, lines: List[str]) -> "ScriptError":
        """Fill in the offending source line if it is not known yet."""
        span = self.diagnostic.span
        if self.diagnostic.source_line is None and span is not None:
            if 1 <= span.start.line <= len(lines):
                self.diagnostic.source_line = lines[span.start.line - 1]
        return self

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexError(ScriptError):
    """Malformed token (E0xx)."""
    kind = "LexError"


class ParseError(ScriptError):
    """Grammar violation (E1xx)."""
    kind = "ParseError"


class EvalError(ScriptError):
    """Base class for errors raised while evaluating a program."""
    kind = "EvalError"


class TypeError(EvalError):
    """Operator, condition or callee type mismatch (E201)."""
    kind = "TypeError"


class UndefinedVariableError(EvalError):
    """Name not bound anywhere in the frame chain (E301)."""
    kind = "UndefinedVariableError"


class RedeclarationError(EvalError):
    """Name already declared in the same frame (E302)."""
    kind = "RedeclarationError"


class DestructureError(EvalError):
    """Tuple pattern arity or shape mismatch (E303)."""
    kind = "DestructureError"


class ArityError(EvalError):
    """Call argument count mismatch (E304)."""
    kind = "ArityError"


class NotCallableError(EvalError):
    """Callee is not a function (E305)."""
    kind = "NotCallableError"


class MemberError(EvalError):
    """Tuple member index out of range (E306)."""
    kind = "MemberError"


class MathError(EvalError):
    """Division by zero, overflow or oversized result (E401)."""
    kind = "MathError"


class ExecutionInterrupted(EvalError):
    """The host stopped evaluation at a statement boundary (E402)."""
    kind = "ExecutionInterrupted"


class StackOverflow(EvalError):
    """Call depth exceeded the available stack (E499). Not recoverable."""
    kind = "StackOverflow"


def _error(cls, code: str, message: str, span: Optional[SourceSpan],
           source_line: Optional[str] = None, hints: Optional[List[str]] = None,
           severity: ErrorSeverity = ErrorSeverity.ERROR):
    diag = Diagnostic(
        code=code,
        message=message,
        severity=severity,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )
    return cls(diag)


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E001: Unexpected character."""
    return _error(LexError, "E001", f"unexpected character '{char}'", span, source_line)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexError:
    """E002: Unterminated string literal."""
    return _error(
        LexError, "E002", "unterminated string literal", span, source_line,
        hints=["string literals must be closed with the same quote that opened them"],
    )


def error_invalid_escape_sequence(seq: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E003: Invalid escape sequence in string."""
    return _error(
        LexError, "E003", f"invalid escape sequence '\\{seq}'", span, source_line,
        hints=["valid escape sequences: \\n, \\t, \\r, \\0, \\\\, \\', \\\""],
    )


def error_invalid_number_literal(text: str, span: SourceSpan, source_line: str = None) -> LexError:
    """E004: Invalid number literal."""
    return _error(
        LexError, "E004", f"invalid number literal '{text}'", span, source_line,
        hints=["numbers look like 42, 12.5, 14. or 20f"],
    )


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParseError:
    """E101: Unexpected token."""
    return _error(ParseError, "E101", f"expected {expected}, found {found}", span, source_line)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParseError:
    """E102: Unexpected end of input."""
    return _error(ParseError, "E102", f"unexpected end of input, expected {expected}", span)


def error_invalid_assignment_target(span: SourceSpan, source_line: str = None) -> ParseError:
    """E103: Left-hand side is not a name or tuple of names."""
    return _error(
        ParseError, "E103", "invalid assignment target", span, source_line,
        hints=["only names and parenthesized tuples of names can be assigned"],
    )


def error_inconsistent_indentation(span: SourceSpan, source_line: str = None) -> ParseError:
    """E104: Dedent to a level that was never opened."""
    return _error(
        ParseError, "E104", "inconsistent indentation", span, source_line,
        hints=["dedent must return to the indentation of an enclosing block"],
    )


def error_mixed_indentation(span: SourceSpan, source_line: str = None) -> ParseError:
    """E105: Tabs and spaces mixed within one source."""
    return _error(ParseError, "E105", "mixed tabs and spaces in indentation", span, source_line)


def error_nesting_too_deep(limit: int, span: SourceSpan) -> ParseError:
    """E106: Expression nesting exceeds the configured limit."""
    return _error(ParseError, "E106", f"expression nested too deeply (limit {limit})", span)


# --- Runtime error codes ---

def error_operand_types(op: str, left: str, right: str, span: SourceSpan) -> TypeError:
    """E201: Binary operator applied to unsupported operand types."""
    return _error(
        TypeError, "E201",
        f"unsupported operand types for '{op}': '{left}' and '{right}'", span,
    )


def error_unary_operand_type(op: str, operand: str, span: SourceSpan) -> TypeError:
    """E201: Unary operator applied to an unsupported operand type."""
    return _error(TypeError, "E201", f"unsupported operand type for '{op}': '{operand}'", span)


def error_condition_type(found: str, span: SourceSpan) -> TypeError:
    """E201: Non-Bool used where a condition is required."""
    return _error(
        TypeError, "E201", f"condition must be 'bool', found '{found}'", span,
        hints=["there is no implicit truthiness; compare explicitly, e.g. 'n != 0'"],
    )


def error_logical_operand(op: str, found: str, span: SourceSpan) -> TypeError:
    """E201: Non-Bool operand of 'and'/'or'."""
    return _error(TypeError, "E201", f"operand of '{op}' must be 'bool', found '{found}'", span)


def error_member_type(found: str, span: SourceSpan) -> TypeError:
    """E201: Member access on a value that is not a tuple."""
    return _error(TypeError, "E201", f"'{found}' has no members", span)


def error_undefined_variable(name: str, span: Optional[SourceSpan]) -> UndefinedVariableError:
    """E301: Undefined variable."""
    return _error(UndefinedVariableError, "E301", f"undefined variable '{name}'", span)


def error_redeclaration(name: str, span: Optional[SourceSpan]) -> RedeclarationError:
    """E302: Name already declared in this scope."""
    return _error(
        RedeclarationError, "E302", f"'{name}' is already declared in this scope", span,
        hints=["use plain assignment to rebind an existing variable"],
    )


def error_destructure_arity(expected: int, found: int, span: Optional[SourceSpan]) -> DestructureError:
    """E303: Tuple pattern arity mismatch."""
    return _error(
        DestructureError, "E303",
        f"cannot destructure a tuple of {found} element(s) into a pattern of {expected}", span,
    )


def error_destructure_type(found: str, span: Optional[SourceSpan]) -> DestructureError:
    """E303: Tuple pattern applied to a non-tuple value."""
    return _error(DestructureError, "E303", f"cannot destructure a value of type '{found}'", span)


def error_arity(name: str, expected: int, found: int, span: Optional[SourceSpan]) -> ArityError:
    """E304: Wrong number of call arguments."""
    return _error(
        ArityError, "E304",
        f"'{name}' expects {expected} argument(s), got {found}", span,
    )


def error_not_callable(found: str, span: Optional[SourceSpan]) -> NotCallableError:
    """E305: Callee is not a function."""
    return _error(NotCallableError, "E305", f"'{found}' value is not callable", span)


def error_member_index(index: int, length: int, span: SourceSpan) -> MemberError:
    """E306: Tuple member index out of range."""
    return _error(
        MemberError, "E306", f"tuple index {index} out of range for tuple of length {length}", span,
    )


def error_math(message: str, span: Optional[SourceSpan]) -> MathError:
    """E401: Arithmetic failure."""
    return _error(MathError, "E401", message, span)


def error_interrupted(reason: str, span: Optional[SourceSpan]) -> ExecutionInterrupted:
    """E402: Host interruption."""
    return _error(ExecutionInterrupted, "E402", f"execution interrupted: {reason}", span)


def error_stack_overflow(span: Optional[SourceSpan], limit: Optional[int] = None) -> StackOverflow:
    """E499: Stack overflow."""
    message = "stack overflow"
    if limit is not None:
        message = f"stack overflow (call depth limit {limit})"
    return _error(StackOverflow, "E499", message, span, severity=ErrorSeverity.FATAL)
