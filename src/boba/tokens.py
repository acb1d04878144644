"""
Token types for the boba lexer.

Token categories line up with the error code ranges used by diagnostics:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx-E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals ---
    INT_LITERAL = auto()        # 42, 007 (unbounded digits)
    FLOAT_LITERAL = auto()      # 12.5, 14., 20f
    STRING_LITERAL = auto()     # 'hello', "hello"
    BOOL_LITERAL = auto()       # true, false
    NONE_LITERAL = auto()       # none

    # --- Identifiers ---
    IDENTIFIER = auto()

    # --- Keywords ---
    LET = auto()                # let
    WHILE = auto()              # while
    FN = auto()                 # fn
    IF = auto()                 # if

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %
    DOUBLE_STAR = auto()        # **

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Logical operators ---
    AND = auto()                # and
    OR = auto()                 # or
    NOT = auto()                # not, !

    # --- Assignment ---
    ASSIGN = auto()             # =
    WALRUS = auto()             # :=

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    COMMA = auto()              # ,
    COLON = auto()              # :
    DOT = auto()                # .
    QUESTION = auto()           # ?
    SEMICOLON = auto()          # ;

    # --- Indentation tokens ---
    INDENT = auto()
    DEDENT = auto()
    NEWLINE = auto()

    # --- Special ---
    EOF = auto()


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # Literal payload (int, float, str, bool) or None
    lexeme: str             # Source text of the token
    span: SourceSpan

    def __str__(self) -> str:
        if self.type in (TokenType.INT_LITERAL, TokenType.FLOAT_LITERAL,
                         TokenType.STRING_LITERAL, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.lexeme})"
        return self.type.name

    def describe(self) -> str:
        """Short human-readable description used in parse errors."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.NEWLINE:
            return "newline"
        if self.type == TokenType.INDENT:
            return "indent"
        if self.type == TokenType.DEDENT:
            return "dedent"
        return f"'{self.lexeme}'"


KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "while": TokenType.WHILE,
    "fn": TokenType.FN,
    "if": TokenType.IF,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,
    "none": TokenType.NONE_LITERAL,
}


# Operator spellings, used when reporting type errors
OPERATOR_SYMBOLS: dict[TokenType, str] = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.DOUBLE_STAR: "**",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.AND: "and",
    TokenType.OR: "or",
    TokenType.NOT: "not",
    TokenType.WALRUS: ":=",
}


def operator_symbol(token_type: TokenType) -> str:
    """Return the source spelling of an operator token type."""
    return OPERATOR_SYMBOLS.get(token_type, token_type.name.lower())
