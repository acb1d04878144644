"""
Lexer for the boba scripting language.

Converts source text into a lazy stream of tokens for the parser.
Supports:
- Python-style indentation (INDENT/DEDENT tokens)
- Significant newlines (NEWLINE tokens)
- Implicit line continuation inside parentheses
- Single-line comments (#)
- String literals in single or double quotes with escape sequences
- Integer literals of unbounded length
- Float literals in the forms 12.5, 14. and 20f
"""

from typing import List, Optional, Iterator
from .digits import parse_digits
from .tokens import Token, TokenType, SourceLocation, SourceSpan, KEYWORDS
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
    error_invalid_escape_sequence,
    error_invalid_number_literal,
    error_inconsistent_indentation,
    error_mixed_indentation,
)

_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '0': '\0',
}

_SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '/': TokenType.SLASH,
    '%': TokenType.PERCENT,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '?': TokenType.QUESTION,
    ';': TokenType.SEMICOLON,
}


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def _is_ident_start(ch: str) -> bool:
    return ch == '_' or (ch.isalpha() and ch != '\0')


def _is_ident_char(ch: str) -> bool:
    return ch == '_' or _is_digit(ch) or (ch.isalnum() and ch != '\0')


class Lexer:
    """
    Tokenizer for boba with Python-style indentation.

    This lexer generates INDENT and DEDENT tokens based on changes in
    leading whitespace. A source must indent with tabs or with spaces,
    never both.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source.replace('\r\n', '\n')
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None

        # Indentation tracking
        self.indent_stack = [0]
        self.indent_char: Optional[str] = None   # ' ' or '\t' once known
        self.at_line_start = True
        self.pending_tokens: List[Token] = []

        # Parenthesis nesting for implicit line continuation
        self.bracket_depth = 0

        self._last_type: Optional[TokenType] = None
        self._done = False

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
            self.at_line_start = True
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if not self._is_at_end() and self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _skip_comment(self) -> None:
        """Skip a single-line comment (# to end of line)."""
        while self._peek() != '\n' and not self._is_at_end():
            self._advance()

    def _skip_whitespace_within_line(self) -> None:
        while self._peek() in ' \t\r' and not self._is_at_end():
            self._advance()

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _handle_line_start(self) -> Optional[Token]:
        """
        Handle indentation at the start of a logical line.

        Blank and comment-only lines are consumed here without producing
        tokens. Returns the first INDENT/DEDENT token, queueing any further
        DEDENTs in pending_tokens.
        """
        while True:
            start = self._location()
            indent_text = []
            while self._peek() in ' \t' and not self._is_at_end():
                indent_text.append(self._advance())
            while self._peek() == '\r':
                self._advance()
            if self._peek() == '#':
                self._skip_comment()
            if self._peek() == '\n':
                self._advance()
                continue
            break

        self.at_line_start = False
        if self._is_at_end() or self.bracket_depth > 0:
            return None

        if indent_text:
            if self.indent_char is None:
                self.indent_char = indent_text[0]
            if any(ch != self.indent_char for ch in indent_text):
                raise error_mixed_indentation(
                    self._span(start), self.get_source_line(start.line)
                )

        indent = len(indent_text)
        current_indent = self.indent_stack[-1]

        if indent > current_indent:
            self.indent_stack.append(indent)
            return self._make_token(TokenType.INDENT, None, start, "")
        if indent < current_indent:
            dedent_tokens = []
            while self.indent_stack[-1] > indent:
                self.indent_stack.pop()
                dedent_tokens.append(self._make_token(TokenType.DEDENT, None, start, ""))
            if self.indent_stack[-1] != indent:
                raise error_inconsistent_indentation(
                    self._span(start), self.get_source_line(start.line)
                )
            self.pending_tokens.extend(dedent_tokens[1:])
            return dedent_tokens[0]
        return None

    def _scan_string(self) -> Token:
        """Scan a string literal closed by the quote that opened it."""
        start = self._location()
        quote = self._advance()

        chars = []
        while not self._is_at_end() and self._peek() != quote:
            ch = self._peek()
            if ch == '\n':
                raise error_unterminated_string(
                    self._span(start), self.get_source_line(start.line)
                )
            if ch == '\\':
                self._advance()
                chars.append(self._scan_escape_sequence())
            else:
                chars.append(self._advance())

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start), self.get_source_line(start.line)
            )

        self._advance()  # closing quote
        return self._make_token(TokenType.STRING_LITERAL, ''.join(chars), start)

    def _scan_escape_sequence(self) -> str:
        """Parse an escape sequence after backslash."""
        esc_start = self._location()
        if self._is_at_end() or self._peek() == '\n':
            raise error_invalid_escape_sequence(
                "", self._span(esc_start), self.get_source_line(esc_start.line)
            )
        ch = self._advance()
        if ch in _ESCAPES:
            return _ESCAPES[ch]
        raise error_invalid_escape_sequence(
            ch, self._span(esc_start), self.get_source_line(esc_start.line)
        )

    def _scan_number(self) -> Token:
        """Scan a numeric literal (int or float)."""
        start = self._location()
        while _is_digit(self._peek()):
            self._advance()

        is_float = False
        # After a '.', digits are a tuple member index: t.0.1
        if self._last_type != TokenType.DOT:
            if self._peek() == '.' and _is_digit(self._peek(1)):
                is_float = True
                self._advance()
                while _is_digit(self._peek()):
                    self._advance()
            elif self._peek() == '.' and not _is_ident_char(self._peek(1)) and self._peek(1) != '.':
                is_float = True
                self._advance()
            if self._peek() == 'f' and not _is_ident_char(self._peek(1)):
                is_float = True
                self._advance()

        if _is_ident_char(self._peek()):
            while _is_ident_char(self._peek()):
                self._advance()
            lexeme = self.source[start.offset:self.pos]
            raise error_invalid_number_literal(
                lexeme, self._span(start), self.get_source_line(start.line)
            )

        lexeme = self.source[start.offset:self.pos]
        if is_float:
            value = float(lexeme.rstrip('f'))
            if value == float('inf'):
                raise error_invalid_number_literal(
                    lexeme, self._span(start), self.get_source_line(start.line)
                )
            return self._make_token(TokenType.FLOAT_LITERAL, value, start, lexeme)
        return self._make_token(TokenType.INT_LITERAL, parse_digits(lexeme), start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        start = self._location()
        while _is_ident_char(self._peek()):
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        if lexeme in KEYWORDS:
            token_type = KEYWORDS[lexeme]
            if token_type == TokenType.BOOL_LITERAL:
                value = lexeme == 'true'
            elif token_type == TokenType.NONE_LITERAL:
                value = None
            else:
                value = lexeme
            return self._make_token(token_type, value, start, lexeme)

        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _end_of_input(self) -> Token:
        """Close the last line and every open block, then emit EOF."""
        start = self._location()
        if self._last_type == TokenType.EOF:
            return self._make_token(TokenType.EOF, None, start, "")
        if self.bracket_depth == 0 and self._last_type not in (
                None, TokenType.NEWLINE, TokenType.INDENT, TokenType.DEDENT):
            self.pending_tokens.append(self._make_token(TokenType.NEWLINE, None, start, ""))
        while len(self.indent_stack) > 1:
            self.indent_stack.pop()
            self.pending_tokens.append(self._make_token(TokenType.DEDENT, None, start, ""))
        self.pending_tokens.append(self._make_token(TokenType.EOF, None, start, ""))
        return self.pending_tokens.pop(0)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        if self.pending_tokens:
            return self.pending_tokens.pop(0)

        while True:
            if self.at_line_start:
                indent_token = self._handle_line_start()
                if indent_token:
                    return indent_token

            self._skip_whitespace_within_line()
            if self._peek() == '#':
                self._skip_comment()

            if self._is_at_end():
                return self._end_of_input()

            if self._peek() == '\n':
                start = self._location()
                self._advance()
                if self.bracket_depth == 0:
                    return self._make_token(TokenType.NEWLINE, None, start, "\\n")
                continue
            break

        start = self._location()
        ch = self._peek()

        if ch in '"\'':
            return self._scan_string()
        if _is_digit(ch):
            return self._scan_number()
        if _is_ident_start(ch):
            return self._scan_identifier_or_keyword()

        self._advance()

        # Two-character operators
        if ch == '=':
            if self._match('='):
                return self._make_token(TokenType.EQ, "==", start)
            return self._make_token(TokenType.ASSIGN, ch, start)
        if ch == '!':
            if self._match('='):
                return self._make_token(TokenType.NE, "!=", start)
            return self._make_token(TokenType.NOT, ch, start)
        if ch == '<':
            if self._match('='):
                return self._make_token(TokenType.LE, "<=", start)
            return self._make_token(TokenType.LT, ch, start)
        if ch == '>':
            if self._match('='):
                return self._make_token(TokenType.GE, ">=", start)
            return self._make_token(TokenType.GT, ch, start)
        if ch == ':':
            if self._match('='):
                return self._make_token(TokenType.WALRUS, ":=", start)
            return self._make_token(TokenType.COLON, ch, start)
        if ch == '*':
            if self._match('*'):
                return self._make_token(TokenType.DOUBLE_STAR, "**", start)
            return self._make_token(TokenType.STAR, ch, start)

        # Track bracket depth for implicit line continuation
        if ch == '(':
            self.bracket_depth += 1
            return self._make_token(TokenType.LPAREN, ch, start)
        if ch == ')':
            self.bracket_depth = max(0, self.bracket_depth - 1)
            return self._make_token(TokenType.RPAREN, ch, start)

        if ch in _SINGLE_CHAR_TOKENS:
            return self._make_token(_SINGLE_CHAR_TOKENS[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def next_token(self) -> Token:
        """Scan and return the next token, EOF repeatedly once exhausted."""
        token = self._scan_token()
        self._last_type = token.type
        return token

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        """Iterate lazily over tokens, ending with EOF."""
        if self._done:
            return
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                self._done = True
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens

    Raises:
        LexError: If a token is malformed
        ParseError: If indentation is inconsistent or mixes tabs and spaces
    """
    return Lexer(source, filename).tokenize()
