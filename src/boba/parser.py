"""
Recursive descent parser for boba.

Converts a token stream into an Abstract Syntax Tree (AST).
Supports Python-style indentation-based blocks and single-line inline
blocks (`while n > 0: n = n - 1`).
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from .ast import (
    # Expressions
    Expression, Literal, Identifier, TupleExpr, BinaryOp, UnaryOp,
    FunctionCall, MemberAccess, ConditionalExpr, AssignExpr, FunctionLiteral,
    # Patterns
    Pattern, IdentifierPattern, TuplePattern,
    # Statements
    Statement, LetStatement, AssignmentStatement, ExpressionStatement,
    WhileStatement, IfStatement, FunctionDef, Block, Program,
)
from .config import InterpreterConfig
from .errors import (
    ScriptError,
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_assignment_target,
    error_nesting_too_deep,
)
from .lexer import Lexer
from .tokens import Token, TokenType, SourceSpan, SourceLocation

logger = logging.getLogger(__name__)


_LITERAL_TOKENS = (
    TokenType.INT_LITERAL,
    TokenType.FLOAT_LITERAL,
    TokenType.STRING_LITERAL,
    TokenType.BOOL_LITERAL,
    TokenType.NONE_LITERAL,
)


class Parser:
    """
    Recursive descent parser for boba with Python-style indentation.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    Tokens may be any iterable; they are pulled lazily, so a Lexer can be
    passed directly. The parser implements precedence climbing for binary
    operators:
        Lowest:  :=   (rebinding, right-associative)
                 ? :  (conditional, right-associative)
                 or
                 and
                 == !=
                 < > <= >=
                 + -
                 * / %
                 unary (not ! - +)
                 ** (power, right-associative, exponent may be unary)
        Highest: call, member access (t.0)
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.OR: 1,
        TokenType.AND: 2,
        TokenType.EQ: 3,
        TokenType.NE: 3,
        TokenType.LT: 4,
        TokenType.GT: 4,
        TokenType.LE: 4,
        TokenType.GE: 4,
        TokenType.PLUS: 5,
        TokenType.MINUS: 5,
        TokenType.STAR: 6,
        TokenType.SLASH: 6,
        TokenType.PERCENT: 6,
    }

    def __init__(self, tokens: Iterable[Token], filename: Optional[str] = None,
                 config: Optional[InterpreterConfig] = None):
        self._stream: Iterator[Token] = iter(tokens)
        self.tokens: List[Token] = []
        self.filename = filename
        self.config = config or InterpreterConfig()
        self.pos = 0
        self._depth = 0

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _fill(self, idx: int) -> None:
        """Pull tokens from the stream until index idx is buffered or EOF."""
        while len(self.tokens) <= idx:
            if self.tokens and self.tokens[-1].type == TokenType.EOF:
                return
            token = next(self._stream, None)
            if token is None:
                # Stream ended without EOF: synthesize one
                if self.tokens:
                    end = self.tokens[-1].span.end
                else:
                    end = SourceLocation(1, 1, 0, self.filename)
                token = Token(TokenType.EOF, None, "", SourceSpan(end, end))
            self.tokens.append(token)

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        self._fill(idx)
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _current(self) -> Token:
        return self._peek(0)

    def _previous(self) -> Optional[Token]:
        if self.pos == 0:
            return None
        return self.tokens[self.pos - 1]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _skip_newlines(self) -> None:
        while self._check(TokenType.NEWLINE):
            self._advance()

    def _expect_newline_or_eof(self) -> None:
        """Expect the end of a statement."""
        if self._check(TokenType.EOF) or self._check(TokenType.DEDENT):
            return
        if self._match(TokenType.NEWLINE):
            return
        # A function literal with an indented body already consumed its block
        previous = self._previous()
        if previous is not None and previous.type in (TokenType.NEWLINE, TokenType.DEDENT):
            return
        self._error("newline or end of input")

    def _error(self, expected: str) -> None:
        """Raise a parser error."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        raise error_unexpected_token(expected, token.describe(), token.span)

    def _block_closed(self) -> bool:
        """True right after a function literal's indented body was consumed."""
        previous = self._previous()
        return previous is not None and previous.type == TokenType.DEDENT

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        end_token = self.tokens[max(0, self.pos - 1)]
        return SourceSpan(start.span.start, end_token.span.end)

    @contextmanager
    def _nested(self, token: Token):
        """Track one level of syntactic nesting against max_nesting."""
        self._depth += 1
        try:
            if self._depth > self.config.max_nesting:
                raise error_nesting_too_deep(self.config.max_nesting, token.span)
            yield
        finally:
            self._depth -= 1

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression.

        Rebinding sits at the lowest precedence, then conditionals:
            name := value
            condition ? value : other_value
        """
        with self._nested(self._current()):
            return self._parse_assign_expr()

    def _parse_assign_expr(self) -> Expression:
        target = self._parse_conditional_expr()
        if self._block_closed() or not self._match(TokenType.WALRUS):
            return target
        if not isinstance(target, Identifier):
            raise error_invalid_assignment_target(target.span)
        # Right-associative: a := b := c
        value = self._parse_expression()
        return AssignExpr(
            span=SourceSpan(target.span.start, value.span.end),
            name=target.name,
            value=value
        )

    def _parse_conditional_expr(self) -> Expression:
        condition = self._parse_binary_expr(0)
        if self._block_closed() or not self._match(TokenType.QUESTION):
            return condition

        true_branch = self._parse_expression()
        self._consume(TokenType.COLON, "':' in conditional expression")
        # Right-associative: a ? b : c ? d : e
        false_branch = self._parse_expression()

        return ConditionalExpr(
            span=SourceSpan(condition.span.start, false_branch.span.end),
            condition=condition,
            true_branch=true_branch,
            false_branch=false_branch
        )

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence or self._block_closed():
                break

            self._advance()  # consume operator
            right = self._parse_binary_expr(precedence + 1)

            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right
            )

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (not, !, -, +)."""
        if self._check_any(TokenType.NOT, TokenType.MINUS, TokenType.PLUS):
            op = self._advance()
            with self._nested(op):
                operand = self._parse_unary_expr()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand
            )

        return self._parse_power_expr()

    def _parse_power_expr(self) -> Expression:
        """Parse `base ** exponent`; binds tighter than a unary on its left."""
        base = self._parse_postfix_expr()
        op = None if self._block_closed() else self._match(TokenType.DOUBLE_STAR)
        if op is None:
            return base

        with self._nested(op):
            exponent = self._parse_unary_expr()
        return BinaryOp(
            span=SourceSpan(base.span.start, exponent.span.end),
            left=base,
            operator=TokenType.DOUBLE_STAR,
            right=exponent
        )

    def _parse_postfix_expr(self) -> Expression:
        """Parse postfix expressions (calls, tuple member access)."""
        expr = self._parse_primary_expr()

        while True:
            if self._block_closed():
                break
            if self._check(TokenType.LPAREN):
                expr = self._parse_call(expr)
            elif self._check(TokenType.DOT):
                self._advance()  # consume '.'
                index_token = self._consume(TokenType.INT_LITERAL, "tuple member index")
                expr = MemberAccess(
                    span=SourceSpan(expr.span.start, index_token.span.end),
                    object=expr,
                    index=index_token.value
                )
            else:
                break

        return expr

    def _parse_call(self, callee: Expression) -> FunctionCall:
        """Parse function call arguments."""
        args = self._parse_arguments()
        return FunctionCall(
            span=SourceSpan(callee.span.start, self.tokens[self.pos - 1].span.end),
            callee=callee,
            arguments=args
        )

    def _parse_arguments(self) -> List[Expression]:
        self._consume(TokenType.LPAREN, "'('")

        args = []
        if not self._check(TokenType.RPAREN):
            args.append(self._parse_expression())
            while self._match(TokenType.COMMA):
                if self._check(TokenType.RPAREN):
                    break  # Allow trailing comma
                args.append(self._parse_expression())

        self._consume(TokenType.RPAREN, "')'")
        return args

    def _parse_primary_expr(self) -> Expression:
        """Parse primary expressions (literals, identifiers, groups, tuples, fn)."""
        token = self._current()

        if token.type in _LITERAL_TOKENS:
            self._advance()
            return Literal(span=token.span, value=token.value, literal_type=token.type)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.LPAREN:
            return self._parse_group_or_tuple()

        if token.type == TokenType.FN:
            return self._parse_function_literal()

        self._error("expression")

    def _parse_group_or_tuple(self) -> Expression:
        """Parse `()`, `(e)`, `(e,)` or `(e1, e2, ...)`.

        A single parenthesized expression without a trailing comma is a
        grouping, not a one-element tuple.
        """
        start = self._advance()  # consume '('

        if self._match(TokenType.RPAREN):
            return TupleExpr(span=self._span_from(start), elements=[])

        first = self._parse_expression()
        if self._match(TokenType.RPAREN):
            return first

        elements = [first]
        while self._match(TokenType.COMMA):
            if self._check(TokenType.RPAREN):
                break  # trailing comma
            elements.append(self._parse_expression())

        self._consume(TokenType.RPAREN, "',' or ')'")
        return TupleExpr(span=self._span_from(start), elements=elements)

    def _parse_parameters(self) -> List[str]:
        """Parse `(p1, p2, ...)` as a list of distinct names."""
        self._consume(TokenType.LPAREN, "'('")
        parameters: List[str] = []
        if not self._check(TokenType.RPAREN):
            while True:
                token = self._consume(TokenType.IDENTIFIER, "parameter name")
                if token.value in parameters:
                    raise error_unexpected_token(
                        "a distinct parameter name", token.describe(), token.span
                    )
                parameters.append(token.value)
                if not self._match(TokenType.COMMA) or self._check(TokenType.RPAREN):
                    break
        self._consume(TokenType.RPAREN, "')'")
        return parameters

    def _parse_function_literal(self) -> FunctionLiteral:
        """Parse an anonymous function: `fn(x): x + 1` or an indented body."""
        start = self._advance()  # consume 'fn'
        if self._check(TokenType.IDENTIFIER):
            self._error("'(' (named functions are declared as statements)")
        parameters = self._parse_parameters()
        self._consume(TokenType.COLON, "':'")

        if self._check(TokenType.NEWLINE):
            body = self._parse_block()
        else:
            expr = self._parse_expression()
            body = Block(span=expr.span, statements=[], final_expression=expr)

        return FunctionLiteral(span=self._span_from(start), parameters=parameters, body=body)

    # =========================================================================
    # Pattern Parsing
    # =========================================================================

    def _parse_pattern(self) -> Pattern:
        """Parse a binding pattern: a name or a parenthesized tuple of patterns."""
        token = self._current()

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return IdentifierPattern(span=token.span, name=token.value)

        if token.type != TokenType.LPAREN:
            self._error("name or '(' in pattern")

        start = self._advance()
        with self._nested(start):
            if self._match(TokenType.RPAREN):
                return TuplePattern(span=self._span_from(start), elements=[])

            first = self._parse_pattern()
            if self._match(TokenType.RPAREN):
                return first

            elements = [first]
            while self._match(TokenType.COMMA):
                if self._check(TokenType.RPAREN):
                    break
                elements.append(self._parse_pattern())
            self._consume(TokenType.RPAREN, "',' or ')'")
        return TuplePattern(span=self._span_from(start), elements=elements)

    def _to_pattern(self, expr: Expression) -> Pattern:
        """Reinterpret a parsed expression as an assignment target."""
        if isinstance(expr, Identifier):
            return IdentifierPattern(span=expr.span, name=expr.name)
        if isinstance(expr, TupleExpr):
            return TuplePattern(
                span=expr.span,
                elements=[self._to_pattern(e) for e in expr.elements]
            )
        raise error_invalid_assignment_target(expr.span)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement."""
        self._skip_newlines()
        token = self._current()

        if token.type == TokenType.LET:
            return self._parse_let_statement()

        if token.type == TokenType.WHILE:
            return self._parse_while_statement()

        if token.type == TokenType.IF:
            return self._parse_if_statement()

        if token.type == TokenType.FN and self._peek(1).type == TokenType.IDENTIFIER:
            return self._parse_function_def()

        # Expression statement or assignment
        expr = self._parse_expression()

        if not self._block_closed() and self._match(TokenType.ASSIGN):
            target = self._to_pattern(expr)
            value = self._parse_expression()
            self._expect_newline_or_eof()
            return AssignmentStatement(
                span=SourceSpan(expr.span.start, value.span.end),
                target=target,
                value=value
            )

        # `expr;` discards the value
        closed = not self._block_closed() and self._match(TokenType.SEMICOLON) is not None
        span = self._span_from(token) if closed else expr.span
        self._expect_newline_or_eof()
        return ExpressionStatement(span=span, expression=expr, closed=closed)

    def _parse_let_statement(self) -> LetStatement:
        """Parse `let pattern = expr`."""
        start = self._advance()  # consume 'let'
        pattern = self._parse_pattern()
        self._consume(TokenType.ASSIGN, "'='")
        initializer = self._parse_expression()
        span = self._span_from(start)
        self._expect_newline_or_eof()
        return LetStatement(span=span, pattern=pattern, initializer=initializer)

    def _parse_while_statement(self) -> WhileStatement:
        """Parse `while condition:` followed by a block."""
        start = self._advance()  # consume 'while'
        condition = self._parse_expression()
        self._consume(TokenType.COLON, "':'")
        body = self._parse_block()
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_if_statement(self) -> IfStatement:
        """Parse `if condition:` followed by a block."""
        start = self._advance()  # consume 'if'
        condition = self._parse_expression()
        self._consume(TokenType.COLON, "':'")
        body = self._parse_block()
        return IfStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_function_def(self) -> FunctionDef:
        """Parse `fn name(p1, p2):` followed by a block."""
        start = self._advance()  # consume 'fn'
        name = self._consume(TokenType.IDENTIFIER, "function name").value
        parameters = self._parse_parameters()
        self._consume(TokenType.COLON, "':'")
        body = self._parse_block()

        span = self._span_from(start)
        return FunctionDef(
            span=span,
            name=name,
            function=FunctionLiteral(span=span, parameters=parameters, body=body, name=name)
        )

    def _parse_block(self) -> Block:
        """Parse a block after ':'.

        Either an indented block on the following lines, or a single
        statement on the same line.
        """
        start = self._current()
        with self._nested(start):
            if self._match(TokenType.NEWLINE):
                self._skip_newlines()
                self._consume(TokenType.INDENT, "indented block")
                statements = []
                while not self._check(TokenType.DEDENT) and not self._is_at_end():
                    statements.append(self._parse_statement())
                    self._skip_newlines()
                self._consume(TokenType.DEDENT, "end of block")
            else:
                statements = [self._parse_statement()]

        # The last unclosed expression statement supplies the block's value
        final_expr = None
        last = statements[-1] if statements else None
        if isinstance(last, ExpressionStatement) and not last.closed:
            final_expr = last.expression
            statements = statements[:-1]

        return Block(
            span=self._span_from(start),
            statements=statements,
            final_expression=final_expr
        )

    def parse_program(self) -> Program:
        """Parse a complete program."""
        start = self._current()
        statements = []

        self._skip_newlines()
        while not self._is_at_end():
            statements.append(self._parse_statement())
            self._skip_newlines()

        return Program(span=self._span_from(start), statements=statements)


def parse(tokens: Iterable[Token], filename: Optional[str] = None,
          config: Optional[InterpreterConfig] = None) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: Tokens from the lexer, as a list or a lazy iterable
        filename: Optional filename for error messages
        config: Optional interpreter configuration (nesting limit)

    Returns:
        Parsed Program AST

    Raises:
        LexError: If the token stream hits a malformed token
        ParseError: If parsing fails
    """
    parser = Parser(tokens, filename, config)
    try:
        program = parser.parse_program()
    except RecursionError:
        raise error_nesting_too_deep(parser.config.max_nesting, parser._current().span) from None
    logger.debug("parsed %d top-level statement(s) from %s",
                 len(program.statements), filename or "<source>")
    return program


def parse_source(source: str, filename: Optional[str] = None,
                 config: Optional[InterpreterConfig] = None) -> Program:
    """Lex and parse source text, attaching source lines to any diagnostic."""
    lexer = Lexer(source, filename)
    try:
        return parse(lexer, filename, config)
    except ScriptError as e:
        raise e.attach_source(lexer.lines)
