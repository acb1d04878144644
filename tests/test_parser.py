"""
Unit tests for the boba parser.
"""

import textwrap

import pytest
from boba import (
    tokenize, parse, parse_source, Lexer, TokenType, ParseError, LexError,
    InterpreterConfig,
    Literal, Identifier, TupleExpr, BinaryOp, UnaryOp, FunctionCall,
    MemberAccess, ConditionalExpr, AssignExpr, FunctionLiteral,
    IdentifierPattern, TuplePattern,
    LetStatement, AssignmentStatement, ExpressionStatement, WhileStatement,
    IfStatement, FunctionDef, Program, format_ast,
)


def parse_src(source: str) -> Program:
    return parse_source(textwrap.dedent(source))


def parse_expr(source: str):
    program = parse_source(source)
    assert len(program.statements) == 1
    stmt = program.statements[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


class TestLiterals:
    """Test parsing of literal expressions."""

    def test_int_literal(self):
        """Int literal keeps its value and type."""
        expr = parse_expr("42")
        assert isinstance(expr, Literal)
        assert expr.value == 42
        assert expr.literal_type == TokenType.INT_LITERAL

    def test_float_forms(self):
        """All three float forms parse as float literals."""
        for source, value in (("12.5", 12.5), ("14.", 14.0), ("20f", 20.0)):
            expr = parse_expr(source)
            assert expr.literal_type == TokenType.FLOAT_LITERAL
            assert expr.value == value

    def test_string_bool_none(self):
        """String, bool and none literals."""
        assert parse_expr("'hi'").value == "hi"
        assert parse_expr("true").value is True
        assert parse_expr("none").literal_type == TokenType.NONE_LITERAL


class TestTuples:
    """Test tuple construction versus grouping."""

    def test_multi_element_tuple(self):
        """(5, 'hello', 8.9) is a three-element tuple."""
        expr = parse_expr("(5, 'hello', 8.9)")
        assert isinstance(expr, TupleExpr)
        assert [e.value for e in expr.elements] == [5, "hello", 8.9]

    def test_parenthesized_scalar_is_grouping(self):
        """(5) is the integer 5, not a tuple."""
        expr = parse_expr("(5)")
        assert isinstance(expr, Literal)
        assert expr.value == 5

    def test_one_tuple_needs_trailing_comma(self):
        """(5,) is a one-element tuple."""
        expr = parse_expr("(5,)")
        assert isinstance(expr, TupleExpr)
        assert len(expr.elements) == 1

    def test_empty_tuple(self):
        """() is the empty tuple."""
        expr = parse_expr("()")
        assert isinstance(expr, TupleExpr)
        assert expr.elements == []

    def test_trailing_comma_multi(self):
        """A trailing comma after several elements is allowed."""
        expr = parse_expr("(1, 2,)")
        assert len(expr.elements) == 2

    def test_nested_tuple(self):
        """Tuples nest."""
        expr = parse_expr("((1, 2), 3)")
        assert isinstance(expr.elements[0], TupleExpr)

    def test_tuple_across_lines(self):
        """A tuple may span lines inside its parentheses."""
        expr = parse_expr("(1,\n 2,\n 3)")
        assert len(expr.elements) == 3

    def test_unclosed_tuple(self):
        """Missing ')' is an unexpected end of input."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("(1, 2")
        assert exc_info.value.code == "E102"


class TestPrecedence:
    """Test operator precedence and associativity."""

    def test_multiplicative_over_additive(self):
        """1 + 2 * 3 groups as 1 + (2 * 3)."""
        expr = parse_expr("1 + 2 * 3")
        assert expr.operator == TokenType.PLUS
        assert expr.right.operator == TokenType.STAR

    def test_left_associative(self):
        """10 - 3 - 2 groups as (10 - 3) - 2."""
        expr = parse_expr("10 - 3 - 2")
        assert expr.operator == TokenType.MINUS
        assert isinstance(expr.left, BinaryOp)
        assert isinstance(expr.right, Literal)

    def test_comparison_over_equality(self):
        """a < b == c < d groups as (a < b) == (c < d)."""
        expr = parse_expr("a < b == c < d")
        assert expr.operator == TokenType.EQ
        assert expr.left.operator == TokenType.LT
        assert expr.right.operator == TokenType.LT

    def test_and_over_or(self):
        """a or b and c groups as a or (b and c)."""
        expr = parse_expr("a or b and c")
        assert expr.operator == TokenType.OR
        assert expr.right.operator == TokenType.AND

    def test_unary_minus(self):
        """-x * y groups as (-x) * y."""
        expr = parse_expr("-x * y")
        assert expr.operator == TokenType.STAR
        assert isinstance(expr.left, UnaryOp)

    def test_not_and_bang(self):
        """not and ! both produce a NOT unary."""
        assert parse_expr("not x").operator == TokenType.NOT
        assert parse_expr("!x").operator == TokenType.NOT

    def test_unary_plus(self):
        """+x is a PLUS unary; +x * y groups as (+x) * y."""
        assert parse_expr("+x").operator == TokenType.PLUS
        expr = parse_expr("+x * y")
        assert expr.operator == TokenType.STAR
        assert isinstance(expr.left, UnaryOp)

    def test_power_binds_tighter_than_unary(self):
        """-2 ** 2 groups as -(2 ** 2)."""
        expr = parse_expr("-2 ** 2")
        assert isinstance(expr, UnaryOp)
        assert expr.operand.operator == TokenType.DOUBLE_STAR

    def test_power_right_associative(self):
        """2 ** 3 ** 2 groups as 2 ** (3 ** 2)."""
        expr = parse_expr("2 ** 3 ** 2")
        assert isinstance(expr.left, Literal)
        assert expr.right.operator == TokenType.DOUBLE_STAR

    def test_power_unary_exponent(self):
        """2 ** -1 has a unary exponent."""
        expr = parse_expr("2 ** -1")
        assert isinstance(expr.right, UnaryOp)

    def test_conditional(self):
        """c ? a : b is a conditional expression."""
        expr = parse_expr("x > 0 ? 'pos' : 'neg'")
        assert isinstance(expr, ConditionalExpr)
        assert expr.condition.operator == TokenType.GT

    def test_conditional_right_associative(self):
        """a ? b : c ? d : e nests in the false branch."""
        expr = parse_expr("a ? b : c ? d : e")
        assert isinstance(expr.false_branch, ConditionalExpr)

    def test_rebind_lowest_precedence(self):
        """x := c ? a : b rebinds x to the whole conditional."""
        expr = parse_expr("x := c ? a : b")
        assert isinstance(expr, AssignExpr)
        assert expr.name == "x"
        assert isinstance(expr.value, ConditionalExpr)

    def test_rebind_right_associative(self):
        """a := b := 1 nests in the value."""
        expr = parse_expr("a := b := 1")
        assert expr.name == "a"
        assert isinstance(expr.value, AssignExpr)
        assert expr.value.name == "b"

    def test_rebind_inside_expression(self):
        """A parenthesized rebind is an operand."""
        expr = parse_expr("(n := n + 1) * 2")
        assert expr.operator == TokenType.STAR
        assert isinstance(expr.left, AssignExpr)

    def test_rebind_target_must_be_name(self):
        """Only a plain name can be rebound with :=."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("(a, b) := (1, 2)")
        assert exc_info.value.code == "E103"

    def test_grouping_overrides(self):
        """(1 + 2) * 3 groups the sum first."""
        expr = parse_expr("(1 + 2) * 3")
        assert expr.operator == TokenType.STAR
        assert expr.left.operator == TokenType.PLUS


class TestPostfix:
    """Test calls and member access."""

    def test_call(self):
        """f(1, 2) is a call with two arguments."""
        expr = parse_expr("f(1, 2)")
        assert isinstance(expr, FunctionCall)
        assert expr.callee.name == "f"
        assert len(expr.arguments) == 2

    def test_chained_call(self):
        """f(1)(2) calls the result of f(1)."""
        expr = parse_expr("f(1)(2)")
        assert isinstance(expr.callee, FunctionCall)

    def test_member_access(self):
        """t.1 is member access with an int index."""
        expr = parse_expr("t.1")
        assert isinstance(expr, MemberAccess)
        assert expr.index == 1

    def test_chained_member_access(self):
        """t.0.1 accesses nested members."""
        expr = parse_expr("t.0.1")
        assert expr.index == 1
        assert isinstance(expr.object, MemberAccess)
        assert expr.object.index == 0

    def test_member_access_requires_index(self):
        """t.x is a syntax error."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("t.x")
        assert exc_info.value.code == "E101"


class TestStatements:
    """Test statement parsing."""

    def test_let(self):
        """let binds a name pattern."""
        stmt = parse_src("let x = 1").statements[0]
        assert isinstance(stmt, LetStatement)
        assert isinstance(stmt.pattern, IdentifierPattern)
        assert stmt.pattern.name == "x"

    def test_let_tuple_pattern(self):
        """let (x, y, z) = t destructures."""
        stmt = parse_src("let (x, y, z) = t").statements[0]
        assert isinstance(stmt.pattern, TuplePattern)
        assert [p.name for p in stmt.pattern.elements] == ["x", "y", "z"]

    def test_let_nested_pattern(self):
        """Patterns nest."""
        stmt = parse_src("let (a, (b, c)) = t").statements[0]
        assert isinstance(stmt.pattern.elements[1], TuplePattern)

    def test_let_one_tuple_pattern(self):
        """(x,) is a one-element pattern, (x) is just x."""
        assert isinstance(parse_src("let (x,) = t").statements[0].pattern, TuplePattern)
        assert isinstance(parse_src("let (x) = t").statements[0].pattern, IdentifierPattern)

    def test_assignment(self):
        """name = expr is an assignment."""
        stmt = parse_src("x = 2").statements[0]
        assert isinstance(stmt, AssignmentStatement)
        assert stmt.target.name == "x"

    def test_swap_assignment(self):
        """(a, b) = (b, a) assigns to a tuple pattern."""
        stmt = parse_src("(a, b) = (b, a)").statements[0]
        assert isinstance(stmt, AssignmentStatement)
        assert isinstance(stmt.target, TuplePattern)
        assert isinstance(stmt.value, TupleExpr)

    def test_invalid_assignment_target(self):
        """Only names and tuples of names can be assigned."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("f(x) = 1")
        assert exc_info.value.code == "E103"

    def test_literal_assignment_target(self):
        """A literal is not an assignment target."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("(a, 1) = (1, 2)")
        assert exc_info.value.code == "E103"

    def test_while_block(self):
        """while with an indented body."""
        program = parse_src("""
            while n > 0:
                n = n - 1
                print(n)
        """)
        stmt = program.statements[0]
        assert isinstance(stmt, WhileStatement)
        assert len(stmt.body.statements) == 1
        assert isinstance(stmt.body.final_expression, FunctionCall)

    def test_while_inline(self):
        """while with a same-line body."""
        stmt = parse_src("while n > 0: n = n - 1").statements[0]
        assert isinstance(stmt, WhileStatement)
        assert isinstance(stmt.body.statements[0], AssignmentStatement)

    def test_if_block(self):
        """if with an indented body."""
        program = parse_src("""
            if n > 0:
                n = n - 1
                n
        """)
        stmt = program.statements[0]
        assert isinstance(stmt, IfStatement)
        assert stmt.condition.operator == TokenType.GT
        assert len(stmt.body.statements) == 1
        assert isinstance(stmt.body.final_expression, Identifier)

    def test_if_inline(self):
        """if with a same-line body."""
        stmt = parse_src("if ok: print(1)").statements[0]
        assert isinstance(stmt, IfStatement)
        assert isinstance(stmt.body.final_expression, FunctionCall)

    def test_if_needs_colon(self):
        """The if condition is followed by a colon."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("if x print(1)")
        assert exc_info.value.code == "E101"

    def test_closed_expression_statement(self):
        """A trailing semicolon marks the statement closed."""
        stmt = parse_source("f(1);").statements[0]
        assert isinstance(stmt, ExpressionStatement)
        assert stmt.closed
        assert isinstance(stmt.expression, FunctionCall)
        assert not parse_source("f(1)").statements[0].closed

    def test_closed_expression_is_not_block_value(self):
        """A closed last line leaves the block without a final expression."""
        program = parse_src("""
            fn f(n):
                n + 1;
        """)
        body = program.statements[0].function.body
        assert body.final_expression is None
        assert body.statements[0].closed

    def test_nothing_after_semicolon(self):
        """A semicolon ends the line."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("x; y")
        assert exc_info.value.code == "E101"

    def test_semicolon_only_closes_expressions(self):
        """let statements are not closed with a semicolon."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("let x = 1;")
        assert exc_info.value.code == "E101"

    def test_fn_inline(self):
        """fn add(x, y): x + y has its expression as final value."""
        stmt = parse_src("fn add(x, y): x + y").statements[0]
        assert isinstance(stmt, FunctionDef)
        assert stmt.name == "add"
        assert stmt.function.parameters == ["x", "y"]
        assert stmt.function.name == "add"
        assert stmt.function.body.statements == []
        assert isinstance(stmt.function.body.final_expression, BinaryOp)

    def test_fn_block(self):
        """A function body block ending in a statement has no final value."""
        program = parse_src("""
            fn bump(n):
                let m = n + 1
                m = m * 2
        """)
        body = program.statements[0].function.body
        assert len(body.statements) == 2
        assert body.final_expression is None

    def test_fn_no_params(self):
        """fn f(): 1 has no parameters."""
        stmt = parse_src("fn f(): 1").statements[0]
        assert stmt.function.parameters == []

    def test_duplicate_parameters(self):
        """Parameter names must be distinct."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("fn f(x, x): x")
        assert exc_info.value.code == "E101"

    def test_anonymous_fn_inline(self):
        """fn(x): x + 1 is a function literal expression."""
        stmt = parse_src("let inc = fn(x): x + 1").statements[0]
        assert isinstance(stmt.initializer, FunctionLiteral)
        assert stmt.initializer.name is None

    def test_anonymous_fn_block(self):
        """A function literal may have an indented body."""
        program = parse_src("""
            let f = fn(x):
                let y = x * 2
                y + 1
            f(3)
        """)
        assert len(program.statements) == 2
        literal = program.statements[0].initializer
        assert len(literal.body.statements) == 1
        assert literal.body.final_expression is not None

    def test_block_literal_ends_expression(self):
        """A line after an indented function body starts a new statement."""
        program = parse_src("""
            let f = fn():
                1
            (a, b) = (b, a)
            -5
        """)
        assert len(program.statements) == 3
        assert isinstance(program.statements[0].initializer, FunctionLiteral)
        assert isinstance(program.statements[1], AssignmentStatement)
        assert isinstance(program.statements[2].expression, UnaryOp)

    def test_nested_blocks(self):
        """Blocks nest by indentation."""
        program = parse_src("""
            fn outer(n):
                while n > 0:
                    n = n - 1
                n
            outer(3)
        """)
        outer = program.statements[0].function
        assert isinstance(outer.body.statements[0], WhileStatement)
        assert isinstance(outer.body.final_expression, Identifier)
        assert len(program.statements) == 2

    def test_missing_block(self):
        """A colon followed by a newline needs an indented block."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("while x:\ny")
        assert exc_info.value.code == "E101"

    def test_two_expressions_on_a_line(self):
        """Statements are separated by newlines."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("x y")
        assert exc_info.value.code == "E101"

    def test_blank_lines_and_comments(self):
        """Blank lines and comments between statements are ignored."""
        program = parse_src("""
            # setup
            let a = 10

            let b = 42  # answer
        """)
        assert len(program.statements) == 2


class TestParserErrors:
    """Test diagnostics and limits."""

    def test_error_carries_span_and_source(self):
        """Parse errors carry a span and the offending line."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("let x = 1\nlet = 2", filename="bad.boba")
        error = exc_info.value
        assert error.span.start.line == 2
        assert error.diagnostic.source_line == "let = 2"
        assert "bad.boba:2" in str(error)

    def test_lex_error_surfaces_through_parser(self):
        """Lexer failures propagate out of parse_source unchanged."""
        with pytest.raises(LexError):
            parse_source("let s = 'open")

    def test_nesting_limit(self):
        """Nesting deeper than max_nesting is rejected."""
        config = InterpreterConfig(max_nesting=10)
        with pytest.raises(ParseError) as exc_info:
            parse_source("(" * 20 + "1" + ")" * 20, config=config)
        assert exc_info.value.code == "E106"

    def test_deep_nesting_default_limit(self):
        """Pathological nesting fails cleanly with the default config."""
        with pytest.raises(ParseError) as exc_info:
            parse_source("-" * 5000 + "1")
        assert exc_info.value.code == "E106"

    def test_nesting_within_limit(self):
        """Moderate nesting parses."""
        expr = parse_expr("(" * 20 + "1" + ")" * 20)
        assert isinstance(expr, Literal)


class TestParserApi:
    """Test parse() entry points."""

    def test_parse_token_list(self):
        """parse accepts a token list."""
        program = parse(tokenize("let x = 1\nx"))
        assert len(program.statements) == 2

    def test_parse_lazy_lexer(self):
        """parse accepts a Lexer as a lazy token source."""
        program = parse(Lexer("let x = 1"))
        assert isinstance(program.statements[0], LetStatement)

    def test_deterministic(self):
        """Identical sources yield identical trees."""
        source = "let (a, b) = (1, 2)\nwhile a < b: a = a + 1\n"
        assert parse_source(source) == parse_source(source)

    def test_format_ast(self):
        """format_ast renders node names and fields."""
        text = format_ast(parse_source("let x = 1 + 2"))
        assert "Program" in text
        assert "LetStatement" in text
        assert "operator: PLUS" in text

    def test_format_ast_huge_int(self):
        """format_ast prints int literals past the host digit limit."""
        digits = "1" * 5000
        text = format_ast(parse_source(digits))
        assert "value: " + digits in text
