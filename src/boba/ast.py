"""
Abstract Syntax Tree (AST) node definitions for boba.

The AST represents the structure of a parsed program, which the
tree-walking interpreter then evaluates. Every node carries the source
span it was parsed from; nodes own their children and never point back
up the tree.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Union, Any
from abc import ABC
from .digits import int_to_decimal
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A literal value (none, int, float, string, bool)."""
    value: Union[None, int, float, str, bool]
    literal_type: TokenType  # INT_LITERAL, FLOAT_LITERAL, STRING_LITERAL, BOOL_LITERAL, NONE_LITERAL


@dataclass
class Identifier(Expression):
    """A variable or function name reference."""
    name: str


@dataclass
class TupleExpr(Expression):
    """A parenthesized tuple construction: (), (a,), (a, b, c)."""
    elements: List[Expression]


@dataclass
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, x and y)."""
    left: Expression
    operator: TokenType  # Includes AND, OR for logical operators
    right: Expression


@dataclass
class UnaryOp(Expression):
    """A unary operation (e.g., not x, -n)."""
    operator: TokenType
    operand: Expression


@dataclass
class FunctionCall(Expression):
    """A call (e.g., add(2, 3), make()(1))."""
    callee: Expression
    arguments: List[Expression]


@dataclass
class MemberAccess(Expression):
    """Positional tuple member access (e.g., t.0)."""
    object: Expression
    index: int


@dataclass
class ConditionalExpr(Expression):
    """A ternary conditional expression: condition ? a : b.

    Only the selected branch is evaluated.
    """
    condition: Expression
    true_branch: Expression
    false_branch: Expression


@dataclass
class AssignExpr(Expression):
    """Rebinds an existing name and yields the new value: x := x + 1."""
    name: str
    value: Expression


@dataclass
class FunctionLiteral(Expression):
    """A function value: parameter names plus a body block.

    Produced both by anonymous `fn(x): ...` expressions and by `fn name(...)`
    declarations, in which case `name` is set.
    """
    parameters: List[str]
    body: "Block"
    name: Optional[str] = None


# =============================================================================
# Pattern Nodes (assignment targets)
# =============================================================================

@dataclass
class Pattern(AstNode):
    """Base class for binding patterns."""
    pass


@dataclass
class IdentifierPattern(Pattern):
    """Binds a single name."""
    name: str


@dataclass
class TuplePattern(Pattern):
    """Destructures a tuple positionally, recursively."""
    elements: List[Pattern]


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class LetStatement(Statement):
    """A declaration: let x = 1, let (a, b) = t."""
    pattern: Pattern
    initializer: Expression


@dataclass
class AssignmentStatement(Statement):
    """A rebinding of existing names: x = 2, (a, b) = (b, a)."""
    target: Pattern
    value: Expression


@dataclass
class ExpressionStatement(Statement):
    """An expression used as a statement.

    A closed statement (`expr;`) is evaluated for effect and yields none.
    """
    expression: Expression
    closed: bool = False


@dataclass
class WhileStatement(Statement):
    """A while loop (e.g., while n > 0:)."""
    condition: Expression
    body: "Block"


@dataclass
class IfStatement(Statement):
    """A conditional block (e.g., if n > 0:). Its value is always none."""
    condition: Expression
    body: "Block"


@dataclass
class FunctionDef(Statement):
    """A named function declaration.

    Syntax:
        fn name(p1, p2):
            ...
    """
    name: str
    function: FunctionLiteral


@dataclass
class Block(AstNode):
    """A block of statements (indented block or a single inline statement).

    A trailing unclosed expression statement is split off into final_expression;
    its value is the value of the block.
    """
    statements: List[Statement]
    final_expression: Optional[Expression] = None


@dataclass
class Program(AstNode):
    """A complete source text: a sequence of top-level statements.

    Unlike Block, the last expression statement stays in `statements`; the
    interpreter reports the value of whichever statement ran last.
    """
    statements: List[Statement] = field(default_factory=list)


# =============================================================================
# Visitor Helpers
# =============================================================================

class FormatVisitor(AstVisitor):
    """Debug visitor that renders the AST structure as indented text."""

    def __init__(self, indent: int = 0, lines: Optional[List[str]] = None):
        self.indent = indent
        self.lines = lines if lines is not None else []

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def _child(self) -> "FormatVisitor":
        return FormatVisitor(self.indent + 2, self.lines)

    def generic_visit(self, node: AstNode) -> None:
        self._emit(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._emit(f"  {name}:")
                self._child().generic_visit(value)
            elif isinstance(value, list):
                self._emit(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        self._child().generic_visit(item)
                    else:
                        self._emit(f"    {item!r}")
                self._emit("  ]")
            elif isinstance(value, TokenType):
                self._emit(f"  {name}: {value.name}")
            elif isinstance(value, int) and not isinstance(value, bool):
                self._emit(f"  {name}: {int_to_decimal(value)}")
            else:
                self._emit(f"  {name}: {value!r}")


def format_ast(node: AstNode) -> str:
    """Render an AST node as an indented multi-line string."""
    visitor = FormatVisitor()
    visitor.generic_visit(node)
    return "\n".join(visitor.lines)
