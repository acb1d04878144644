"""
boba - the core of a small indentation-based scripting language.

This module provides:
- Lexer: Tokenizes source text lazily
- Parser: Builds an AST from tokens
- Interpreter: Tree-walking evaluation with lexical scopes and closures
- Session: A persistent global environment for sequential evaluations

Usage:
    from boba import run, Session

    value = run('''
    fn add(x, y): x + y
    add(2, 3)
    ''')

    with Session() as session:
        session.execute("let (a, b) = (10, 42)")
        session.execute("(a, b) = (b, a)")
        result = session.execute("a")
        if not result.success:
            print(result.error_message)
"""

import logging
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("boba-script")
except PackageNotFoundError:
    __version__ = "unknown"

# Silent unless the host application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
    parse_source,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Literal,
    Identifier,
    TupleExpr,
    BinaryOp,
    UnaryOp,
    FunctionCall,
    MemberAccess,
    ConditionalExpr,
    AssignExpr,
    FunctionLiteral,
    # Patterns
    Pattern,
    IdentifierPattern,
    TuplePattern,
    # Statements
    Statement,
    LetStatement,
    AssignmentStatement,
    ExpressionStatement,
    WhileStatement,
    IfStatement,
    FunctionDef,
    Block,
    Program,
    # Helpers
    format_ast,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    ScriptError,
    LexError,
    ParseError,
    EvalError,
    UndefinedVariableError,
    RedeclarationError,
    DestructureError,
    ArityError,
    NotCallableError,
    MemberError,
    MathError,
    ExecutionInterrupted,
    StackOverflow,
)

from .config import (
    InterpreterConfig,
    load_config,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    Session,
    Value,
    ValueKind,
    Environment,
    Frame,
    run,
)

__all__ = [
    '__version__',

    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',

    # Lexer
    'Lexer',
    'tokenize',

    # Parser
    'Parser',
    'parse',
    'parse_source',

    # AST
    'AstNode',
    'AstVisitor',
    'Expression',
    'Literal',
    'Identifier',
    'TupleExpr',
    'BinaryOp',
    'UnaryOp',
    'FunctionCall',
    'MemberAccess',
    'ConditionalExpr',
    'AssignExpr',
    'FunctionLiteral',
    'Pattern',
    'IdentifierPattern',
    'TuplePattern',
    'Statement',
    'LetStatement',
    'AssignmentStatement',
    'ExpressionStatement',
    'WhileStatement',
    'IfStatement',
    'FunctionDef',
    'Block',
    'Program',
    'format_ast',

    # Errors
    'ErrorSeverity',
    'Diagnostic',
    'ScriptError',
    'LexError',
    'ParseError',
    'EvalError',
    'UndefinedVariableError',
    'RedeclarationError',
    'DestructureError',
    'ArityError',
    'NotCallableError',
    'MemberError',
    'MathError',
    'ExecutionInterrupted',
    'StackOverflow',

    # Configuration
    'InterpreterConfig',
    'load_config',

    # Runtime
    'Interpreter',
    'ExecutionResult',
    'Session',
    'Value',
    'ValueKind',
    'Environment',
    'Frame',
    'run',
]
