"""
Tree-walking interpreter for boba programs.

Evaluates AST nodes against an Environment. Evaluation is strictly
sequential and left-to-right; every statement passes through a
cooperative checkpoint where a host step hook or step budget may stop
execution.
"""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, TextIO

from .values import (
    Value, ValueKind, Closure, NativeFunction,
    int_val, float_val, bool_val, string_val, tuple_val, function_val,
    NONE, TRUE, FALSE,
)
from .environment import Environment
from .operators import binary_op, unary_op

from ..ast import (
    AstNode, Program, Block,
    Statement, LetStatement, AssignmentStatement, ExpressionStatement,
    WhileStatement, IfStatement, FunctionDef,
    Expression, Literal, Identifier, TupleExpr, BinaryOp, UnaryOp,
    FunctionCall, MemberAccess, ConditionalExpr, AssignExpr, FunctionLiteral,
    Pattern, IdentifierPattern, TuplePattern,
)
from ..config import InterpreterConfig
from ..parser import parse_source
from ..errors import (
    ScriptError,
    error_condition_type,
    error_logical_operand,
    error_member_type,
    error_member_index,
    error_not_callable,
    error_arity,
    error_destructure_arity,
    error_destructure_type,
    error_redeclaration,
    error_undefined_variable,
    error_interrupted,
    error_stack_overflow,
)
from ..tokens import TokenType, operator_symbol

logger = logging.getLogger(__name__)

# Called with each statement about to run and the environment; a falsy
# return stops execution with ExecutionInterrupted.
StepHook = Callable[[AstNode, Environment], bool]


@dataclass
class ExecutionResult:
    """Result of executing a source text in a Session."""
    success: bool
    value: Value = NONE
    error: Optional[ScriptError] = None

    @property
    def error_message(self) -> Optional[str]:
        """The formatted diagnostic, if execution failed."""
        if self.error is None:
            return None
        return self.error.diagnostic.format()

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None


class Interpreter:
    """
    Tree-walking interpreter.

    Evaluates AST nodes by dispatching to node-specific methods.
    """

    def __init__(self, config: Optional[InterpreterConfig] = None,
                 step_hook: Optional[StepHook] = None,
                 output: Optional[TextIO] = None):
        """
        Initialize the interpreter.

        Args:
            config: Resource limits; defaults to InterpreterConfig()
            step_hook: Optional checkpoint consulted before every statement
            output: Stream for environments created by this interpreter
        """
        self.config = config or InterpreterConfig()
        self.step_hook = step_hook
        self.output = output if output is not None else sys.stdout
        self._steps = 0
        self._call_depth = 0
        self._last_node: Optional[AstNode] = None

    def create_environment(self) -> Environment:
        """Create a fresh global environment writing to this interpreter's output."""
        return Environment.create_global(self.output)

    # =========================================================================
    # Entry points
    # =========================================================================

    @contextmanager
    def _guarded(self, env: Environment):
        """
        Run one top-level evaluation.

        Resets the step budget, converts host stack exhaustion into
        StackOverflow and always leaves env at the frame it started in.
        """
        start_frame = env.current
        self._steps = 0
        self._call_depth = 0
        self._last_node = None
        try:
            yield
        except RecursionError:
            span = self._last_node.span if self._last_node is not None else None
            logger.debug("stack overflow at %s", span)
            raise error_stack_overflow(span) from None
        finally:
            env.current = start_frame
            self._call_depth = 0

    def run(self, program: Program, env: Optional[Environment] = None) -> Value:
        """
        Execute a program's statements in order.

        Returns:
            The value of the last statement executed (an expression
            statement's value, otherwise none).
        """
        if env is None:
            env = self.create_environment()
        result = NONE
        with self._guarded(env):
            for stmt in program.statements:
                result = self._execute_statement(stmt, env)
        return result

    def execute(self, stmt: Statement, env: Environment) -> Value:
        """Execute a single statement."""
        with self._guarded(env):
            result = self._execute_statement(stmt, env)
        return result

    def evaluate(self, expr: Expression, env: Environment) -> Value:
        """Evaluate a single expression."""
        with self._guarded(env):
            result = self._evaluate(expr, env)
        return result

    # =========================================================================
    # Statements
    # =========================================================================

    def _checkpoint(self, node: AstNode, env: Environment) -> None:
        """Count a step and give the host a chance to stop execution."""
        self._last_node = node
        self._steps += 1
        max_steps = self.config.max_steps
        if max_steps is not None and self._steps > max_steps:
            logger.debug("step budget of %d exhausted at %s", max_steps, node.span)
            raise error_interrupted(f"step budget of {max_steps} exhausted", node.span)
        if self.step_hook is not None and not self.step_hook(node, env):
            logger.debug("interrupted by step hook at %s", node.span)
            raise error_interrupted("stopped by host", node.span)

    def _execute_statement(self, stmt: Statement, env: Environment) -> Value:
        """Execute a statement, returning its value (none unless an expression)."""
        self._checkpoint(stmt, env)

        if isinstance(stmt, ExpressionStatement):
            value = self._evaluate(stmt.expression, env)
            return NONE if stmt.closed else value
        elif isinstance(stmt, LetStatement):
            self._execute_let(stmt, env)
        elif isinstance(stmt, AssignmentStatement):
            self._execute_assignment(stmt, env)
        elif isinstance(stmt, WhileStatement):
            self._execute_while(stmt, env)
        elif isinstance(stmt, IfStatement):
            self._execute_if(stmt, env)
        elif isinstance(stmt, FunctionDef):
            self._execute_function_def(stmt, env)
        else:
            raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")
        return NONE

    def _execute_let(self, stmt: LetStatement, env: Environment) -> None:
        value = self._evaluate(stmt.initializer, env)
        self._bind_pattern(stmt.pattern, value, env, declare=True)

    def _execute_assignment(self, stmt: AssignmentStatement, env: Environment) -> None:
        # The whole right-hand side is evaluated before any name is rebound
        value = self._evaluate(stmt.value, env)
        self._bind_pattern(stmt.target, value, env, declare=False)

    def _execute_while(self, stmt: WhileStatement, env: Environment) -> None:
        """Execute a while loop; each iteration gets a fresh child frame."""
        while self._evaluate_condition(stmt.condition, env):
            with env.new_scope("while-body"):
                self._execute_block(stmt.body, env)

    def _execute_if(self, stmt: IfStatement, env: Environment) -> None:
        if self._evaluate_condition(stmt.condition, env):
            with env.new_scope("if-body"):
                self._execute_block(stmt.body, env)

    def _execute_function_def(self, stmt: FunctionDef, env: Environment) -> None:
        # Declared in the frame the closure captures, so the body can recurse
        closure = self._make_closure(stmt.function, env)
        env.declare(stmt.name, closure, stmt.span)

    def _execute_block(self, block: Block, env: Environment) -> Value:
        """Execute a block in the current frame and return its value."""
        for stmt in block.statements:
            self._execute_statement(stmt, env)
        if block.final_expression is None:
            return NONE
        self._checkpoint(block.final_expression, env)
        return self._evaluate(block.final_expression, env)

    # =========================================================================
    # Destructuring
    # =========================================================================

    def _bind_pattern(self, pattern: Pattern, value: Value, env: Environment,
                      declare: bool) -> None:
        """
        Bind (declare) or rebind (assign) every name in pattern.

        Shape and name checks all happen before the first binding, so a
        failed destructure leaves the environment untouched.
        """
        self._check_shape(pattern, value)
        names: List[IdentifierPattern] = []
        self._collect_names(pattern, names)

        if declare:
            seen: Set[str] = set()
            for ident in names:
                if ident.name in seen or ident.name in env.current.bindings:
                    raise error_redeclaration(ident.name, ident.span)
                seen.add(ident.name)
        else:
            for ident in names:
                if not env.current.contains(ident.name):
                    raise error_undefined_variable(ident.name, ident.span)

        self._store(pattern, value, env, declare)

    def _check_shape(self, pattern: Pattern, value: Value) -> None:
        if isinstance(pattern, IdentifierPattern):
            return
        if isinstance(pattern, TuplePattern):
            if value.kind != ValueKind.TUPLE:
                raise error_destructure_type(value.type_name, pattern.span)
            if len(value.data) != len(pattern.elements):
                raise error_destructure_arity(len(pattern.elements), len(value.data), pattern.span)
            for sub, item in zip(pattern.elements, value.data):
                self._check_shape(sub, item)
            return
        raise RuntimeError(f"Unknown pattern type: {type(pattern).__name__}")

    def _collect_names(self, pattern: Pattern, names: List[IdentifierPattern]) -> None:
        if isinstance(pattern, IdentifierPattern):
            names.append(pattern)
        else:
            for sub in pattern.elements:
                self._collect_names(sub, names)

    def _store(self, pattern: Pattern, value: Value, env: Environment, declare: bool) -> None:
        if isinstance(pattern, IdentifierPattern):
            if declare:
                env.declare(pattern.name, value, pattern.span)
            else:
                env.assign(pattern.name, value, pattern.span)
            return
        for sub, item in zip(pattern.elements, value.data):
            self._store(sub, item, env, declare)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, env: Environment) -> Value:
        """Evaluate an expression to a value."""
        if isinstance(expr, Literal):
            return self._eval_literal(expr)
        elif isinstance(expr, Identifier):
            return env.lookup(expr.name, expr.span)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, env)
        elif isinstance(expr, UnaryOp):
            operand = self._evaluate(expr.operand, env)
            return unary_op(expr.operator, operand, expr.span)
        elif isinstance(expr, FunctionCall):
            return self._eval_function_call(expr, env)
        elif isinstance(expr, TupleExpr):
            return tuple_val([self._evaluate(e, env) for e in expr.elements])
        elif isinstance(expr, MemberAccess):
            return self._eval_member_access(expr, env)
        elif isinstance(expr, ConditionalExpr):
            if self._evaluate_condition(expr.condition, env):
                return self._evaluate(expr.true_branch, env)
            return self._evaluate(expr.false_branch, env)
        elif isinstance(expr, AssignExpr):
            value = self._evaluate(expr.value, env)
            env.assign(expr.name, value, expr.span)
            return value
        elif isinstance(expr, FunctionLiteral):
            return self._make_closure(expr, env)
        else:
            raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_literal(self, lit: Literal) -> Value:
        if lit.literal_type == TokenType.INT_LITERAL:
            return int_val(lit.value)
        elif lit.literal_type == TokenType.FLOAT_LITERAL:
            return float_val(lit.value)
        elif lit.literal_type == TokenType.STRING_LITERAL:
            return string_val(lit.value)
        elif lit.literal_type == TokenType.BOOL_LITERAL:
            return bool_val(lit.value)
        elif lit.literal_type == TokenType.NONE_LITERAL:
            return NONE
        raise RuntimeError(f"Unknown literal type: {lit.literal_type}")

    def _evaluate_condition(self, expr: Expression, env: Environment) -> bool:
        """Evaluate a condition; there is no truthiness beyond Bool."""
        value = self._evaluate(expr, env)
        if value.kind != ValueKind.BOOL:
            raise error_condition_type(value.type_name, expr.span)
        return value.data

    def _eval_binary_op(self, op: BinaryOp, env: Environment) -> Value:
        """Evaluate a binary operation; and/or short-circuit."""
        if op.operator in (TokenType.AND, TokenType.OR):
            symbol = operator_symbol(op.operator)
            left = self._evaluate(op.left, env)
            if left.kind != ValueKind.BOOL:
                raise error_logical_operand(symbol, left.type_name, op.left.span)
            if op.operator == TokenType.AND and not left.data:
                return FALSE
            if op.operator == TokenType.OR and left.data:
                return TRUE
            right = self._evaluate(op.right, env)
            if right.kind != ValueKind.BOOL:
                raise error_logical_operand(symbol, right.type_name, op.right.span)
            return right

        left = self._evaluate(op.left, env)
        right = self._evaluate(op.right, env)
        return binary_op(op.operator, left, right, op.span, self.config)

    def _eval_member_access(self, access: MemberAccess, env: Environment) -> Value:
        target = self._evaluate(access.object, env)
        if target.kind != ValueKind.TUPLE:
            raise error_member_type(target.type_name, access.span)
        if access.index >= len(target.data):
            raise error_member_index(access.index, len(target.data), access.span)
        return target.data[access.index]

    def _make_closure(self, literal: FunctionLiteral, env: Environment) -> Value:
        """Capture the current frame by reference."""
        return function_val(Closure(
            parameters=list(literal.parameters),
            body=literal.body,
            env=env.current,
            name=literal.name,
        ))

    def _eval_function_call(self, call: FunctionCall, env: Environment) -> Value:
        """Evaluate a call: callee first, then arguments left to right."""
        callee = self._evaluate(call.callee, env)
        if callee.kind != ValueKind.FUNCTION:
            raise error_not_callable(callee.type_name, call.callee.span)

        args = [self._evaluate(arg, env) for arg in call.arguments]
        func = callee.data
        name = func.name or "<anonymous fn>"
        if len(args) != func.arity:
            raise error_arity(name, func.arity, len(args), call.span)

        if isinstance(func, NativeFunction):
            return func.impl(*args)

        self._call_depth += 1
        try:
            limit = self.config.max_call_depth
            if limit is not None and self._call_depth > limit:
                logger.debug("call depth limit %d exceeded at %s", limit, call.span)
                raise error_stack_overflow(call.span, limit)
            # Lexical scoping: the new frame's parent is the captured frame
            with env.new_scope(f"fn {name}", parent=func.env) as frame:
                for param, arg in zip(func.parameters, args):
                    frame.declare(param, arg)
                return self._execute_block(func.body, env)
        finally:
            self._call_depth -= 1


def _source_lines(source: str) -> List[str]:
    return source.replace('\r\n', '\n').splitlines()


def run(source: str, env: Optional[Environment] = None,
        config: Optional[InterpreterConfig] = None,
        filename: Optional[str] = None) -> Value:
    """
    Parse and run source text in one call.

    Args:
        source: Program text
        env: Environment to run in; a fresh global one when omitted
        config: Optional interpreter configuration
        filename: Optional filename for diagnostics

    Returns:
        The value of the last statement executed

    Raises:
        ScriptError: On any lexing, parsing or runtime failure
    """
    interpreter = Interpreter(config)
    program = parse_source(source, filename, interpreter.config)
    try:
        return interpreter.run(program, env)
    except ScriptError as e:
        raise e.attach_source(_source_lines(source))


class Session:
    """
    A persistent global environment for sequential evaluations.

    Bindings made by one execute() call are visible to the next. Errors
    are returned as failed ExecutionResults and leave the session usable.

    Usage:
        with Session() as session:
            session.execute("let x = 41")
            result = session.execute("x + 1")
            assert result.value == int_val(42)
    """

    def __init__(self, config: Optional[InterpreterConfig] = None,
                 output: Optional[TextIO] = None,
                 step_hook: Optional[StepHook] = None):
        self.config = config or InterpreterConfig()
        self.interpreter = Interpreter(self.config, step_hook, output)
        self.env = self.interpreter.create_environment()
        self.closed = False
        logger.debug("session started")

    def execute(self, source: str, filename: Optional[str] = None) -> ExecutionResult:
        """Parse and run source against the session's global frame."""
        if self.closed:
            raise RuntimeError("session is closed")
        try:
            program = parse_source(source, filename, self.config)
            value = self.interpreter.run(program, self.env)
        except ScriptError as e:
            e.attach_source(_source_lines(source))
            logger.debug("execution failed: %s[%s]", e.kind, e.code)
            return ExecutionResult(success=False, error=e)
        return ExecutionResult(success=True, value=value)

    def lookup(self, name: str) -> Value:
        """Read a global binding (raises UndefinedVariableError)."""
        return self.env.global_frame.lookup(name)

    def close(self) -> None:
        """Tear down the global frame."""
        if not self.closed:
            self.env.close()
            self.closed = True
            logger.debug("session closed")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
