"""
Tree-walking interpreter for treelox.

Executes a resolved program against a chain of Environment frames. The
current frame is passed explicitly to every method, never stored on the
interpreter, so a runtime error leaves nothing to restore and the same
Interpreter can run further programs against its globals.

Statement execution returns ``None`` on normal completion or a ``Return``
carrying the value of a ``return`` statement. Each enclosing statement hands
a ``Return`` straight back up until a function call consumes it. Runtime
errors are ordinary exceptions (LoxRuntimeError) that unwind to the caller
of ``interpret``.
"""

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TextIO

from .values import (
    Value, ValueKind, NIL,
    bool_val, number_val, string_val, callable_val, literal_value,
    values_equal, stringify,
)
from .environment import Environment
from .callables import Callable, LoxFunction
from .builtins import BuiltinRegistry, get_builtin_registry

from ..ast import (
    Statement, ExpressionStatement, PrintStatement, VarDecl, Block,
    IfStatement, WhileStatement, FunctionDecl, ReturnStatement,
    Expression, Literal, Variable, Assign, Unary, Binary, Logical, Call, Grouping,
    operator_text,
)
from ..config import InterpreterConfig
from ..errors import (
    Diagnostic, ErrorSeverity, InternalError, LexerError, ParserError, ResolveError, LoxRuntimeError,
    error_operand_types,
    error_not_callable,
    error_arity_mismatch,
    error_division_by_zero,
    error_stack_overflow,
)
from ..resolver import Resolution, Resolver
from ..tokens import TokenType

logger = logging.getLogger(__name__)

# Host stack frames budgeted per nested call when raising the recursion limit
_FRAMES_PER_CALL = 12


@dataclass
class Return:
    """Completion of a 'return' statement, carried up to the call boundary."""
    value: Value


class Interpreter:
    """
    Tree-walking interpreter.

    Usage:
        interpreter = Interpreter(output=io.StringIO())
        resolution = resolve(program, natives=interpreter.global_names())
        interpreter.interpret(resolution)

    Each Interpreter owns its global frame, created with the natives already
    installed. Separate Interpreters never share state.
    """

    def __init__(self, output: Optional[TextIO] = None,
                 registry: Optional[BuiltinRegistry] = None,
                 config: Optional[InterpreterConfig] = None):
        """
        Initialize the interpreter.

        Args:
            output: Stream that print writes to (default: sys.stdout at write time)
            registry: Built-in functions to install (default: the standard set)
            config: Interpreter settings
        """
        self.output = output
        self.config = config or InterpreterConfig()
        self.registry = registry or get_builtin_registry()
        self.globals = Environment(name="globals")
        self.native_names = self.registry.install(self.globals, self.config.natives)
        self._bindings: Dict[Expression, int] = {}
        self._call_depth = 0

    def global_names(self) -> List[str]:
        """Names currently bound in the global frame."""
        return sorted(self.globals.values)

    def interpret(self, resolution: Resolution) -> None:
        """
        Execute a resolved program against this interpreter's globals.

        Raises:
            ResolveError: If the resolution recorded static errors
            LoxRuntimeError: If execution fails; remaining statements are skipped
        """
        if resolution.has_errors:
            raise ResolveError(resolution.errors[0])

        # Kept across runs: closures from earlier REPL lines still look up
        # their references here
        self._bindings.update(resolution.bindings)
        logger.debug("executing %d top-level statement(s)", len(resolution.program.statements))

        with self._recursion_headroom():
            try:
                for stmt in resolution.program.statements:
                    try:
                        completion = self._execute(stmt, self.globals)
                    except RecursionError:
                        raise error_stack_overflow(stmt.span) from None
                    if completion is not None:
                        raise InternalError("'return' escaped to top level")
            except LoxRuntimeError as e:
                logger.debug("runtime error %s: %s", e.code, e.diagnostic.message)
                raise
            finally:
                self._call_depth = 0

    @contextmanager
    def _recursion_headroom(self):
        """Make sure the host stack allows max_call_depth nested calls."""
        previous = sys.getrecursionlimit()
        needed = self.config.max_call_depth * _FRAMES_PER_CALL + 200
        if needed > previous:
            sys.setrecursionlimit(needed)
        try:
            yield
        finally:
            if needed > previous:
                sys.setrecursionlimit(previous)

    # =========================================================================
    # Statements
    # =========================================================================

    def execute_body(self, statements: List[Statement], frame: Environment) -> Optional[Return]:
        """Run statements in order in the given frame, stopping at a return."""
        for stmt in statements:
            completion = self._execute(stmt, frame)
            if completion is not None:
                return completion
        return None

    def _execute(self, stmt: Statement, env: Environment) -> Optional[Return]:
        """Execute a statement."""
        if isinstance(stmt, ExpressionStatement):
            self._evaluate(stmt.expression, env)
        elif isinstance(stmt, PrintStatement):
            self._write(stringify(self._evaluate(stmt.expression, env)))
        elif isinstance(stmt, VarDecl):
            value = NIL
            if stmt.initializer is not None:
                value = self._evaluate(stmt.initializer, env)
            env.define(stmt.name, value)
        elif isinstance(stmt, Block):
            return self.execute_body(stmt.statements, env.child())
        elif isinstance(stmt, IfStatement):
            return self._execute_if(stmt, env)
        elif isinstance(stmt, WhileStatement):
            return self._execute_while(stmt, env)
        elif isinstance(stmt, FunctionDecl):
            env.define(stmt.name, callable_val(LoxFunction(stmt, env)))
        elif isinstance(stmt, ReturnStatement):
            value = NIL
            if stmt.value is not None:
                value = self._evaluate(stmt.value, env)
            return Return(value)
        else:
            raise InternalError(f"Unknown statement type: {type(stmt).__name__}")
        return None

    def _execute_if(self, stmt: IfStatement, env: Environment) -> Optional[Return]:
        if self._evaluate(stmt.condition, env).is_truthy():
            return self._execute(stmt.then_branch, env)
        if stmt.else_branch is not None:
            return self._execute(stmt.else_branch, env)
        return None

    def _execute_while(self, stmt: WhileStatement, env: Environment) -> Optional[Return]:
        # A block body gets a fresh frame on every pass through _execute
        while self._evaluate(stmt.condition, env).is_truthy():
            completion = self._execute(stmt.body, env)
            if completion is not None:
                return completion
        return None

    def _write(self, text: str) -> None:
        stream = self.output if self.output is not None else sys.stdout
        stream.write(text + "\n")

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, env: Environment) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, Literal):
            return literal_value(expr.value)
        elif isinstance(expr, Variable):
            return self._look_up(expr, expr.name, env)
        elif isinstance(expr, Assign):
            return self._eval_assign(expr, env)
        elif isinstance(expr, Binary):
            return self._eval_binary(expr, env)
        elif isinstance(expr, Logical):
            return self._eval_logical(expr, env)
        elif isinstance(expr, Unary):
            return self._eval_unary(expr, env)
        elif isinstance(expr, Call):
            return self._eval_call(expr, env)
        elif isinstance(expr, Grouping):
            return self._evaluate(expr.expression, env)
        else:
            raise InternalError(f"Unknown expression type: {type(expr).__name__}")

    def _look_up(self, expr: Expression, name: str, env: Environment) -> Value:
        """Read a variable using its resolved depth, or the globals if unresolved."""
        depth = self._bindings.get(expr)
        if depth is None:
            return env.get_global(name, expr.span)
        return env.get_at(depth, name)

    def _eval_assign(self, expr: Assign, env: Environment) -> Value:
        value = self._evaluate(expr.value, env)
        depth = self._bindings.get(expr)
        if depth is None:
            env.assign_global(expr.name, value, expr.span)
        else:
            env.assign_at(depth, expr.name, value)
        return value

    def _eval_logical(self, expr: Logical, env: Environment) -> Value:
        """Short-circuit and/or; the result is an operand value, not a boolean."""
        left = self._evaluate(expr.left, env)
        if expr.operator == TokenType.OR:
            if left.is_truthy():
                return left
        elif not left.is_truthy():
            return left
        return self._evaluate(expr.right, env)

    def _eval_unary(self, expr: Unary, env: Environment) -> Value:
        operand = self._evaluate(expr.operand, env)

        if expr.operator == TokenType.MINUS:
            if operand.kind != ValueKind.NUMBER:
                raise error_operand_types("-", [operand.kind.value], expr.span, "a number")
            return number_val(-operand.data)
        elif expr.operator == TokenType.BANG:
            return bool_val(not operand.is_truthy())
        raise InternalError(f"Unknown unary operator: {expr.operator}")

    def _eval_binary(self, expr: Binary, env: Environment) -> Value:
        """Evaluate a binary operation; both operands are evaluated left to right first."""
        left = self._evaluate(expr.left, env)
        right = self._evaluate(expr.right, env)
        op = expr.operator

        if op == TokenType.EQ:
            return bool_val(values_equal(left, right))
        if op == TokenType.NE:
            return bool_val(not values_equal(left, right))

        if op == TokenType.PLUS:
            if left.kind == ValueKind.NUMBER and right.kind == ValueKind.NUMBER:
                return number_val(left.data + right.data)
            if left.kind == ValueKind.STRING and right.kind == ValueKind.STRING:
                return string_val(left.data + right.data)
            raise error_operand_types(
                "+", [left.kind.value, right.kind.value], expr.span,
                "two numbers or two strings",
            )

        self._check_numbers(expr, left, right)
        if op == TokenType.MINUS:
            return number_val(left.data - right.data)
        elif op == TokenType.STAR:
            return number_val(left.data * right.data)
        elif op == TokenType.SLASH:
            if right.data == 0:
                raise error_division_by_zero(expr.span)
            return number_val(left.data / right.data)
        elif op == TokenType.LT:
            return bool_val(left.data < right.data)
        elif op == TokenType.LE:
            return bool_val(left.data <= right.data)
        elif op == TokenType.GT:
            return bool_val(left.data > right.data)
        elif op == TokenType.GE:
            return bool_val(left.data >= right.data)
        raise InternalError(f"Unknown binary operator: {op}")

    @staticmethod
    def _check_numbers(expr: Binary, left: Value, right: Value) -> None:
        if left.kind != ValueKind.NUMBER or right.kind != ValueKind.NUMBER:
            raise error_operand_types(
                operator_text(expr.operator), [left.kind.value, right.kind.value],
                expr.span, "two numbers",
            )

    def _eval_call(self, expr: Call, env: Environment) -> Value:
        """
        Evaluate a call.

        Order: callee, callable check, arguments left to right, arity check,
        then the call itself. An error at any step stops before the callee runs.
        """
        callee = self._evaluate(expr.callee, env)
        if callee.kind != ValueKind.CALLABLE:
            raise error_not_callable(callee.kind.value, expr.span)
        function: Callable = callee.data

        arguments = [self._evaluate(arg, env) for arg in expr.arguments]

        if len(arguments) != function.arity():
            raise error_arity_mismatch(function.name, function.arity(), len(arguments), expr.span)

        if self._call_depth >= self.config.max_call_depth:
            raise error_stack_overflow(expr.span)
        self._call_depth += 1
        try:
            return function.call(self, arguments, expr.span)
        except RecursionError:
            raise error_stack_overflow(expr.span) from None
        finally:
            self._call_depth -= 1


@dataclass
class ExecutionResult:
    """Result of running a program from source."""
    success: bool
    stage: str = "done"                 # lex, parse, resolve, runtime, or done
    diagnostics: List[Diagnostic] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def error_code(self) -> Optional[str]:
        """Code of the first error diagnostic, if any."""
        for diag in self.diagnostics:
            if diag.severity == ErrorSeverity.ERROR:
                return diag.code
        return None


def run_source(
    source: str,
    output: Optional[TextIO] = None,
    config: Optional[InterpreterConfig] = None,
    filename: Optional[str] = None,
    interpreter: Optional[Interpreter] = None,
) -> ExecutionResult:
    """
    High-level API to lex, parse, resolve and run a program in one call.

        from treelox import run_source

        result = run_source('print "hi";', output=io.StringIO())
        if not result.success:
            print(result.error_message)

    Args:
        source: Program source text
        output: Stream for print output (default: sys.stdout)
        config: Interpreter settings
        filename: Optional filename for diagnostics
        interpreter: Existing interpreter to run against (keeps its globals);
            when given, its own output and config are used

    Returns:
        ExecutionResult with the failing stage and diagnostics, if any
    """
    from ..lexer import tokenize
    from ..parser import parse

    if interpreter is None:
        interpreter = Interpreter(output=output, config=config)
    config = interpreter.config

    try:
        tokens = tokenize(source, filename)
    except LexerError as e:
        return _failure("lex", [e.diagnostic], source)

    try:
        program = parse(tokens, filename, source)
    except ParserError as e:
        return _failure("parse", e.diagnostics, source)

    resolution = Resolver(config, interpreter.global_names()).resolve(program)
    if resolution.has_errors:
        return _failure("resolve", resolution.diagnostics, source)

    try:
        interpreter.interpret(resolution)
    except LoxRuntimeError as e:
        return _failure("runtime", resolution.diagnostics + [e.diagnostic], source)

    return ExecutionResult(
        success=True,
        diagnostics=[d.with_source(source) for d in resolution.diagnostics],
    )


def _failure(stage: str, diagnostics: List[Diagnostic], source: str) -> ExecutionResult:
    diagnostics = [d.with_source(source) for d in diagnostics]
    errors = [d for d in diagnostics if d.severity == ErrorSeverity.ERROR]
    message = "\n\n".join(d.format() for d in errors)
    return ExecutionResult(
        success=False,
        stage=stage,
        diagnostics=diagnostics,
        error_message=message,
    )
