"""
Static resolver for treelox.

Walks a parsed program once, before execution, mirroring block and function
nesting with a stack of scopes. Every variable reference and assignment that
names a local gets annotated with its hop depth: the number of scopes between
the reference and the declaration. References left unannotated are globals,
looked up by name at run time. The walk runs from an explicit work stack,
so deeply nested source cannot exhaust the Python call stack.

The resolver also rejects programs with scope errors (self-referencing
initializers, top-level return, duplicate locals, duplicate parameters).
Errors are collected, not raised; a program with any error must not run.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from .ast import (
    Program,
    Statement, ExpressionStatement, PrintStatement, VarDecl, Block,
    IfStatement, WhileStatement, FunctionDecl, ReturnStatement,
    Expression, Literal, Variable, Assign, Unary, Binary, Logical, Call, Grouping,
)
from .config import InterpreterConfig
from .errors import (
    Diagnostic, DiagnosticCollector, DslError, ErrorSeverity, InternalError,
    error_self_reference,
    error_return_outside_function,
    error_duplicate_declaration,
    error_duplicate_parameter,
    warning_undefined_global,
)
from .tokens import SourceSpan

logger = logging.getLogger(__name__)

# Nodes that carry a binding annotation
Reference = Union[Variable, Assign]

# A unit of pending work: handler and its argument
Step = Tuple[Callable[[Any], Optional[list]], Any]


@dataclass
class _Binding:
    """A name declared in a local scope."""
    span: SourceSpan
    initialized: bool = False


@dataclass
class Resolution:
    """Result of resolving a program."""
    program: Program
    bindings: Mapping[Reference, int]     # Read-only: reference node -> hop depth
    diagnostics: List[Diagnostic] = field(default_factory=list)
    has_errors: bool = False
    has_warnings: bool = False

    def depth_of(self, node: Reference) -> Optional[int]:
        """Hop depth of a reference, or None for a global."""
        return self.bindings.get(node)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.WARNING]


class Resolver:
    """
    Computes binding depths for a program.

    Usage:
        resolver = Resolver(config, natives=["str", "clock"])
        resolution = resolver.resolve(program)
        if resolution.has_errors:
            ...

    A Resolver can be reused; each call to resolve() starts from clean state.
    """

    def __init__(self, config: Optional[InterpreterConfig] = None, natives: Iterable[str] = ()):
        self.config = config or InterpreterConfig()
        self.natives: Set[str] = set(natives)
        self._reset()

    def _reset(self) -> None:
        self.diagnostics = DiagnosticCollector(max_errors=self.config.max_errors)
        self._scopes: List[Dict[str, _Binding]] = []
        self._bindings: Dict[Reference, int] = {}
        self._function_depth = 0
        self._globals: Set[str] = set()
        self._warned: Set[str] = set()

    def resolve(self, program: Program) -> Resolution:
        """Resolve a complete program."""
        self._reset()
        self._globals = self._collect_globals(program)

        self._walk([(self._resolve_statement, stmt) for stmt in program.statements])

        if self._scopes or self._function_depth:
            raise InternalError("Resolver scope stack unbalanced after program")

        logger.debug(
            "resolved %d local reference(s), %d error(s), %d warning(s)",
            len(self._bindings), self.diagnostics.error_count, self.diagnostics.warning_count,
        )
        return Resolution(
            program=program,
            bindings=MappingProxyType(dict(self._bindings)),
            diagnostics=list(self.diagnostics.diagnostics),
            has_errors=self.diagnostics.has_errors,
            has_warnings=self.diagnostics.has_warnings,
        )

    @staticmethod
    def _collect_globals(program: Program) -> Set[str]:
        """Names declared at top level, in any order."""
        names = set()
        for stmt in program.statements:
            if isinstance(stmt, (VarDecl, FunctionDecl)):
                names.add(stmt.name)
        return names

    def _walk(self, steps: List[Step]) -> None:
        """
        Run steps depth-first from an explicit stack.

        Each step is a (handler, argument) pair. A handler returns the steps
        that must run next, in order, before anything already on the stack.
        Nesting depth in the program never adds host stack frames.
        """
        stack = list(reversed(steps))
        while stack:
            handler, arg = stack.pop()
            follow_up = handler(arg)
            if follow_up:
                stack.extend(reversed(follow_up))

    # =========================================================================
    # Scope Management
    # =========================================================================

    def _begin_scope(self) -> None:
        self._scopes.append({})

    def _end_scope(self, _=None) -> None:
        self._scopes.pop()

    def _declare(self, name: str, span: SourceSpan) -> None:
        """Add a name to the innermost scope, not yet initialized."""
        if not self._scopes:
            return  # Globals are late-bound
        scope = self._scopes[-1]
        previous = scope.get(name)
        if previous is not None and not self.config.allow_local_redeclaration:
            self._error(error_duplicate_declaration(name, span, previous.span))
        scope[name] = _Binding(span=span)

    def _define(self, name: str) -> None:
        """Mark a declared name as initialized."""
        if not self._scopes:
            return
        self._scopes[-1][name].initialized = True

    def _resolve_local(self, node: Reference, name: str) -> None:
        """Annotate a reference with the hop count to its declaring scope."""
        for hops, scope in enumerate(reversed(self._scopes)):
            if name in scope:
                self._bindings[node] = hops
                return

        # Global: resolved by name at run time
        if (self.config.warn_undefined_globals
                and name not in self._globals
                and name not in self.natives
                and name not in self._warned):
            self._warned.add(name)
            self.diagnostics.add(warning_undefined_global(name, node.span))

    def _error(self, error: DslError) -> None:
        """Record a static error, up to the configured limit."""
        if not self.diagnostics.should_stop:
            self.diagnostics.add_error(error)

    # =========================================================================
    # Statements
    # =========================================================================

    def _resolve_statement(self, stmt: Statement) -> Optional[List[Step]]:
        """Resolve a statement, returning the steps for its children."""
        if isinstance(stmt, VarDecl):
            self._declare(stmt.name, stmt.span)
            steps = []
            if stmt.initializer is not None:
                steps.append((self._resolve_expression, stmt.initializer))
            steps.append((self._define, stmt.name))
            return steps
        elif isinstance(stmt, FunctionDecl):
            # Defined before the body so the function can recurse
            self._declare(stmt.name, stmt.span)
            self._define(stmt.name)
            return (
                [(self._begin_function, stmt)]
                + [(self._resolve_statement, s) for s in stmt.body]
                + [(self._end_function, stmt)]
            )
        elif isinstance(stmt, Block):
            self._begin_scope()
            return (
                [(self._resolve_statement, s) for s in stmt.statements]
                + [(self._end_scope, stmt)]
            )
        elif isinstance(stmt, (ExpressionStatement, PrintStatement)):
            return [(self._resolve_expression, stmt.expression)]
        elif isinstance(stmt, IfStatement):
            steps = [
                (self._resolve_expression, stmt.condition),
                (self._resolve_statement, stmt.then_branch),
            ]
            if stmt.else_branch is not None:
                steps.append((self._resolve_statement, stmt.else_branch))
            return steps
        elif isinstance(stmt, WhileStatement):
            return [
                (self._resolve_expression, stmt.condition),
                (self._resolve_statement, stmt.body),
            ]
        elif isinstance(stmt, ReturnStatement):
            if self._function_depth == 0:
                self._error(error_return_outside_function(stmt.span))
            if stmt.value is not None:
                return [(self._resolve_expression, stmt.value)]
            return None
        raise InternalError(f"Unknown statement type: {type(stmt).__name__}")

    def _begin_function(self, func: FunctionDecl) -> None:
        """Open one scope for parameters and body, nested under the declaration site."""
        self._function_depth += 1
        self._begin_scope()
        for param in func.params:
            if param.name in self._scopes[-1]:
                self._error(error_duplicate_parameter(param.name, param.span))
            self._scopes[-1][param.name] = _Binding(span=param.span, initialized=True)

    def _end_function(self, func: FunctionDecl) -> None:
        self._end_scope()
        self._function_depth -= 1

    # =========================================================================
    # Expressions
    # =========================================================================

    def _resolve_expression(self, expr: Expression) -> Optional[List[Step]]:
        """Resolve an expression, returning the steps for its children."""
        if isinstance(expr, Variable):
            if self._scopes:
                binding = self._scopes[-1].get(expr.name)
                if binding is not None and not binding.initialized:
                    self._error(error_self_reference(expr.name, expr.span))
            self._resolve_local(expr, expr.name)
            return None
        elif isinstance(expr, Assign):
            return [
                (self._resolve_expression, expr.value),
                (self._resolve_assign_target, expr),
            ]
        elif isinstance(expr, (Binary, Logical)):
            return [
                (self._resolve_expression, expr.left),
                (self._resolve_expression, expr.right),
            ]
        elif isinstance(expr, Unary):
            return [(self._resolve_expression, expr.operand)]
        elif isinstance(expr, Call):
            return (
                [(self._resolve_expression, expr.callee)]
                + [(self._resolve_expression, arg) for arg in expr.arguments]
            )
        elif isinstance(expr, Grouping):
            return [(self._resolve_expression, expr.expression)]
        elif isinstance(expr, Literal):
            return None
        raise InternalError(f"Unknown expression type: {type(expr).__name__}")

    def _resolve_assign_target(self, expr: Assign) -> None:
        self._resolve_local(expr, expr.name)


def resolve(program: Program, config: Optional[InterpreterConfig] = None,
            natives: Iterable[str] = ()) -> Resolution:
    """
    Convenience function to resolve a program.

    Args:
        program: The parsed program
        config: Resolver settings (redeclaration policy, error limit)
        natives: Names of built-ins that will be installed as globals

    Returns:
        Resolution with binding depths and diagnostics
    """
    resolver = Resolver(config, natives)
    return resolver.resolve(program)
