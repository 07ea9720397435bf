"""
Interpreter exceptions and diagnostics.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E3xx: Resolver (static) errors, W3xx resolver warnings
- E4xx: Runtime errors

Internal-consistency failures (a resolver/environment mismatch) are raised as
InternalError, which is not a DslError; drivers do not catch or report
it as a program error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E001, E301, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)
    related: List["Diagnostic"] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        loc = f"{self.span.start}"
        parts.append(f"{loc}: {self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        for related in self.related:
            parts.append(f"    --> {related.span.start}: {related.message}")

        return "\n".join(parts)

    def with_source(self, source: Optional[str]) -> "Diagnostic":
        """Fill in the source line from the full program text, if missing."""
        if self.source_line is None and source is not None:
            lines = source.splitlines()
            line_num = self.span.start.line
            if 1 <= line_num <= len(lines):
                self.source_line = lines[line_num - 1]
        return self


class DslError(Exception):
    """Base exception for errors in a user program."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(DslError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(DslError):
    """Error during parsing (E1xx).

    When raised by parse(), ``diagnostics`` holds every syntax error found,
    and the exception itself reports the first one.
    """

    def __init__(self, diagnostic: Diagnostic, diagnostics: Optional[List[Diagnostic]] = None):
        super().__init__(diagnostic)
        self.diagnostics = diagnostics or [diagnostic]


class ResolveError(DslError):
    """Static error found by the resolver (E3xx)."""
    pass


class LoxRuntimeError(DslError):
    """Error raised while executing a program (E4xx)."""
    pass


class InternalError(Exception):
    """Interpreter defect: resolver annotations disagree with the environment."""
    pass


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        message=f"unexpected character '{char}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string literal",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["string literals must be closed with a matching '\"'"],
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParserError:
    """E102: Unexpected end of file."""
    diag = Diagnostic(
        code="E102",
        message=f"unexpected end of file, expected {expected}",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return ParserError(diag)


def error_invalid_assignment_target(span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: Left-hand side of '=' is not a variable."""
    diag = Diagnostic(
        code="E103",
        message="invalid assignment target",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["only variables can be assigned to"],
    )
    return ParserError(diag)


def error_too_many_arguments(what: str, limit: int, span: SourceSpan,
                             source_line: str = None) -> ParserError:
    """E104: Call or declaration exceeds the argument limit."""
    diag = Diagnostic(
        code="E104",
        message=f"can't have more than {limit} {what}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_reserved_keyword(keyword: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E105: Reserved keyword used."""
    diag = Diagnostic(
        code="E105",
        message=f"'{keyword}' is reserved and not supported",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_nesting_too_deep(span: SourceSpan, source_line: str = None) -> ParserError:
    """E106: Blocks or expressions nested deeper than the parser can follow."""
    diag = Diagnostic(
        code="E106",
        message="nesting too deep",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["split deeply nested code into functions"],
    )
    return ParserError(diag)


# --- Resolver error codes ---

def error_self_reference(name: str, span: SourceSpan) -> ResolveError:
    """E301: Local variable read in its own initializer."""
    diag = Diagnostic(
        code="E301",
        message=f"can't read local variable '{name}' in its own initializer",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return ResolveError(diag)


def error_return_outside_function(span: SourceSpan) -> ResolveError:
    """E302: Return statement at top level."""
    diag = Diagnostic(
        code="E302",
        message="can't return from top-level code",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return ResolveError(diag)


def error_duplicate_declaration(name: str, span: SourceSpan,
                                previous: Optional[SourceSpan] = None) -> ResolveError:
    """E303: Name declared twice in the same local scope."""
    diag = Diagnostic(
        code="E303",
        message=f"variable '{name}' is already declared in this scope",
        severity=ErrorSeverity.ERROR,
        span=span,
        hints=["use assignment to change the existing variable"],
    )
    if previous is not None:
        diag.related.append(Diagnostic(
            code="E303",
            message=f"'{name}' first declared here",
            severity=ErrorSeverity.INFO,
            span=previous,
        ))
    return ResolveError(diag)


def error_duplicate_parameter(name: str, span: SourceSpan) -> ResolveError:
    """E304: Parameter name repeated in one function."""
    diag = Diagnostic(
        code="E304",
        message=f"duplicate parameter '{name}'",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return ResolveError(diag)


def warning_undefined_global(name: str, span: SourceSpan) -> Diagnostic:
    """W301: Reference to a name no declaration provides."""
    return Diagnostic(
        code="W301",
        message=f"'{name}' is not declared at top level or as a built-in",
        severity=ErrorSeverity.WARNING,
        span=span,
        hints=["the reference fails at run time if it is reached"],
    )


# --- Runtime error codes ---

def error_undefined_variable(name: str, span: SourceSpan) -> LoxRuntimeError:
    """E401: Undefined variable."""
    diag = Diagnostic(
        code="E401",
        message=f"undefined variable '{name}'",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return LoxRuntimeError(diag)


def error_operand_types(operator: str, kinds: List[str], span: SourceSpan,
                        expected: str) -> LoxRuntimeError:
    """E402: Operator applied to operands of the wrong kind."""
    if len(kinds) == 1:
        found = f"operand of kind {kinds[0]}"
    else:
        found = "operands of kind " + " and ".join(kinds)
    diag = Diagnostic(
        code="E402",
        message=f"operator '{operator}' does not accept {found}",
        severity=ErrorSeverity.ERROR,
        span=span,
        hints=[f"'{operator}' expects {expected}"],
    )
    return LoxRuntimeError(diag)


def error_not_callable(kind: str, span: SourceSpan) -> LoxRuntimeError:
    """E403: Call on a value that is not a function."""
    diag = Diagnostic(
        code="E403",
        message=f"can only call functions, value of kind {kind} is not callable",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return LoxRuntimeError(diag)


def error_arity_mismatch(name: str, expected: int, got: int, span: SourceSpan) -> LoxRuntimeError:
    """E404: Wrong number of arguments."""
    diag = Diagnostic(
        code="E404",
        message=f"'{name}' expected {expected} argument(s) but got {got}",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return LoxRuntimeError(diag)


def error_division_by_zero(span: SourceSpan) -> LoxRuntimeError:
    """E405: Division by zero."""
    diag = Diagnostic(
        code="E405",
        message="division by zero",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return LoxRuntimeError(diag)


def error_native_failure(name: str, message: str, span: SourceSpan) -> LoxRuntimeError:
    """E406: A built-in function rejected its arguments."""
    diag = Diagnostic(
        code="E406",
        message=f"in built-in '{name}': {message}",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return LoxRuntimeError(diag)


def error_stack_overflow(span: SourceSpan) -> LoxRuntimeError:
    """E407: Call nesting exceeded the host recursion limit."""
    diag = Diagnostic(
        code="E407",
        message="stack overflow",
        severity=ErrorSeverity.ERROR,
        span=span,
        hints=["check for unbounded recursion"],
    )
    return LoxRuntimeError(diag)


class DiagnosticCollector:
    """Collects diagnostics across a pass."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: DslError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors
