"""
treelox - a tree-walking interpreter for a small Lox-style scripting language.

This package provides:
- Lexer: Tokenizes source code
- Parser: Builds the AST from tokens
- Resolver: Computes the scope depth of every local variable reference
- Interpreter: Executes resolved programs

Usage:
    from treelox import tokenize, parse, resolve, Interpreter

    source = '''
    fun makeCounter() {
        var count = 0;
        fun increment() {
            count = count + 1;
            return count;
        }
        return increment;
    }
    var counter = makeCounter();
    print counter();
    '''
    program = parse(tokenize(source), source=source)
    interpreter = Interpreter()
    resolution = resolve(program, natives=interpreter.global_names())
    if resolution.has_errors:
        for diag in resolution.diagnostics:
            print(diag.format())
    else:
        interpreter.interpret(resolution)

Or in one call:
    from treelox import run_source
    result = run_source(source)
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("treelox")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

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
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Literal,
    Variable,
    Assign,
    Unary,
    Binary,
    Logical,
    Call,
    Grouping,
    # Statements
    Statement,
    ExpressionStatement,
    PrintStatement,
    VarDecl,
    Block,
    IfStatement,
    WhileStatement,
    Parameter,
    FunctionDecl,
    ReturnStatement,
    Program,
    # Helpers
    format_ast,
)

from .errors import (
    DslError,
    LexerError,
    ParserError,
    ResolveError,
    LoxRuntimeError,
    InternalError,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .config import (
    InterpreterConfig,
    ConfigError,
    load_config,
    resolve_config,
)

from .resolver import (
    Resolver,
    Resolution,
    resolve,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    run_source,
    Value,
    ValueKind,
    Environment,
    LoxFunction,
    NativeFunction,
    NativeError,
    BuiltinRegistry,
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
    # AST
    'AstNode',
    'AstVisitor',
    'Expression',
    'Literal',
    'Variable',
    'Assign',
    'Unary',
    'Binary',
    'Logical',
    'Call',
    'Grouping',
    'Statement',
    'ExpressionStatement',
    'PrintStatement',
    'VarDecl',
    'Block',
    'IfStatement',
    'WhileStatement',
    'Parameter',
    'FunctionDecl',
    'ReturnStatement',
    'Program',
    'format_ast',
    # Errors
    'DslError',
    'LexerError',
    'ParserError',
    'ResolveError',
    'LoxRuntimeError',
    'InternalError',
    'Diagnostic',
    'DiagnosticCollector',
    'ErrorSeverity',
    # Config
    'InterpreterConfig',
    'ConfigError',
    'load_config',
    'resolve_config',
    # Resolver
    'Resolver',
    'Resolution',
    'resolve',
    # Runtime
    'Interpreter',
    'ExecutionResult',
    'run_source',
    'Value',
    'ValueKind',
    'Environment',
    'LoxFunction',
    'NativeFunction',
    'NativeError',
    'BuiltinRegistry',
]
