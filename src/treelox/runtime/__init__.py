"""
treelox runtime - tree-walking evaluation of resolved programs.

This package provides:
- Interpreter: Executes a resolved program against its global frame
- Value: Runtime values tagged with their kind
- Environment: Frames of variable bindings linked to enclosing frames
- LoxFunction / NativeFunction: The two kinds of callable value
- BuiltinRegistry: Built-in functions installed as globals
"""

from .values import (
    Value,
    ValueKind,
    NIL,
    TRUE,
    FALSE,
    bool_val,
    number_val,
    string_val,
    callable_val,
    literal_value,
    values_equal,
    format_number,
    stringify,
)

from .environment import (
    Environment,
)

from .callables import (
    Callable,
    LoxFunction,
    NativeFunction,
    NativeError,
)

from .builtins import (
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    Return,
    ExecutionResult,
    run_source,
)

__all__ = [
    # Values
    'Value',
    'ValueKind',
    'NIL',
    'TRUE',
    'FALSE',
    'bool_val',
    'number_val',
    'string_val',
    'callable_val',
    'literal_value',
    'values_equal',
    'format_number',
    'stringify',
    # Environment
    'Environment',
    # Callables
    'Callable',
    'LoxFunction',
    'NativeFunction',
    'NativeError',
    # Builtins
    'BuiltinRegistry',
    'get_builtin_registry',
    # Interpreter
    'Interpreter',
    'Return',
    'ExecutionResult',
    'run_source',
]
