"""
Callable values: user-defined functions and native built-ins.

Both kinds share one contract (``arity`` and ``call``), so the interpreter's
call rule never needs to know which one it is invoking.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable as PyCallable, List

from .values import Value, NIL
from .environment import Environment
from ..ast import FunctionDecl
from ..errors import error_native_failure
from ..tokens import SourceSpan

if TYPE_CHECKING:
    from .interpreter import Interpreter


class NativeError(Exception):
    """Raised by a built-in implementation to reject its arguments."""
    pass


class Callable(ABC):
    """Anything that can be called from a program."""

    name: str

    @abstractmethod
    def arity(self) -> int:
        """Number of arguments the callable expects."""

    @abstractmethod
    def call(self, interpreter: "Interpreter", arguments: List[Value], span: SourceSpan) -> Value:
        """Invoke with already evaluated, arity-checked arguments."""


class LoxFunction(Callable):
    """
    A user-defined function closed over the frame it was declared in.

    Each call runs in a fresh frame whose enclosing frame is the closure, so
    calls are isolated from each other but share the captured variables.
    """

    def __init__(self, declaration: FunctionDecl, closure: Environment):
        self.declaration = declaration
        self.closure = closure
        self.name = declaration.name

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: "Interpreter", arguments: List[Value], span: SourceSpan) -> Value:
        frame = self.closure.child(name=self.name)
        for param, arg in zip(self.declaration.params, arguments):
            frame.define(param.name, arg)
        completion = interpreter.execute_body(self.declaration.body, frame)
        if completion is None:
            return NIL
        return completion.value

    def __str__(self) -> str:
        return f"<fn {self.name}>"

    def __repr__(self) -> str:
        return f"LoxFunction({self.name!r}, arity={self.arity()})"


@dataclass(eq=False)
class NativeFunction(Callable):
    """
    A built-in function with a fixed arity and a Python implementation.

    The implementation receives the argument Values positionally and returns
    a Value, or raises NativeError to report bad arguments.
    """
    name: str
    arity_count: int
    implementation: PyCallable[..., Value]

    def arity(self) -> int:
        return self.arity_count

    def call(self, interpreter: "Interpreter", arguments: List[Value], span: SourceSpan) -> Value:
        try:
            return self.implementation(*arguments)
        except NativeError as e:
            raise error_native_failure(self.name, str(e), span) from e

    def __str__(self) -> str:
        return f"<native fn {self.name}>"
