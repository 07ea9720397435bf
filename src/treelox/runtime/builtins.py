"""
Built-in function registry for the interpreter.

Natives are installed into the global frame before a program runs. Each has
a fixed arity and is called exactly like a user-defined function.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional

from .callables import NativeFunction, NativeError
from .environment import Environment
from .values import Value, ValueKind, callable_val, number_val, string_val, stringify

logger = logging.getLogger(__name__)


class BuiltinRegistry:
    """
    Registry of built-in functions.

    Functions are registered by name. A fresh registry holds the standard
    set; drivers may register more before installing it.
    """

    def __init__(self):
        self._functions: Dict[str, NativeFunction] = {}
        self._register_all()

    def register(self, func: NativeFunction) -> None:
        """Register a function, replacing any existing one with that name."""
        self._functions[func.name] = func

    def names(self) -> List[str]:
        """Registered function names, sorted."""
        return sorted(self._functions)

    def install(self, frame: Environment, names: Optional[Iterable[str]] = None) -> List[str]:
        """
        Define natives in a frame (normally the global frame).

        Args:
            frame: Frame to define the functions in
            names: Subset to install; None installs all of them

        Returns:
            Names that were installed

        Raises:
            KeyError: If a requested name is not registered
        """
        selected = self.names() if names is None else list(names)
        for name in selected:
            func = self._functions.get(name)
            if func is None:
                raise KeyError(f"Unknown built-in function: {name}")
            frame.define(name, callable_val(func))
        logger.debug("installed %d native(s): %s", len(selected), ", ".join(selected))
        return selected

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_conversion_functions()
        self._register_time_functions()

    # --- Conversion Functions ---

    def _register_conversion_functions(self) -> None:
        """Register value conversion and inspection functions."""

        def _str(value: Value) -> Value:
            return string_val(stringify(value))

        def _num(value: Value) -> Value:
            if value.kind == ValueKind.NUMBER:
                return value
            if value.kind == ValueKind.STRING:
                try:
                    return number_val(float(value.data.strip()))
                except ValueError:
                    raise NativeError(f"cannot convert \"{value.data}\" to a number") from None
            raise NativeError(f"expected a number or string, got {value.kind.value}")

        def _type(value: Value) -> Value:
            return string_val(value.kind.value)

        self.register(NativeFunction("str", 1, _str))
        self.register(NativeFunction("num", 1, _num))
        self.register(NativeFunction("type", 1, _type))

    # --- Time Functions ---

    def _register_time_functions(self) -> None:
        """Register clock functions."""

        def _clock() -> Value:
            return number_val(time.time())

        self.register(NativeFunction("clock", 0, _clock))


_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the shared registry of standard built-in functions."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry
