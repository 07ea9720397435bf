"""
Environment frames for the interpreter.

A frame maps names to values and links to its enclosing frame; the outermost
frame holds globals. Frames are shared by reference: a function value keeps
the frame it was declared in, so the frame lives as long as that function.

Lookups for resolved locals use a fixed hop count (``get_at``/``assign_at``).
A name missing at the resolved frame means the resolver and interpreter
disagree, and raises InternalError rather than a program error.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from .values import Value
from ..errors import InternalError, error_undefined_variable
from ..tokens import SourceSpan, NO_SPAN


@dataclass(eq=False)
class Environment:
    """
    A single frame of variable bindings.

    Frames form a chain via the `enclosing` field for lexical scoping.
    """
    values: Dict[str, Value] = field(default_factory=dict)
    enclosing: Optional["Environment"] = None
    name: str = "block"  # For debugging

    def define(self, name: str, value: Value) -> None:
        """Bind a name in this frame, replacing any existing binding."""
        self.values[name] = value

    def child(self, name: str = "block") -> "Environment":
        """Create a new frame enclosed by this one."""
        return Environment(enclosing=self, name=name)

    def ancestor(self, depth: int) -> "Environment":
        """The frame `depth` enclosing links out from this one."""
        frame = self
        for _ in range(depth):
            if frame.enclosing is None:
                raise InternalError(
                    f"Scope depth {depth} exceeds frame chain from '{self.name}'"
                )
            frame = frame.enclosing
        return frame

    def globals(self) -> "Environment":
        """The outermost frame."""
        frame = self
        while frame.enclosing is not None:
            frame = frame.enclosing
        return frame

    def get_at(self, depth: int, name: str) -> Value:
        """Read a resolved local from the frame exactly `depth` hops out."""
        frame = self.ancestor(depth)
        try:
            return frame.values[name]
        except KeyError:
            raise InternalError(
                f"Resolved variable '{name}' missing from frame '{frame.name}' at depth {depth}"
            ) from None

    def assign_at(self, depth: int, name: str, value: Value) -> None:
        """Overwrite a resolved local in the frame exactly `depth` hops out."""
        frame = self.ancestor(depth)
        if name not in frame.values:
            raise InternalError(
                f"Resolved variable '{name}' missing from frame '{frame.name}' at depth {depth}"
            )
        frame.values[name] = value

    def get_global(self, name: str, span: SourceSpan = NO_SPAN) -> Value:
        """Read an unresolved name from the global frame."""
        frame = self.globals()
        if name in frame.values:
            return frame.values[name]
        raise error_undefined_variable(name, span)

    def assign_global(self, name: str, value: Value, span: SourceSpan = NO_SPAN) -> None:
        """Overwrite an existing global. Assignment never creates a binding."""
        frame = self.globals()
        if name not in frame.values:
            raise error_undefined_variable(name, span)
        frame.values[name] = value

    def depth(self) -> int:
        """Number of enclosing links up to the global frame."""
        return sum(1 for _ in self._chain()) - 1

    def _chain(self) -> Iterator["Environment"]:
        frame = self
        while frame is not None:
            yield frame
            frame = frame.enclosing

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __repr__(self) -> str:
        return f"Environment({self.name!r}, names={sorted(self.values)}, depth={self.depth()})"
