"""
Environment for the boba interpreter.

Manages the chain of lexical scope frames. A frame's parent is the frame
that lexically encloses it; the global frame has no parent. Closures keep
a reference to the frame they were created in, so a frame lives as long
as the longest-lived closure that captured it.
"""

import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, TextIO

from ..errors import error_redeclaration, error_undefined_variable
from ..tokens import SourceSpan
from .values import Value


@dataclass(eq=False)
class Frame:
    """
    A single scope frame containing variable bindings.

    Frames form a chain via the `parent` field for lexical scoping.
    """
    bindings: Dict[str, Value] = field(default_factory=dict)
    parent: Optional["Frame"] = None
    name: str = "anonymous"  # For debugging

    def declare(self, name: str, value: Value, span: Optional[SourceSpan] = None) -> None:
        """Introduce a binding in this frame. Shadowing outer frames is allowed."""
        if name in self.bindings:
            raise error_redeclaration(name, span)
        self.bindings[name] = value

    def assign(self, name: str, value: Value, span: Optional[SourceSpan] = None) -> None:
        """Rebind the nearest existing binding of name in the chain."""
        frame = self
        while frame is not None:
            if name in frame.bindings:
                frame.bindings[name] = value
                return
            frame = frame.parent
        raise error_undefined_variable(name, span)

    def lookup(self, name: str, span: Optional[SourceSpan] = None) -> Value:
        """Read the nearest binding of name in the chain."""
        frame = self
        while frame is not None:
            value = frame.bindings.get(name)
            if value is not None:
                return value
            frame = frame.parent
        raise error_undefined_variable(name, span)

    def contains(self, name: str) -> bool:
        """Check if a name is bound in this frame or its parents."""
        frame = self
        while frame is not None:
            if name in frame.bindings:
                return True
            frame = frame.parent
        return False

    def __repr__(self) -> str:
        return f"Frame({self.name!r}, {sorted(self.bindings)})"


class Environment:
    """
    The scope chain seen by the interpreter.

    `current` is the innermost active frame. Child frames are pushed with
    :meth:`new_scope`, which always restores the previous frame on exit,
    including exits by exception.

    Usage:
        env = Environment.create_global()
        with env.new_scope("while-body"):
            env.declare("i", int_val(0))
    """

    def __init__(self, global_frame: Optional[Frame] = None):
        self.global_frame = global_frame or Frame(name="global")
        self.current = self.global_frame

    @classmethod
    def create_global(cls, output: Optional[TextIO] = None) -> "Environment":
        """Create a fresh global environment with the native builtins declared."""
        from .builtins import install_builtins

        env = cls()
        install_builtins(env.global_frame, output if output is not None else sys.stdout)
        return env

    @contextmanager
    def new_scope(self, name: str = "block", parent: Optional[Frame] = None) -> Iterator[Frame]:
        """
        Push a child frame for the duration of the with-block.

        Args:
            name: Debug name for the frame
            parent: Lexical parent; defaults to the current frame. Function
                calls pass the closure's captured frame here.
        """
        old_frame = self.current
        self.current = Frame(parent=old_frame if parent is None else parent, name=name)
        try:
            yield self.current
        finally:
            self.current = old_frame

    push_child_frame = new_scope

    def declare(self, name: str, value: Value, span: Optional[SourceSpan] = None) -> None:
        self.current.declare(name, value, span)

    def assign(self, name: str, value: Value, span: Optional[SourceSpan] = None) -> None:
        self.current.assign(name, value, span)

    def lookup(self, name: str, span: Optional[SourceSpan] = None) -> Value:
        return self.current.lookup(name, span)

    def reset(self) -> None:
        """Return to the global frame, dropping any frames left active."""
        self.current = self.global_frame

    def close(self) -> None:
        """Tear down the global frame, releasing every binding."""
        self.reset()
        self.global_frame.bindings.clear()
