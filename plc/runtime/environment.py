"""Scope frames for the plc evaluator.

An Environment is one frame: a dict of name -> value plus a reference to the enclosing frame. Lookups walk outward
from the innermost frame, so a name declared in an inner frame shadows the same name further out; definitions
always go into the innermost frame. A frame stays alive for as long as something refers to it: the block being
evaluated, an inner frame, or a closure that captured it.
"""

from plc.lang.error import DuplicateDeclaration, UndefinedVariable


class Environment:
    """A scope frame chained to its parent (None for the global frame)."""

    def __init__(self, parent=None):
        self.values = {}
        self.parent = parent

    def define(self, name, value, position=None):
        """Binds name in this frame. Declaring a name twice in the same frame raises DuplicateDeclaration."""
        if name in self.values:
            raise DuplicateDeclaration("'{}' is already declared in this scope", name, position=position,
                                       length=len(name))
        self.values[name] = value

    def resolve(self, name):
        """Returns the innermost frame binding name, or None."""
        frame = self
        while frame is not None:
            if name in frame.values:
                return frame
            frame = frame.parent
        return None

    def get(self, name, position=None):
        frame = self.resolve(name)
        if frame is None:
            raise UndefinedVariable("undefined variable '{}'", name, position=position, length=len(name))
        return frame.values[name]

    def set(self, name, value, position=None):
        """Rebinds name in the innermost frame that declares it. Never declares a new name."""
        frame = self.resolve(name)
        if frame is None:
            raise UndefinedVariable("undefined variable '{}'", name, position=position, length=len(name))
        frame.values[name] = value

    def child(self):
        return Environment(self)

    def __repr__(self):
        return f"Environment({self.values!r}, parent={self.parent!r})"
