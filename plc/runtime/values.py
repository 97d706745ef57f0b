"""Runtime values of the plc language.

Primitive values are plain Python objects:

```
Integer -> int            Decimal -> decimal.Decimal     String -> str (characters are 1-char strings)
Boolean -> bool           Nil     -> None
```

Functions, builtins, and objects are represented by the classes below. They compare by identity.
"""

import sys
from decimal import Decimal

from plc.runtime.environment import Environment


class Function:
    """A user-defined function paired with the frame that was active where it was defined (its closure)."""

    def __init__(self, declaration, closure):
        self.declaration = declaration
        self.closure = closure

    @property
    def name(self):
        return self.declaration.name

    @property
    def arity(self):
        return len(self.declaration.params)

    def bind(self, receiver):
        """Returns this function as a method of receiver: 'this' is bound in a frame between it and its closure."""
        frame = self.closure.child()
        frame.define("this", receiver)
        return Function(self.declaration, frame)

    def __repr__(self):
        return f"<fun {self.name}>"


class Builtin:
    """A function implemented in Python. func receives the evaluated arguments."""

    def __init__(self, name, arity, func):
        self.name = name
        self.arity = arity
        self.func = func

    def __call__(self, *arguments):
        return self.func(*arguments)

    def __repr__(self):
        return f"<builtin {self.name}>"


class Object:
    """An object created by an object expression. Fields live in their own frame; methods are already bound."""

    def __init__(self, name, fields):
        self.name = name
        self.fields = fields  # Environment holding only this object's fields
        self.methods = {}

    def __repr__(self):
        return f"<object {self.name}>" if self.name else "<object>"


def is_number(value):
    return isinstance(value, (int, Decimal)) and not isinstance(value, bool)


def type_name(value):
    """Name of value's type as the language calls it, used in error messages."""
    if value is None:
        return "Nil"
    elif isinstance(value, bool):
        return "Boolean"
    elif isinstance(value, int):
        return "Integer"
    elif isinstance(value, Decimal):
        return "Decimal"
    elif isinstance(value, str):
        return "String"
    elif isinstance(value, (Function, Builtin)):
        return "Function"
    elif isinstance(value, Object):
        return "Object"
    return type(value).__name__


def stringify(value):
    """Textual form of value, as printed by print()."""
    if value is None:
        return "nil"
    elif isinstance(value, bool):
        return "true" if value else "false"
    return str(value) if is_number(value) or isinstance(value, str) else repr(value)


def equals(left, right):
    """Language equality: numbers compare by value, other values of different types are never equal, and
    functions/objects compare by identity.
    """
    if is_number(left) and is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    if isinstance(left, (Function, Builtin, Object)):
        return left is right
    return left == right


def global_environment(output=None):
    """Returns a fresh global frame holding the builtins. print writes to output (stdout when None)."""

    def _print(value):
        stream = sys.stdout if output is None else output
        stream.write(stringify(value) + "\n")

    environment = Environment()
    environment.define("print", Builtin("print", 1, _print))
    return environment
