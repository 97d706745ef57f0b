"""Error handling for the plc language. Only GenericExceptions should be encountered while running a program: if
another type of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Every phase of the pipeline fails fast with its own GenericException subclass:

```
GenericException            ; exit status 1, I/O and internal problems
├── LexError                ; exit status 65, unrecognized character/malformed literal
├── ParseError              ; exit status 66, grammar violation
└── EvalError               ; exit status 70, runtime failure
    ├── UndefinedVariable
    ├── TypeMismatch
    ├── ArithmeticError
    ├── ArityMismatch
    └── DuplicateDeclaration
```
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error message so that it can be reported with source position. msg is a format string whose
    fields are filled by exprs; the fields are bolded when the error is displayed.
    """
    exit_code = 1

    def __init__(self, msg, exprs=None, position=None, length=1, diagnosis=True, internal=False):
        if exprs is None:
            exprs = []
        if isinstance(exprs, str):
            exprs = [exprs]

        self.template = msg
        self.exprs = [str(expr) for expr in exprs]
        self.msg = self.format()
        self.position = position  # None if the error has no location in source
        self.length = max(length, 1)  # width of the offending span, needed for error display

        self.diagnosis = diagnosis
        self.internal = internal

        super().__init__(self.msg)

    @property
    def kind(self):
        return type(self).__name__

    def format(self, highlight=None):
        """Fills the message template, passing every expr through highlight (if given)."""
        if highlight is None:
            return self.template.format(*self.exprs)
        return self.template.format(*(highlight(expr) for expr in self.exprs))


class LexError(GenericException):
    """Raised by the lexer when it meets a character that cannot start or continue a token."""
    exit_code = 65

    def __init__(self, msg, character=None, position=None):
        exprs = [] if character is None else [repr(character)[1:-1]]  # escape control characters
        super().__init__(msg, exprs, position=position)
        self.character = character


class ParseError(GenericException):
    """Raised by the parser when the next token does not fit the grammar."""
    exit_code = 66

    def __init__(self, expected, found):
        self.expected = expected
        self.found = found  # offending Token
        if found.lexeme:
            super().__init__("expected {}, found '{}'", [expected, found.lexeme], position=found.position,
                             length=len(found.lexeme))
        else:
            super().__init__("expected {}, found end of input", expected, position=found.position)


class EvalError(GenericException):
    """Raised while evaluating a syntactically valid program. kind is the name of the concrete subclass."""
    exit_code = 70


class UndefinedVariable(EvalError):
    """A name (or object member) is not bound in any enclosing frame."""


class TypeMismatch(EvalError):
    """An operation was applied to values of the wrong type."""


class ArithmeticError(EvalError):  # pylint: disable=redefined-builtin
    """Division or modulo by zero."""


class ArityMismatch(EvalError):
    """A function was called with the wrong number of arguments."""


class DuplicateDeclaration(EvalError):
    """A name was declared twice in the same frame."""


class ErrorHandler:
    """Context manager that reports plc errors, and any other Python error as an internal one. Diagnostics go to
    stream (stderr by default) formatted as `line:column: Kind: message`, followed by the offending source line.
    A fatal handler exits with the error's status; otherwise the error is suppressed once reported.
    """
    ERROR = "red"

    def __init__(self, fatal=True, stream=None, color=None):
        self.fatal = fatal
        self.stream = stream
        self.color = color  # None lets termcolor decide from NO_COLOR/FORCE_COLOR and the terminal
        self.sources = {}
        self.path = None
        self.exit_code = 0

    def register_source(self, path, source):
        """Registers source as the text currently being run from path. Used to display offending lines."""
        self.sources[path] = source
        self.path = path

    def colored(self, text, color=None, attrs=None):
        if self.color is None:
            return colored(text, color, attrs=attrs)
        return colored(text, color, attrs=attrs, no_color=not self.color, force_color=self.color)

    def source_line(self, position):
        """Returns the source line that position points into, or None if it is unknown."""
        source = self.sources.get(self.path)
        if source is None or position is None:
            return None
        lines = source.split("\n")
        if position.line > len(lines):
            return None
        return lines[position.line - 1].rstrip("\r")

    def diagnose(self, error):
        """Returns the offending line with the offending part of it highlighted and bolded."""
        line = self.source_line(error.position)
        if line is None:
            return None

        start = error.position.column - 1
        end = min(start + error.length, max(len(line), start + 1))

        diagnosis = "  " + line[:start]
        diagnosis += self.colored(line[start:end], ErrorHandler.ERROR, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += self.colored("^" + "~" * (end - start - 1), ErrorHandler.ERROR, attrs=["bold"])

        return diagnosis

    def render(self, error):
        """Renders error as a (possibly multi-line) diagnostic string."""

        error_msg = ""
        if error.position is not None:
            error_msg += self.colored(f"{error.position.line}:{error.position.column}: ", attrs=["bold"])
        if error.internal:
            error_msg += self.colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        error_msg += self.colored(f"{error.kind}: ", ErrorHandler.ERROR, attrs=["bold"])
        error_msg += error.format(lambda expr: self.colored(expr, attrs=["bold"]))

        if not error.internal and error.diagnosis:
            diagnosis = self.diagnose(error)
            if diagnosis:
                error_msg += "\n" + diagnosis

        return error_msg

    def throw(self, error):
        """Reports error, a GenericException. Exits with the error's status if this handler is fatal."""
        print(self.render(error), file=self.stream or sys.stderr)

        self.exit_code = error.exit_code
        if self.fatal:
            sys.exit(error.exit_code)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is None:
            return True
        if issubclass(exc_type, KeyboardInterrupt):
            self.throw(GenericException("keyboard interrupt"))
        elif issubclass(exc_type, SystemExit):
            do_exit = True
        elif issubclass(exc_type, RecursionError):
            self.throw(EvalError("maximum recursion depth exceeded"))
        elif issubclass(exc_type, GenericException):
            self.throw(exc_val)
        else:
            self.throw(GenericException("unknown error: '{}'", f"{exc_type.__name__}: {exc_val}", internal=True))

        return not do_exit
