"""Session control for the plc language. Runs programs through the lexer, parser, and evaluator, either in
command-line mode (one global scope shared by every line typed into the shell) or file interpretation mode.
"""

import logging
import sys

from plc.lang.error import GenericException
from plc.runtime.evaluator import evaluate
from plc.runtime.values import global_environment
from plc.syntax.grammar import parse
from plc.syntax.lexical import tokenize


logger = logging.getLogger(__name__)


class Session:
    """Governs a plc session, with control over its global scope."""
    SH_FILE = "<in>"     # command-line interpreter filename
    STDIN = "-"          # read the program from standard input
    MODES = ("run", "lex", "parse")

    def __init__(self, error_handler, path, cmd_line, output=None, mode="run"):
        if mode not in Session.MODES:
            raise GenericException("unknown mode '{}'", mode, internal=True)

        self.error_handler = error_handler
        self.path = path          # used for error messages
        self.cmd_line = cmd_line  # whether or not in command-line mode
        self.output = output      # program output, stdout when None
        self.mode = mode

        self.environment = global_environment(output)
        self.results = []  # values of every run in command-line mode, in order

        if self.cmd_line:
            self.error_handler.fatal = False
        elif path == Session.SH_FILE:
            raise GenericException("'<in>' is a reserved filename")

    def load(self):
        """Returns the source text of this session's path (standard input for '-')."""
        if self.path == Session.STDIN:
            return sys.stdin.read()
        try:
            with open(self.path, "r", encoding="utf-8") as file:
                return file.read()
        except (OSError, UnicodeDecodeError):
            raise GenericException("'{}' could not be opened", self.path, diagnosis=False)

    def write(self, text):
        (sys.stdout if self.output is None else self.output).write(text + "\n")

    def run(self, source):
        """Runs source according to this session's mode and returns the result: the value of the program's last
        statement in run mode, the Program in parse mode, the list of Tokens in lex mode. Raises any errors that
        are encountered; nothing is evaluated unless lexing and parsing both succeed.
        """
        self.error_handler.register_source(self.path, source)

        if self.mode == "lex":
            tokens = list(tokenize(source))
            for token in tokens:
                self.write(str(token))
            return tokens

        program = parse(tokenize(source))
        if self.mode == "parse":
            self.write(program.display())
            return program

        logger.debug("evaluating %d statement(s) from %s", len(program.statements), self.path)
        result = evaluate(program, self.environment)
        if self.cmd_line:
            self.results.append(result)
        return result

    def pop(self):
        """Removes and returns the oldest result."""
        return self.results.pop(0)
