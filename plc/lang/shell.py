"""Handles interactive/command-line mode for the plc interpreter. Uses cmd as backend."""

import cmd
from collections import Counter

from plc.lang.error import LexError
from plc.runtime.values import stringify
from plc.syntax.lexical import TokenKind, tokenize


class Shell(cmd.Cmd):
    """plc interpreter shell."""
    intro = "plc interpreter :: Python backend\nType '?' or 'help' for more information."
    prompt = "> "
    secondary_prompt = ". "  # used for line continuations
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.sess = sess
        self._tmp_line = ""

    @staticmethod
    def is_open(source):
        """Whether source has unclosed braces or parentheses, meaning that more lines are needed. Brackets inside
        literals and comments do not count. Source that cannot be lexed is complete, so that its error is reported.
        """
        try:
            brackets = Counter(token.lexeme for token in tokenize(source) if token.kind is TokenKind.PUNCTUATION)
        except LexError:
            return False
        return brackets["{"] > brackets["}"] or brackets["("] > brackets[")"]

    def default(self, line):
        """Executes arbitrary plc source."""
        with self.sess.error_handler:  # needed because cmd.Cmd automatically exits on Exception
            source = f"{self._tmp_line}\n{line}" if self._tmp_line else line

            if Shell.is_open(source):
                self._tmp_line = source
                self.prompt = self.secondary_prompt
                return

            self._tmp_line = ""
            self.prompt = self._tmp_prompt

            self.sess.run(source)
            if self.sess.mode == "run" and self.sess.results:
                result = self.sess.pop()
                if result is not None:
                    print(stringify(result), file=self.stdout)

    def do_help(self, arg):
        """Doesnt return docs, but rather a short intro."""
        print("Welcome to the plc interpreter!\n\n"
              "Statements end with ';' and blocks are wrapped in '{' and '}'; the shell waits for\n"
              "more lines while a block or parenthesis is left open.\n\n"
              "Try it out by typing 'var x = 1 + 2;'. This binds the value 3 to the name 'x'.\n"
              "Next, try typing 'x * 2;' (the shell echoes 6) or 'print(\"hi\");'.\n"
              "Functions look like 'fun add(a, b) { return a + b; }'.", file=self.stdout)

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""

    def do_EOF(self, arg):
        """Exits interpreter."""
        print(file=self.stdout)
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        return True
