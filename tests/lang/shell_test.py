import io
import unittest
from unittest import mock

from plc.lang.error import ErrorHandler
from plc.lang.session import Session
from plc.lang.shell import Shell


def shell(mode="run"):
    error_handler = ErrorHandler(stream=io.StringIO(), color=False)
    sess = Session(error_handler, Session.SH_FILE, cmd_line=True, output=io.StringIO(), mode=mode)
    return Shell(sess, stdout=io.StringIO())


def feed(sh, *lines):
    for line in lines:
        sh.onecmd(line)


class ShellTestCase(unittest.TestCase):

    def test_is_open(self):
        should_pass = ["fun f() {", "print(", "{ { }", "object {", "fun f() { // }", 'print("(",', "{ '}';"]
        for case in should_pass:
            self.assertTrue(Shell.is_open(case), case)

        should_fail = ["x;", "fun f() { }", "print(1);", "}", "", 'print("{");', "print('(');", "x; // {",
                       '"unterminated {', "{ @"]
        for case in should_fail:
            self.assertFalse(Shell.is_open(case), case)

    def test_brackets_in_literals(self):
        sh = shell()
        feed(sh, 'print("{");', "'(';", "1; // {")
        self.assertEqual("> ", sh.prompt)
        self.assertEqual("{\n", sh.sess.output.getvalue())
        self.assertEqual("(\n1\n", sh.stdout.getvalue())

    def test_echo(self):
        sh = shell()
        feed(sh, "var x = 1 + 2;", "x * 2;", '"hi";', "nil;", "print(x);", "x == 3;")
        self.assertEqual("6\nhi\ntrue\n", sh.stdout.getvalue())
        self.assertEqual("3\n", sh.sess.output.getvalue())

    def test_continuation(self):
        sh = shell()
        sh.onecmd("fun add(a, b) {")
        self.assertEqual(Shell.secondary_prompt, sh.prompt)
        sh.onecmd("    return a + b;")
        self.assertEqual(Shell.secondary_prompt, sh.prompt)
        sh.onecmd("}")
        self.assertEqual("> ", sh.prompt)

        sh.onecmd("add(1,")
        sh.onecmd("2);")
        self.assertEqual("3\n", sh.stdout.getvalue())

    def test_errors_do_not_exit(self):
        sh = shell()
        feed(sh, "y;", "var = 5;", "1 / 0;", "var ok = 1;", "ok;")
        stderr = sh.sess.error_handler.stream.getvalue()

        self.assertIn("1:1: UndefinedVariable: undefined variable 'y'", stderr)
        self.assertIn("1:5: ParseError: expected variable name, found '='", stderr)
        self.assertIn("1:3: ArithmeticError: division by zero", stderr)
        self.assertEqual("1\n", sh.stdout.getvalue())
        self.assertEqual("> ", sh.prompt)

    def test_error_in_continuation(self):
        sh = shell()
        feed(sh, "fun f() {", "return @;")
        self.assertIn("2:8: LexError: unrecognized character '@'", sh.sess.error_handler.stream.getvalue())
        self.assertEqual("> ", sh.prompt)

        feed(sh, "f;")
        self.assertIn("UndefinedVariable", sh.sess.error_handler.stream.getvalue())

    def test_internal_errors_do_not_exit(self):
        sh = shell()
        with mock.patch.object(sh.sess, "run", side_effect=ValueError("boom")):
            self.assertFalse(sh.onecmd("1;"))
        self.assertIn("[internal] GenericException: unknown error: 'ValueError: boom'",
                      sh.sess.error_handler.stream.getvalue())

        feed(sh, "1e30 % 7;", "2;")
        self.assertIn("ArithmeticError: invalid decimal operation in '%'", sh.sess.error_handler.stream.getvalue())
        self.assertEqual("2\n", sh.stdout.getvalue())

    def test_modes(self):
        sh = shell(mode="lex")
        sh.onecmd("x;")
        self.assertEqual("1:1 IDENTIFIER 'x'\n1:2 PUNCTUATION ';'\n1:3 EOF ''\n", sh.sess.output.getvalue())
        self.assertEqual("", sh.stdout.getvalue())

        sh = shell(mode="parse")
        sh.onecmd("1;")
        self.assertIn("Literal(value=1)", sh.sess.output.getvalue())
        self.assertEqual("", sh.stdout.getvalue())

    def test_commands(self):
        sh = shell()
        self.assertFalse(sh.onecmd(""))
        self.assertTrue(sh.onecmd("exit"))
        self.assertTrue(sh.onecmd("EOF"))

        sh.onecmd("help")
        self.assertIn("Welcome to the plc interpreter!", sh.stdout.getvalue())


if __name__ == '__main__':
    unittest.main()
