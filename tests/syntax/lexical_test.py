import unittest
import warnings

from plc.lang.error import LexError
from plc.syntax import lexical
from plc.syntax.lexical import Position, Token, TokenKind, tokenize


def lex(source):
    """Tokens of source without the trailing EOF token."""
    tokens = list(tokenize(source))
    return tokens[:-1]


class LexerTestCase(unittest.TestCase):

    def test_skipped(self):
        cases = [" ", "\n", "    \n    ", "\t\r\n", "//", "//comment", "// comment\n  // another"]
        for case in cases:
            self.assertEqual([], lex(case), repr(case))

    def test_single_token(self):
        cases = {
            TokenKind.IDENTIFIER: ["getName", "thelegend27", "_private", "snake_case", "x"],
            TokenKind.KEYWORD: ["var", "fun", "object", "if", "else", "while", "for", "return", "and", "or", "true",
                                "false", "nil", "this"],
            TokenKind.INTEGER: ["1", "123", "1e10", "1e-3", "007"],
            TokenKind.DECIMAL: ["1.0", "123.456", "1.0e10", "2.5e+3"],
            TokenKind.CHARACTER: ["'c'", "'\\n'", "'\\''", "'\"'", "' '"],
            TokenKind.STRING: ['""', '"string"', '"Hello,\\nWorld"', '"tab\\there"', '"quote\\"inside"'],
            TokenKind.OPERATOR: ["+", "-", "*", "/", "%", "=", "==", "!=", "<", "<=", ">", ">=", "!", "."],
            TokenKind.PUNCTUATION: ["(", ")", "{", "}", ",", ";"],
        }
        for kind, sources in cases.items():
            for case in sources:
                self.assertEqual([Token(kind, case)], lex(case), case)

    def test_interaction(self):
        cases = {
            "first second": [Token(TokenKind.IDENTIFIER, "first"), Token(TokenKind.IDENTIFIER, "second")],
            "-five": [Token(TokenKind.OPERATOR, "-"), Token(TokenKind.IDENTIFIER, "five")],
            "1fish2fish": [Token(TokenKind.INTEGER, "1"), Token(TokenKind.IDENTIFIER, "fish2fish")],
            "1e": [Token(TokenKind.INTEGER, "1"), Token(TokenKind.IDENTIFIER, "e")],
            "1.": [Token(TokenKind.INTEGER, "1"), Token(TokenKind.OPERATOR, ".")],
            "<=>": [Token(TokenKind.OPERATOR, "<="), Token(TokenKind.OPERATOR, ">")],
            "===": [Token(TokenKind.OPERATOR, "=="), Token(TokenKind.OPERATOR, "=")],
            "!!=": [Token(TokenKind.OPERATOR, "!"), Token(TokenKind.OPERATOR, "!=")],
            "variable": [Token(TokenKind.IDENTIFIER, "variable")],
            "x.y": [Token(TokenKind.IDENTIFIER, "x"), Token(TokenKind.OPERATOR, "."), Token(TokenKind.IDENTIFIER, "y")],
            "a//b": [Token(TokenKind.IDENTIFIER, "a")],
        }
        for case, expected in cases.items():
            self.assertEqual(expected, lex(case), case)

    def test_program(self):
        expected = [
            Token(TokenKind.KEYWORD, "var"),
            Token(TokenKind.IDENTIFIER, "x"),
            Token(TokenKind.OPERATOR, "="),
            Token(TokenKind.INTEGER, "5"),
            Token(TokenKind.PUNCTUATION, ";"),
            Token(TokenKind.IDENTIFIER, "print"),
            Token(TokenKind.PUNCTUATION, "("),
            Token(TokenKind.STRING, '"Hello, World!"'),
            Token(TokenKind.PUNCTUATION, ")"),
            Token(TokenKind.PUNCTUATION, ";"),
        ]
        self.assertEqual(expected, lex('var x = 5;\nprint("Hello, World!");'))

    def test_positions(self):
        tokens = list(tokenize("var x = 5;\n  print(x);"))
        positions = [token.position for token in tokens]
        self.assertEqual(Position(1, 1, 0), positions[0])
        self.assertEqual(Position(1, 5, 4), positions[1])
        self.assertEqual(Position(1, 7, 6), positions[2])
        self.assertEqual(Position(2, 3, 13), positions[5])
        self.assertEqual(Position(2, 12, 22), positions[-1])

    def test_eof(self):
        cases = ["", "   ", "var x;", "// only a comment"]
        for case in cases:
            tokens = list(tokenize(case))
            self.assertEqual(TokenKind.EOF, tokens[-1].kind, case)
            self.assertEqual(1, sum(token.kind is TokenKind.EOF for token in tokens), case)

    def test_lazy_and_restartable(self):
        lexer = tokenize("a b @")
        stream = iter(lexer)
        self.assertEqual(Token(TokenKind.IDENTIFIER, "a"), next(stream))  # error not reached yet
        self.assertEqual(Token(TokenKind.IDENTIFIER, "b"), next(stream))
        self.assertRaises(LexError, next, stream)

        restarted = tokenize("x = 1;")
        self.assertEqual(list(restarted), list(restarted))

    def test_exception(self):
        cases = {
            "'u": 2,
            "'abc'": 2,
            "''": 1,
            '"invalid\\escape"': 9,
            '"unterminated': 13,
            '"new\nline"': 4,
            "x @ y": 2,
            "#": 0,
            "a & b": 2,
            "x = '\\q';": 6,
        }
        for case, offset in cases.items():
            with self.assertRaises(LexError, msg=case) as ctx:
                list(tokenize(case))
            self.assertEqual(offset, ctx.exception.position.offset, case)

    def test_exception_message(self):
        with self.assertRaises(LexError) as ctx:
            list(tokenize("var x = 1;\nx @ 2;"))
        self.assertEqual("@", ctx.exception.character)
        self.assertEqual(Position(2, 3, 13), ctx.exception.position)
        self.assertIn("unrecognized character '@'", str(ctx.exception))

    def test_grammar_docstring(self):
        self.assertIn(r"[+\-*/%=<>!.]", lexical.__doc__)

        with open(lexical.__file__, encoding="utf-8") as file:
            source = file.read()
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(source, lexical.__file__, "exec")


if __name__ == '__main__':
    unittest.main()
