r"""Lexical analysis for the plc language: converts source text into a lazy stream of Tokens.

Token grammar (whitespace and comments are skipped between tokens):

```
<identifier> ::= [A-Za-z_] [A-Za-z0-9_]*                 ; reserved words become keywords
<integer>    ::= [0-9]+ <exponent>?
<decimal>    ::= [0-9]+ "." [0-9]+ <exponent>?            ; "1." is an integer followed by "."
<exponent>   ::= "e" [+-]? [0-9]+                         ; "1e" is an integer followed by an identifier
<character>  ::= "'" ([^'\n\r\\] | <escape>) "'"
<string>     ::= '"' ([^"\n\r\\] | <escape>)* '"'
<escape>     ::= "\" [bnrt'"\\]
<operator>   ::= "==" | "!=" | "<=" | ">=" | [+\-*/%=<>!.]   ; maximal munch
<punctuation>::= [(){},;]
<comment>    ::= "//" [^\n\r]*
```

The lexer works through a combination of lex, which repeatedly skips over whitespace/comments and calls
lex_token, and lex_token, which determines the type of the next token and delegates to the corresponding lex_*
method. CharStream manages the lexer state and provides peek and match, which check upcoming characters against
single-character regexes.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto

from plc.lang.error import LexError


logger = logging.getLogger(__name__)


class TokenKind(Enum):
    IDENTIFIER = auto()
    KEYWORD = auto()
    INTEGER = auto()
    DECIMAL = auto()
    CHARACTER = auto()
    STRING = auto()
    OPERATOR = auto()
    PUNCTUATION = auto()
    EOF = auto()


KEYWORDS = frozenset([
    "var", "fun", "object", "if", "else", "while", "for", "return", "and", "or", "true", "false", "nil", "this",
])
OPERATORS = frozenset(["+", "-", "*", "/", "%", "=", "<", ">", "!", "."])
PUNCTUATION = frozenset(["(", ")", "{", "}", ",", ";"])

WHITESPACE = "[ \b\t\n\r]"


@dataclass(frozen=True)
class Position:
    """Location of a character in source: 1-based line and column, 0-based offset."""
    line: int
    column: int
    offset: int

    def __str__(self):
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Token:
    """A lexeme classified by kind. Tokens compare equal regardless of where they were found."""
    kind: TokenKind
    lexeme: str
    position: Position = field(default=None, compare=False)

    def __str__(self):
        return f"{self.position} {self.kind.name} {self.lexeme!r}"


class CharStream:
    """Character state of one pass over source, along with helpers for building up token lexemes."""

    def __init__(self, source):
        self.source = source
        self.index = 0
        self.length = 0  # number of characters matched since the last emit
        self.line = 1
        self.column = 1
        self.start = self.position()

    def has(self, offset=0):
        """Whether there is a character at index + offset."""
        return self.index + offset < len(self.source)

    def peek(self, *patterns):
        """Returns whether the next characters match their corresponding patterns. Each pattern is a regex matching
        ONE character, e.g. peek("/", "/") will match the next two characters.
        """
        if not self.has(len(patterns) - 1):
            return False
        return all(re.fullmatch(pattern, self.source[self.index + offset]) for offset, pattern in enumerate(patterns))

    def match(self, *patterns):
        """Equivalent to peek, but also advances the stream."""
        if not self.peek(*patterns):
            return False
        for _ in patterns:
            self.advance()
        return True

    def advance(self):
        char = self.source[self.index]
        self.index += 1
        self.length += 1
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1

    def current(self):
        """The next character, or None at end of input."""
        return self.source[self.index] if self.has() else None

    def position(self):
        return Position(self.line, self.column, self.index)

    def emit(self, kind=None):
        """Returns a Token of kind built from all characters matched since the last call to emit (None if kind is
        None, which simply discards them).
        """
        lexeme = self.source[self.index - self.length:self.index]
        start = self.start

        self.length = 0
        self.start = self.position()

        if kind is None:
            return None
        return Token(kind, lexeme, start)


class Lexer:
    """Iterable token stream over source. Every iteration lexes source again from its start."""

    def __init__(self, source):
        self.source = source

    def __iter__(self):
        return self.lex()

    def lex(self):
        """Lazily yields the tokens of source, terminated by a single EOF token. Raises LexError on the first
        character that cannot be lexed.
        """
        chars = CharStream(self.source)
        count = 0
        while chars.has():
            if chars.peek(WHITESPACE):
                self.lex_whitespace(chars)
            elif chars.peek("/", "/"):
                self.lex_comment(chars)
            else:
                count += 1
                yield self.lex_token(chars)

        logger.debug("lexed %d token(s) from %d character(s)", count, len(self.source))
        yield Token(TokenKind.EOF, "", chars.position())

    @staticmethod
    def lex_whitespace(chars):
        while chars.match(WHITESPACE):
            pass
        chars.emit()

    @staticmethod
    def lex_comment(chars):
        chars.match("/", "/")
        while chars.match("[^\n\r]"):
            pass
        chars.emit()

    def lex_token(self, chars):
        if chars.peek("[A-Za-z_]"):
            return self.lex_identifier(chars)
        elif chars.peek("[0-9]"):
            return self.lex_number(chars)
        elif chars.peek("'"):
            return self.lex_character(chars)
        elif chars.peek('"'):
            return self.lex_string(chars)
        elif chars.current() in OPERATORS:
            return self.lex_operator(chars)
        elif chars.current() in PUNCTUATION:
            chars.advance()
            return chars.emit(TokenKind.PUNCTUATION)
        raise LexError("unrecognized character '{}'", chars.current(), chars.position())

    @staticmethod
    def lex_identifier(chars):
        chars.match("[A-Za-z_]")
        while chars.match("[A-Za-z0-9_]"):
            pass

        token = chars.emit(TokenKind.IDENTIFIER)
        if token.lexeme in KEYWORDS:
            return Token(TokenKind.KEYWORD, token.lexeme, token.position)
        return token

    @staticmethod
    def lex_number(chars):
        kind = TokenKind.INTEGER
        while chars.match("[0-9]"):
            pass

        if chars.match(r"\.", "[0-9]"):
            kind = TokenKind.DECIMAL
            while chars.match("[0-9]"):
                pass

        if chars.match("e", "[+-]", "[0-9]") or chars.match("e", "[0-9]"):
            while chars.match("[0-9]"):
                pass

        return chars.emit(kind)

    def lex_character(self, chars):
        chars.match("'")
        if chars.peek(r"\\"):
            self.lex_escape(chars)
        elif not chars.match("[^'\n\r\\\\]"):
            raise LexError("invalid character literal", position=chars.position())

        if not chars.match("'"):
            raise LexError("unterminated character literal", position=chars.position())
        return chars.emit(TokenKind.CHARACTER)

    def lex_string(self, chars):
        chars.match('"')
        while chars.has() and not chars.peek('"'):
            if chars.peek(r"\\"):
                self.lex_escape(chars)
            elif not chars.match('[^"\n\r\\\\]'):
                break  # raw newline

        if not chars.match('"'):
            raise LexError("unterminated string literal", position=chars.position())
        return chars.emit(TokenKind.STRING)

    @staticmethod
    def lex_escape(chars):
        chars.match(r"\\")
        if not chars.match("[bnrt'\"\\\\]"):
            raise LexError("invalid escape sequence '\\{}'", chars.current() or "", chars.position())

    @staticmethod
    def lex_operator(chars):
        if not chars.match("[<>!=]", "="):
            chars.advance()
        return chars.emit(TokenKind.OPERATOR)


def tokenize(source):
    """Returns a lazy, restartable token stream over source."""
    return Lexer(source)
