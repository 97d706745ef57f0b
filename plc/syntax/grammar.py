"""Recursive descent parser for the plc language. Each rule in the grammar has a dedicated method, and references to
other rules correspond to calling that method; operator precedence is encoded via the grammar (lowest first):

```
<program>     ::= <statement>* EOF
<statement>   ::= <var_decl> | <fun_decl> | <if_stmt> | <while_stmt> | <for_stmt> | <return_stmt> | <block>
                | <expr_stmt>
<var_decl>    ::= "var" IDENTIFIER ("=" <expression>)? ";"
<fun_decl>    ::= "fun" IDENTIFIER "(" (IDENTIFIER ("," IDENTIFIER)*)? ")" <block>
<if_stmt>     ::= "if" "(" <expression> ")" <statement> ("else" <statement>)?
<while_stmt>  ::= "while" "(" <expression> ")" <statement>
<for_stmt>    ::= "for" "(" (<var_decl> | <expr_stmt> | ";") <expression>? ";" <expression>? ")" <statement>
<return_stmt> ::= "return" <expression>? ";"               ; only inside a function body
<block>       ::= "{" <statement>* "}"
<expr_stmt>   ::= <expression> ";"

<expression>  ::= <assignment>
<assignment>  ::= (<call> ".")? IDENTIFIER "=" <assignment> ; right-associative
                | <logic_or>
<logic_or>    ::= <logic_and> ("or" <logic_and>)*
<logic_and>   ::= <equality> ("and" <equality>)*
<equality>    ::= <relational> (("==" | "!=") <relational>)*
<relational>  ::= <additive> (("<" | "<=" | ">" | ">=") <additive>)*
<additive>    ::= <multiplicative> (("+" | "-") <multiplicative>)*
<multiplicative> ::= <unary> (("*" | "/" | "%") <unary>)*
<unary>       ::= ("!" | "-") <unary> | <call>
<call>        ::= <primary> ("(" (<expression> ("," <expression>)*)? ")" | "." IDENTIFIER)*
<primary>     ::= "nil" | "true" | "false" | INTEGER | DECIMAL | CHARACTER | STRING | "this" | IDENTIFIER
                | "(" <expression> ")" | <object>
<object>      ::= "object" IDENTIFIER? "{" <var_decl>* <fun_decl>* "}"
```

The parser reads a TokenStream with one token of lookahead: TokenStream.peek and TokenStream.match compare upcoming
tokens against patterns, each either a TokenKind or a lexeme.
"""

import logging
import re
from decimal import Decimal

from plc.lang.error import ParseError
from plc.syntax.lexical import Position, Token, TokenKind
from plc.syntax.tree import (Assign, Binary, Block, Call, Expression, For, FunDecl, Get, If, Literal, ObjectExpr,
                             Program, Return, Set, This, Unary, Variable, VarDecl, While)


logger = logging.getLogger(__name__)

ESCAPES = {"b": "\b", "n": "\n", "r": "\r", "t": "\t", "'": "'", '"': '"', "\\": "\\"}

# tokens that begin a statement, used to resynchronize after an error
STATEMENT_KEYWORDS = frozenset(["var", "fun", "if", "while", "for", "return"])

# binary precedence levels, lowest first
BINARY_LEVELS = [
    ("or",),
    ("and",),
    ("==", "!="),
    ("<", "<=", ">", ">="),
    ("+", "-"),
    ("*", "/", "%"),
]


class TokenStream:
    """Cursor over a list of tokens that always ends with an EOF token."""

    def __init__(self, tokens):
        self.tokens = list(tokens)
        if not self.tokens or self.tokens[-1].kind is not TokenKind.EOF:
            last = self.tokens[-1].position if self.tokens else None
            position = Position(last.line, last.column + 1, last.offset + 1) if last else Position(1, 1, 0)
            self.tokens.append(Token(TokenKind.EOF, "", position))
        self.index = 0

    def has(self, offset=0):
        """Whether there is a non-EOF token at index + offset."""
        return self.index + offset < len(self.tokens) - 1

    def get(self, offset=0):
        """Returns the token at index + offset, clamped to the EOF token."""
        return self.tokens[max(min(self.index + offset, len(self.tokens) - 1), 0)]

    def peek(self, *patterns):
        """Returns whether the next tokens match their corresponding patterns. Each pattern is either a TokenKind,
        matching tokens of that kind, or a str, matching tokens with that lexeme (string literals keep their quotes,
        so they never match a bare lexeme).
        """
        if not self.has(len(patterns) - 1):
            return False
        for offset, pattern in enumerate(patterns):
            token = self.tokens[self.index + offset]
            if token.kind is not pattern and token.lexeme != pattern:
                return False
        return True

    def match(self, *patterns):
        """Equivalent to peek, but also advances the stream."""
        if not self.peek(*patterns):
            return False
        self.index += len(patterns)
        return True


class Parser:
    """Builds a Program from a token stream. Raises ParseError at the first token that does not fit the grammar."""

    def __init__(self, tokens):
        self.tokens = TokenStream(tokens)
        self.function_depth = 0  # return is only legal inside functions
        self.method_depth = 0    # this is only legal inside object methods

    def parse(self):
        statements = []
        while self.tokens.has():
            statements.append(self.parse_statement())

        logger.debug("parsed %d top-level statement(s)", len(statements))
        return Program(tuple(statements), position=Position(1, 1, 0))

    def parse_with_recovery(self):
        """Like parse, but on a ParseError skips to the next statement boundary and carries on. Returns the Program
        of every statement that parsed correctly and the list of errors encountered.
        """
        statements, errors = [], []
        while self.tokens.has():
            try:
                statements.append(self.parse_statement())
            except ParseError as error:
                errors.append(error)
                self.synchronize()

        logger.debug("parsed %d top-level statement(s) with %d error(s)", len(statements), len(errors))
        return Program(tuple(statements), position=Position(1, 1, 0)), errors

    def synchronize(self):
        """Discards tokens until just after a ';' or '}', or just before a token that begins a statement."""
        self.function_depth = 0
        self.method_depth = 0

        start = self.tokens.index
        while self.tokens.has():
            if self.tokens.index > start and self.tokens.peek(TokenKind.KEYWORD) \
                    and self.tokens.get().lexeme in STATEMENT_KEYWORDS:
                return
            token = self.tokens.get()
            self.tokens.index += 1
            if token.lexeme in (";", "}"):
                return

    def error(self, expected):
        return ParseError(expected, self.tokens.get())

    def expect(self, pattern, expected=None):
        """Matches pattern and returns the matched token, or raises a ParseError."""
        token = self.tokens.get()
        if not self.tokens.match(pattern):
            raise self.error(expected or f"'{pattern}'")
        return token

    def expect_identifier(self, what="identifier"):
        return self.expect(TokenKind.IDENTIFIER, what).lexeme

    # Statements

    def parse_statement(self):
        if self.tokens.peek("var"):
            return self.parse_var_decl()
        elif self.tokens.peek("fun"):
            return self.parse_fun_decl()
        elif self.tokens.peek("if"):
            return self.parse_if_stmt()
        elif self.tokens.peek("while"):
            return self.parse_while_stmt()
        elif self.tokens.peek("for"):
            return self.parse_for_stmt()
        elif self.tokens.peek("return"):
            return self.parse_return_stmt()
        elif self.tokens.peek("{"):
            return self.parse_block()
        return self.parse_expression_stmt()

    def parse_var_decl(self):
        keyword = self.expect("var")
        name = self.expect_identifier("variable name")

        initializer = None
        if self.tokens.match("="):
            initializer = self.parse_expression()

        self.expect(";")
        return VarDecl(name, initializer, position=keyword.position)

    def parse_fun_decl(self):
        keyword = self.expect("fun")
        name = self.expect_identifier("function name")

        self.expect("(")
        params = []
        if not self.tokens.peek(")"):
            params.append(self.expect_identifier("parameter name"))
            while self.tokens.match(","):
                token = self.tokens.get()
                param = self.expect_identifier("parameter name")
                if param in params:
                    raise ParseError("unique parameter name", token)
                params.append(param)
        self.expect(")")

        self.function_depth += 1
        try:
            body = self.parse_block()
        finally:
            self.function_depth -= 1

        return FunDecl(name, tuple(params), body.statements, position=keyword.position)

    def parse_if_stmt(self):
        keyword = self.expect("if")
        self.expect("(")
        condition = self.parse_expression()
        self.expect(")")

        then_branch = self.parse_statement()
        else_branch = None
        if self.tokens.match("else"):
            else_branch = self.parse_statement()

        return If(condition, then_branch, else_branch, position=keyword.position)

    def parse_while_stmt(self):
        keyword = self.expect("while")
        self.expect("(")
        condition = self.parse_expression()
        self.expect(")")

        return While(condition, self.parse_statement(), position=keyword.position)

    def parse_for_stmt(self):
        keyword = self.expect("for")
        self.expect("(")

        if self.tokens.match(";"):
            initializer = None
        elif self.tokens.peek("var"):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expression_stmt()

        condition = None
        if not self.tokens.peek(";"):
            condition = self.parse_expression()
        self.expect(";")

        increment = None
        if not self.tokens.peek(")"):
            increment = self.parse_expression()
        self.expect(")")

        return For(initializer, condition, increment, self.parse_statement(), position=keyword.position)

    def parse_return_stmt(self):
        keyword = self.tokens.get()
        if not self.function_depth:
            raise ParseError("statement ('return' outside of a function)", keyword)
        self.expect("return")

        value = None
        if not self.tokens.peek(";"):
            value = self.parse_expression()
        self.expect(";")

        return Return(value, position=keyword.position)

    def parse_block(self):
        brace = self.expect("{")
        statements = []
        while self.tokens.has() and not self.tokens.peek("}"):
            statements.append(self.parse_statement())
        self.expect("}")

        return Block(tuple(statements), position=brace.position)

    def parse_expression_stmt(self):
        token = self.tokens.get()
        expression = self.parse_expression()
        self.expect(";")
        return Expression(expression, position=token.position)

    # Expressions

    def parse_expression(self):
        return self.parse_assignment()

    def parse_assignment(self):
        target = self.parse_binary(0)

        equals = self.tokens.get()
        if not self.tokens.match("="):
            return target

        value = self.parse_assignment()
        if isinstance(target, Variable):
            return Assign(target.name, value, position=target.position)
        elif isinstance(target, Get):
            return Set(target.receiver, target.name, value, position=target.position)
        raise ParseError("assignable target before '='", equals)

    def parse_binary(self, level):
        """Parses one left-associative precedence level of BINARY_LEVELS; the level after the last is unary."""
        if level == len(BINARY_LEVELS):
            return self.parse_unary()

        left = self.parse_binary(level + 1)
        while self.tokens.get().kind in (TokenKind.OPERATOR, TokenKind.KEYWORD) \
                and self.tokens.get().lexeme in BINARY_LEVELS[level]:
            operator = self.tokens.get()
            self.tokens.index += 1
            right = self.parse_binary(level + 1)
            left = Binary(operator.lexeme, left, right, position=operator.position)
        return left

    def parse_unary(self):
        operator = self.tokens.get()
        if self.tokens.match("!") or self.tokens.match("-"):
            return Unary(operator.lexeme, self.parse_unary(), position=operator.position)
        return self.parse_call()

    def parse_call(self):
        expression = self.parse_primary()
        while True:
            token = self.tokens.get()
            if self.tokens.match("("):
                expression = Call(expression, self.parse_arguments(), position=token.position)
            elif self.tokens.match("."):
                name = self.expect_identifier("property name")
                expression = Get(expression, name, position=token.position)
            else:
                return expression

    def parse_arguments(self):
        arguments = []
        if not self.tokens.peek(")"):
            arguments.append(self.parse_expression())
            while self.tokens.match(","):
                arguments.append(self.parse_expression())
        self.expect(")")
        return tuple(arguments)

    def parse_primary(self):
        token = self.tokens.get()

        if self.tokens.match("nil"):
            return Literal(None, position=token.position)
        elif self.tokens.match("true"):
            return Literal(True, position=token.position)
        elif self.tokens.match("false"):
            return Literal(False, position=token.position)
        elif self.tokens.match(TokenKind.INTEGER) or self.tokens.match(TokenKind.DECIMAL):
            return Literal(Parser.number(token.lexeme), position=token.position)
        elif self.tokens.match(TokenKind.CHARACTER) or self.tokens.match(TokenKind.STRING):
            return Literal(Parser.unescape(token.lexeme[1:-1]), position=token.position)
        elif self.tokens.match("this"):
            if not self.method_depth:
                raise ParseError("expression ('this' outside of an object method)", token)
            return This(position=token.position)
        elif self.tokens.match(TokenKind.IDENTIFIER):
            return Variable(token.lexeme, position=token.position)
        elif self.tokens.match("("):
            expression = self.parse_expression()
            self.expect(")")
            return expression
        elif self.tokens.peek("object"):
            return self.parse_object()
        raise self.error("expression")

    def parse_object(self):
        keyword = self.expect("object")
        name = None
        if self.tokens.peek(TokenKind.IDENTIFIER):
            name = self.expect_identifier()
        self.expect("{")

        fields = []
        while self.tokens.peek("var"):
            fields.append(self.parse_var_decl())

        methods = []
        self.method_depth += 1
        try:
            while self.tokens.peek("fun"):
                methods.append(self.parse_fun_decl())
        finally:
            self.method_depth -= 1

        if not self.tokens.match("}"):
            raise self.error("'fun' or '}'" if methods else "'var', 'fun' or '}'")
        return ObjectExpr(name, tuple(fields), tuple(methods), position=keyword.position)

    @staticmethod
    def number(lexeme):
        """INTEGER lexemes become ints unless they carry an exponent; everything else becomes a Decimal."""
        if re.fullmatch("[0-9]+", lexeme):
            return int(lexeme)
        return Decimal(lexeme)

    @staticmethod
    def unescape(body):
        return re.sub(r"\\(.)", lambda match: ESCAPES[match.group(1)], body)


def parse(tokens):
    """Parses tokens (any iterable of Tokens, e.g. a Lexer) into a Program. Raises ParseError."""
    return Parser(tokens).parse()


def parse_with_recovery(tokens):
    """Parses tokens, collecting ParseErrors instead of stopping at the first one. Returns (Program, errors)."""
    return Parser(tokens).parse_with_recovery()
