"""Reader for the lcam term language: text in, lcam.pure.terms out.

```
<term> ::= <number> | <identifier>
         | "(" ("lambda" | "λ") <identifier> [":" <type>] "." <term> ")"
         | "(" <term> <term> ")"
         | "(" <term> ("+" | "*") <term> ")"
<type> ::= <identifier> | "(" <type> ")" | <type> "->" <type>      ; "->" associates to the right
```

Every application, abstraction and binary operation is parenthesized, so the reader never has to guess precedence.
An identifier listed in the reader's constants (name: Type) reads as a Constant unless a binder shadows it; every other
identifier reads as a Variable.
"""

import re

from lcam.lang.error import ParseError
from lcam.pure.terms import OPERATORS, Application, BinaryOp, Constant, Lambda, Number, Variable
from lcam.pure.type_system import TypeArrow, TypeConst


TOKENS = re.compile(r"(?P<number>\d+)|(?P<identifier>[A-Za-z_][A-Za-z0-9_'₀-₉]*)|(?P<arrow>->)|(?P<symbol>[()λ.:+*])")
LAMBDAS = ("lambda", "λ")


class Token:

    def __init__(self, kind, text, start):
        self.kind = kind
        self.text = text
        self.start = start
        self.end = start + len(text)

    def __repr__(self):
        return f"Token({self.kind}, '{self.text}', {self.start})"


def tokenize(text):
    """Splits text into Tokens. Raises ParseError on a character that can't start any token."""
    tokens = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue

        match = TOKENS.match(text, pos)
        if match is None:
            raise ParseError("'{}' contains illegal character '{}'", (text, text[pos]), pos, pos + 1)

        kind = match.lastgroup
        if kind == "identifier" and match.group() == "lambda":
            kind = "symbol"
        tokens.append(Token(kind, match.group(), pos))
        pos = match.end()
    return tokens


class Reader:
    """Recursive-descent reader. One Reader reads one piece of text."""

    def __init__(self, text, constants=None):
        self.text = text
        self.constants = dict(constants) if constants else {}
        self.tokens = tokenize(text)
        self.pos = 0

    def read(self):
        """Reads the whole text as a single term."""
        if not self.tokens:
            raise ParseError("term cannot be empty", self.text)

        term = self.read_term(frozenset())
        if self.pos != len(self.tokens):
            self.fail("'{}' has trailing input after a complete term", self.tokens[self.pos])
        return term

    def read_term(self, bound):
        """Reads a term. bound holds the names bound by enclosing abstractions, which shadow constants."""
        token = self.next("term")

        if token.kind == "number":
            return Number(int(token.text))

        elif token.kind == "identifier":
            if token.text in self.constants and token.text not in bound:
                return Constant(token.text, self.constants[token.text])
            return Variable(token.text)

        elif token.text != "(":
            self.fail("'{}' has unexpected '{}' where a term should start", token, token.text)

        if self.peek() is not None and self.peek().text in LAMBDAS:
            self.next("λ")
            param = self.expect_identifier()
            param_type = None
            if self.peek() is not None and self.peek().text == ":":
                self.next(":")
                param_type = self.read_type()
            self.expect(".")
            body = self.read_term(bound | {param})
            self.expect(")")
            return Lambda(param, body, param_type)

        left = self.read_term(bound)
        if self.peek() is not None and self.peek().text in OPERATORS:
            op = self.next("operator").text
            right = self.read_term(bound)
            self.expect(")")
            return BinaryOp(op, left, right)

        right = self.read_term(bound)
        self.expect(")")
        return Application(left, right)

    def read_type(self):
        token = self.next("type")

        if token.kind == "identifier":
            domain = TypeConst(token.text)
        elif token.text == "(":
            domain = self.read_type()
            self.expect(")")
        else:
            self.fail("'{}' has unexpected '{}' where a type should start", token, token.text)

        if self.peek() is not None and self.peek().kind == "arrow":
            self.next("->")
            return TypeArrow(domain, self.read_type())
        return domain

    def peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self, expected):
        """Consumes and returns the next token, which should be expected."""
        token = self.peek()
        if token is None:
            raise ParseError("'{}' ended early, expected {}", (self.text, expected), len(self.text) - 1, len(self.text))
        self.pos += 1
        return token

    def expect(self, text):
        token = self.next(f"'{text}'")
        if token.text != text:
            self.fail("'{}' expected '{}' but found '{}'", token, text, token.text)
        return token

    def expect_identifier(self):
        token = self.next("identifier")
        if token.kind != "identifier":
            self.fail("'{}' expected a parameter name but found '{}'", token, token.text)
        return token.text

    def fail(self, msg, token, *exprs):
        """Raises a ParseError pointing at token. msg is formatted with self.text and then exprs."""
        raise ParseError(msg, (self.text, *exprs), token.start, token.end)


def free_occurrence(text, name):
    """Returns the token of the first free occurrence of the variable name in text, or None if there isn't one.
    Binders, occurrences bound by an enclosing binder and parameter type annotations are skipped.
    """
    tokens = tokenize(text)
    binders = []  # (param, paren depth of its abstraction)
    depth = 0
    in_type = False

    for i, token in enumerate(tokens):
        if token.text == "(":
            depth += 1
        elif token.text == ")":
            while binders and binders[-1][1] == depth:
                binders.pop()
            depth -= 1
        elif token.text == ":":
            in_type = True
        elif token.text == ".":
            in_type = False
        elif token.kind == "identifier" and not in_type:
            if i > 0 and tokens[i - 1].text in LAMBDAS:
                binders.append((token.text, depth))
            elif token.text == name and all(param != name for param, __ in binders):
                return token
    return None


def read(text, constants=None):
    """Shorthand for Reader(text, constants).read()."""
    return Reader(text, constants).read()


def read_type(text):
    """Reads text as a type."""
    reader = Reader(text)
    if not reader.tokens:
        raise ParseError("type cannot be empty", text)

    t = reader.read_type()
    if reader.pos != len(reader.tokens):
        reader.fail("'{}' has trailing input after a complete type", reader.tokens[reader.pos])
    return t
