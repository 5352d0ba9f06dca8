#!/usr/bin/env python3
"""
Tokenizer for one calculator line.

Natural-language operator words and shorthand quantifiers fold into canonical
tokens here, so the parser only sees a small fixed vocabulary. Unknown
characters are skipped and the result always ends with EOF.
"""
from __future__ import annotations

from .common import EOF_TOKEN, Token, TokenType

CURRENCY_PREFIXES = frozenset("$€£")

FUNCTION_NAMES = frozenset(["sqrt", "sin", "cos", "tan", "log", "ln", "abs", "floor", "ceil", "round"])

KEYWORD_TOKENS = {
    "to": TokenType.TO,
    "in": TokenType.TO,
    "of": TokenType.OF,
    "off": TokenType.OFF,
    "as": TokenType.AS_A,
    "plus": TokenType.PLUS,
    "and": TokenType.PLUS,
    "minus": TokenType.MINUS,
    "subtract": TokenType.MINUS,
    "times": TokenType.MULTIPLY,
    "multiplied": TokenType.MULTIPLY,
    "divided": TokenType.DIVIDE,
    "over": TokenType.DIVIDE,
}

# Word -> exponent, emitted as POWER NUMBER
POWER_WORDS = {"squared": 2.0, "cubed": 3.0}

# Word -> factor, emitted as NUMBER MULTIPLY
QUANTIFIER_WORDS = {
    "half": 0.5,
    "third": 1.0 / 3.0,
    "quarter": 0.25,
    "double": 2.0,
    "triple": 3.0,
}

OPERATOR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "×": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
    "^": TokenType.POWER,
    "%": TokenType.PERCENT,
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "=": TokenType.EQUALS,
}

DEGREE_MARKER = "deg"


class Tokenizer:
    """Single-pass scanner over one line of text"""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    @property
    def current_char(self) -> str | None:
        if self.pos < len(self.text):
            return self.text[self.pos]
        return None

    def advance(self) -> None:
        if self.pos < len(self.text):
            self.pos += 1

    def skip_whitespace(self) -> None:
        while self.current_char is not None and self.current_char.isspace():
            self.advance()

    def read_number(self) -> float | None:
        """Digits with an optional single decimal point; commas are skipped"""
        chars: list[str] = []
        has_decimal = False

        while self.current_char is not None:
            char = self.current_char
            if char.isdigit():
                chars.append(char)
            elif char == "." and not has_decimal:
                has_decimal = True
                chars.append(char)
            elif char != ",":
                break
            self.advance()

        try:
            return float("".join(chars))
        except ValueError:
            return None

    def read_word(self) -> str:
        chars: list[str] = []
        while self.current_char is not None and (self.current_char.isalnum() or self.current_char == "_"):
            chars.append(self.current_char)
            self.advance()
        return "".join(chars)

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []

        while self.pos < len(self.text):
            self.skip_whitespace()
            char = self.current_char
            if char is None:
                break

            if char in CURRENCY_PREFIXES:
                self.advance()
                self.skip_whitespace()
                value = self.read_number()
                if value is not None:
                    tokens.append(Token.currency(char, value))
                else:
                    tokens.append(Token.identifier(char))
                continue

            if char.isdigit():
                value = self.read_number()
                if value is not None:
                    tokens.append(Token.number(value))
                continue

            if char.isalpha():
                self._tokenize_word(self.read_word().lower(), tokens)
                continue

            if char in OPERATOR_TOKENS:
                tokens.append(Token(OPERATOR_TOKENS[char]))
            elif char == "°":
                tokens.append(Token.identifier(DEGREE_MARKER))
            self.advance()

        tokens.append(EOF_TOKEN)
        return tokens

    def _tokenize_word(self, word: str, tokens: list[Token]) -> None:
        if word in KEYWORD_TOKENS:
            tokens.append(Token(KEYWORD_TOKENS[word]))
        elif word in POWER_WORDS:
            tokens.append(Token(TokenType.POWER))
            tokens.append(Token.number(POWER_WORDS[word]))
        elif word in QUANTIFIER_WORDS:
            tokens.append(Token.number(QUANTIFIER_WORDS[word]))
            tokens.append(Token(TokenType.MULTIPLY))
        elif word in FUNCTION_NAMES:
            tokens.append(Token.function(word))
        elif word == "square":
            self._tokenize_square(tokens)
        else:
            tokens.append(Token.identifier(word))

    def _tokenize_square(self, tokens: list[Token]) -> None:
        """Fold "square root" into sqrt; any other word stays as two identifiers"""
        self.skip_whitespace()
        char = self.current_char
        if char is None or char.lower() != "r":
            tokens.append(Token.identifier("square"))
            return

        following = self.read_word().lower()
        if following == "root":
            tokens.append(Token.function("sqrt"))
        else:
            tokens.append(Token.identifier("square"))
            tokens.append(Token.identifier(following))


def tokenize(text: str) -> list[Token]:
    return Tokenizer(text).tokenize()
