#!/usr/bin/env python3
"""
Recursive-descent parser with backtracking.

Grammar, lowest to highest precedence:

    assignment := identifier '=' expression | expression
    expression := term (('+'|'-') [percentTerm | term])*
    term       := power (('*'|'/'|of) power)*
    power      := unary ('^' unary)*
    unary      := '-' unary | postfix
    postfix    := primary ['%' [off expression | of expression]]
                          [as ['a'] '%' of expression]
                          [unit [to identifier]]
    primary    := number ['deg'] | currency | function | identifier | '(' expression ')'

Every rule returns None when it cannot parse; callers roll the position back
where a rule is only an attempt. Tokens left over after a complete parse are
ignored.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from .common import (
    EOF_TOKEN,
    AsPercentOf,
    Assignment,
    BinaryOp,
    BinaryOperator,
    Conversion,
    CurrencyLiteral,
    FunctionCall,
    FunctionCall2,
    Node,
    NumberLiteral,
    Percentage,
    PercentageOf,
    PercentageOff,
    Token,
    TokenType,
    UnaryMinus,
    Variable,
    WithUnit,
)
from .tokenizer import DEGREE_MARKER

if TYPE_CHECKING:
    from ..units.registry import UnitRegistry


class Parser:
    def __init__(self, tokens: list[Token], registry: UnitRegistry):
        self.tokens = tokens
        self.registry = registry
        self.index = 0

    @property
    def current(self) -> Token:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return EOF_TOKEN

    def advance(self) -> None:
        self.index += 1

    def check(self, token_type: TokenType) -> bool:
        return self.current.type is token_type

    def consume(self, token_type: TokenType) -> bool:
        if self.check(token_type):
            self.advance()
            return True
        return False

    def is_identifier(self, name: str | None = None) -> bool:
        token = self.current
        return token.type is TokenType.IDENTIFIER and (name is None or token.text == name)

    def parse(self) -> Optional[Node]:
        return self.parse_assignment()

    def parse_assignment(self) -> Optional[Node]:
        start = self.index

        if self.is_identifier():
            name = self.current.text
            self.advance()
            if self.consume(TokenType.EQUALS):
                expr = self.parse_expression()
                if expr is not None:
                    return Assignment(name, expr)

        self.index = start
        return self.parse_expression()

    def parse_expression(self) -> Optional[Node]:
        left = self.parse_term()
        if left is None:
            return None

        while self.check(TokenType.PLUS) or self.check(TokenType.MINUS):
            adding = self.check(TokenType.PLUS)
            self.advance()

            # "100 + 10%" is a percentage increase, not 100 + 0.1
            percent = self.parse_percentage_term()
            if percent is not None:
                op = BinaryOperator.PERCENTAGE_ADD if adding else BinaryOperator.PERCENTAGE_SUBTRACT
                left = BinaryOp(left, op, percent)
                continue

            right = self.parse_term()
            if right is None:
                return left
            left = BinaryOp(left, BinaryOperator.ADD if adding else BinaryOperator.SUBTRACT, right)

        return left

    def parse_percentage_term(self) -> Optional[Node]:
        start = self.index

        primary = self.parse_primary()
        if primary is not None and self.consume(TokenType.PERCENT):
            return Percentage(primary)

        self.index = start
        return None

    def parse_term(self) -> Optional[Node]:
        left = self.parse_power()
        if left is None:
            return None

        while True:
            if self.check(TokenType.MULTIPLY) or self.check(TokenType.OF):
                op = BinaryOperator.MULTIPLY
            elif self.check(TokenType.DIVIDE):
                op = BinaryOperator.DIVIDE
            else:
                return left

            self.advance()
            right = self.parse_power()
            if right is None:
                return left
            left = BinaryOp(left, op, right)

    def parse_power(self) -> Optional[Node]:
        left = self.parse_unary()
        if left is None:
            return None

        while self.consume(TokenType.POWER):
            right = self.parse_unary()
            if right is None:
                return left
            left = BinaryOp(left, BinaryOperator.POWER, right)

        return left

    def parse_unary(self) -> Optional[Node]:
        if self.consume(TokenType.MINUS):
            operand = self.parse_unary()
            if operand is None:
                return None
            return UnaryMinus(operand)
        return self.parse_postfix()

    def parse_postfix(self) -> Optional[Node]:
        node = self.parse_primary()
        if node is None:
            return None

        if self.consume(TokenType.PERCENT):
            if self.consume(TokenType.OFF):
                target = self.parse_expression()
                if target is not None:
                    return PercentageOff(node, target)
            if self.consume(TokenType.OF):
                target = self.parse_expression()
                if target is not None:
                    return PercentageOf(node, target)
            node = Percentage(node)

        # "$5 as a % of $10"
        if self.consume(TokenType.AS_A):
            if self.is_identifier("a"):
                self.advance()
            if self.consume(TokenType.PERCENT) and self.consume(TokenType.OF):
                denominator = self.parse_expression()
                if denominator is not None:
                    return AsPercentOf(node, denominator)

        if self.is_identifier() and self.registry.is_unit(self.current.text):
            node = WithUnit(node, self.current.text)
            self.advance()

            # The target is checked at evaluation time, not here
            if self.consume(TokenType.TO) and self.is_identifier():
                target = self.current.text
                self.advance()
                return Conversion(node, target)

        return node

    def parse_primary(self) -> Optional[Node]:
        token = self.current

        if token.type is TokenType.NUMBER:
            self.advance()
            if self.is_identifier(DEGREE_MARKER):
                self.advance()
                return NumberLiteral(token.value * math.pi / 180.0)
            return NumberLiteral(token.value)

        if token.type is TokenType.CURRENCY:
            self.advance()
            return CurrencyLiteral(token.text, token.value)

        if token.type is TokenType.FUNCTION:
            self.advance()
            return self.parse_function(token.text)

        if token.type is TokenType.IDENTIFIER:
            self.advance()
            return Variable(token.text)

        if token.type is TokenType.LEFT_PAREN:
            self.advance()
            expr = self.parse_expression()
            self.consume(TokenType.RIGHT_PAREN)
            return expr

        return None

    def parse_function(self, name: str) -> Optional[Node]:
        """sqrt(9), sqrt 9, square root of 9, log 2 (8)"""
        self.consume(TokenType.OF)

        if name == "log" and self.check(TokenType.NUMBER):
            start = self.index
            base = NumberLiteral(self.current.value)
            self.advance()
            arg = self._parse_function_argument()
            if arg is not None:
                return FunctionCall2("log", base, arg)
            # "log 100": the number is the argument, not a base
            self.index = start

        arg = self._parse_function_argument()
        if arg is None:
            return None
        return FunctionCall(name, arg)

    def _parse_function_argument(self) -> Optional[Node]:
        if self.consume(TokenType.LEFT_PAREN):
            arg = self.parse_expression()
            if arg is not None:
                self.consume(TokenType.RIGHT_PAREN)
            return arg
        return self.parse_primary()


def parse(tokens: list[Token], registry: UnitRegistry) -> Optional[Node]:
    return Parser(tokens, registry).parse()
