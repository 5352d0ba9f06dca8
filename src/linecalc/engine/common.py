#!/usr/bin/env python3
"""Common data structures shared across the expression engine: tokens, AST nodes, values and results."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from ..units.registry import Unit


class TokenType(Enum):
    """Token kinds produced by the tokenizer"""

    NUMBER = auto()
    IDENTIFIER = auto()
    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    POWER = auto()
    PERCENT = auto()
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    EQUALS = auto()
    TO = auto()  # "5 km to miles"
    OF = auto()  # "half of", "10% of"
    OFF = auto()  # "10% off $100"
    AS_A = auto()  # "$5 as a % of $10"
    CURRENCY = auto()  # $, €, £ with a value
    FUNCTION = auto()  # sqrt, sin, cos, ...
    EOF = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: Optional[float] = None
    text: Optional[str] = None  # identifier, currency glyph or function name

    @classmethod
    def number(cls, value: float) -> Token:
        return cls(TokenType.NUMBER, value=value)

    @classmethod
    def identifier(cls, name: str) -> Token:
        return cls(TokenType.IDENTIFIER, text=name)

    @classmethod
    def currency(cls, symbol: str, value: float) -> Token:
        return cls(TokenType.CURRENCY, value=value, text=symbol)

    @classmethod
    def function(cls, name: str) -> Token:
        return cls(TokenType.FUNCTION, text=name)


EOF_TOKEN = Token(TokenType.EOF)


class BinaryOperator(Enum):
    ADD = auto()
    SUBTRACT = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    POWER = auto()
    PERCENTAGE_ADD = auto()  # 100 + 10% -> 110
    PERCENTAGE_SUBTRACT = auto()  # 100 - 10% -> 90


# ---------------------------------------------------------------------------
# AST nodes. One tree per evaluated line.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NumberLiteral:
    value: float


@dataclass(frozen=True)
class CurrencyLiteral:
    symbol: str
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class BinaryOp:
    left: Node
    op: BinaryOperator
    right: Node


@dataclass(frozen=True)
class UnaryMinus:
    operand: Node


@dataclass(frozen=True)
class Percentage:
    operand: Node


@dataclass(frozen=True)
class PercentageOf:
    percent: Node
    target: Node


@dataclass(frozen=True)
class PercentageOff:
    percent: Node
    target: Node


@dataclass(frozen=True)
class AsPercentOf:
    numerator: Node
    denominator: Node


@dataclass(frozen=True)
class FunctionCall:
    name: str
    arg: Node


@dataclass(frozen=True)
class FunctionCall2:
    """Two-argument function, e.g. log with an explicit base"""

    name: str
    arg1: Node
    arg2: Node


@dataclass(frozen=True)
class Assignment:
    name: str
    expr: Node


@dataclass(frozen=True)
class Conversion:
    expr: Node
    target: str


@dataclass(frozen=True)
class WithUnit:
    expr: Node
    unit: str


Node = Union[
    NumberLiteral,
    CurrencyLiteral,
    Variable,
    BinaryOp,
    UnaryMinus,
    Percentage,
    PercentageOf,
    PercentageOff,
    AsPercentOf,
    FunctionCall,
    FunctionCall2,
    Assignment,
    Conversion,
    WithUnit,
]


# ---------------------------------------------------------------------------
# Values and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Value:
    """
    Evaluation-time result of a subtree.

    + - * keep the left unit, falling back to the right one. Division keeps
    the left unit and yields a unitless NaN when dividing by zero.
    """

    number: float
    unit: Optional[Unit] = None
    is_currency_conversion: bool = False

    def __add__(self, other: Value) -> Value:
        return Value(self.number + other.number, self.unit or other.unit)

    def __sub__(self, other: Value) -> Value:
        return Value(self.number - other.number, self.unit or other.unit)

    def __mul__(self, other: Value) -> Value:
        return Value(self.number * other.number, self.unit or other.unit)

    def __truediv__(self, other: Value) -> Value:
        if other.number == 0:
            return Value(math.nan)
        return Value(self.number / other.number, self.unit)


@dataclass(frozen=True)
class NumberResult:
    value: float
    unit: Optional[Unit] = None
    is_currency_conversion: bool = False
    is_aggregate: bool = False

    @classmethod
    def from_value(cls, value: Value) -> NumberResult:
        return cls(value.number, value.unit, value.is_currency_conversion)


@dataclass(frozen=True)
class TextResult:
    text: str


@dataclass(frozen=True)
class ErrorResult:
    message: str


EvaluationResult = Union[NumberResult, TextResult, ErrorResult]

# Result of a line that depends on a rate still being fetched
LOADING = TextResult("Loading...")


class EvalError(Exception):
    """Per-line evaluation failure surfaced to the user as an ErrorResult"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
