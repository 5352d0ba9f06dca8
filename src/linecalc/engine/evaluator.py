#!/usr/bin/env python3
"""
Line evaluator.

One Evaluator holds the session state of one document: bound variables, the
section buffer used by sum/average/count, and whether a /* block comment */ is
open. Lines are evaluated top to bottom and each one goes through the same
pipeline:

 1. block comments
 2. blank line: section reset
 3. // and # comment lines, inline // comments
 4. reverse percentage ("20% of what is 30 cm")
 5. natural-language normalization
 6. aggregate assignments ("total = sum in eur", "t sum")
 7. bare aggregates (sum, total, average, avg, count)
 8. lone variables, variable conversion, crypto amounts
 9. conversion phrases ("$100 to eur", "5 km in miles")
10. expression parsing and tree-walk evaluation

A line yields a NumberResult, a TextResult (LOADING while a price is being
fetched), an ErrorResult, or None when there is nothing to show.
"""
from __future__ import annotations

import math
from typing import Callable, Optional

from ..core.config import setup_logging
from ..units.registry import Category, Unit, UnitRegistry
from .common import (
    LOADING,
    AsPercentOf,
    Assignment,
    BinaryOp,
    BinaryOperator,
    Conversion,
    CurrencyLiteral,
    ErrorResult,
    EvalError,
    EvaluationResult,
    FunctionCall,
    FunctionCall2,
    Node,
    NumberLiteral,
    NumberResult,
    Percentage,
    PercentageOf,
    PercentageOff,
    TextResult,
    UnaryMinus,
    Value,
    Variable,
    WithUnit,
)
from .conversions import CONVERSION_WORDS, ConversionShortcuts
from .normalizer import NaturalLanguageNormalizer
from .parser import parse
from .patterns import build_expression_pattern, build_reverse_percentage_pattern
from .section import SectionBuffer
from .tokenizer import tokenize

logger = setup_logging(__name__)

SUM_WORDS = ("sum", "total")
AVERAGE_WORDS = ("average", "avg")

# "em = 14px" configures the registry instead of binding a variable
CSS_BASES = {"em": "em_size", "rem": "rem_size", "ppi": "ppi"}


class PendingFetch(Exception):
    """Raised inside the tree walk when a crypto price is still being fetched"""

    def __init__(self, symbol: str):
        super().__init__(symbol)
        self.symbol = symbol


# ---------------------------------------------------------------------------
# Math functions. None of them raise: domain errors give NaN.
# ---------------------------------------------------------------------------


def _sqrt(x: float) -> float:
    return math.sqrt(x) if x >= 0 else math.nan


def _logarithm(func: Callable[[float], float]) -> Callable[[float], float]:
    def call(x: float) -> float:
        if x == 0:
            return -math.inf
        if x < 0 or math.isnan(x):
            return math.nan
        if math.isinf(x):
            return x
        return func(x)

    return call


def _trig(func: Callable[[float], float]) -> Callable[[float], float]:
    def call(x: float) -> float:
        if not math.isfinite(x):
            return math.nan
        return func(x)

    return call


def _integral(func: Callable[[float], int]) -> Callable[[float], float]:
    def call(x: float) -> float:
        if not math.isfinite(x):
            return x
        return float(func(x))

    return call


def _round_half_away(x: float) -> float:
    """2.5 -> 3, -2.5 -> -3"""
    if not math.isfinite(x):
        return x
    return math.copysign(math.floor(abs(x) + 0.5), x)


FUNCTIONS: dict[str, Callable[[float], float]] = {
    "sqrt": _sqrt,
    "sin": _trig(math.sin),
    "cos": _trig(math.cos),
    "tan": _trig(math.tan),
    "ln": _logarithm(math.log),
    "log": _logarithm(math.log10),
    "abs": abs,
    "floor": _integral(math.floor),
    "ceil": _integral(math.ceil),
    "round": _round_half_away,
}


def _power(base: float, exponent: float) -> float:
    if base == 0 and exponent < 0:
        return math.inf
    try:
        return math.pow(base, exponent)
    except ValueError:
        return math.nan
    except OverflowError:
        return math.inf


def _log_base(base: float, x: float) -> float:
    denominator = FUNCTIONS["ln"](base)
    if denominator == 0:
        return math.nan
    return FUNCTIONS["ln"](x) / denominator


def _printable(text: str) -> str:
    """Drop ASCII control characters"""
    return "".join(ch for ch in text if not ch.isascii() or ord(ch) >= 32)


def _describe(result: Optional[EvaluationResult]) -> str:
    if result is None:
        return "none"
    if isinstance(result, NumberResult):
        unit = f" {result.unit.name}" if result.unit else ""
        return f"number {result.value}{unit}"
    if isinstance(result, TextResult):
        return f"text {result.text!r}"
    return f"error {result.message!r}"


class Evaluator:
    """Evaluates a document line by line, keeping variables and section state between calls"""

    def __init__(self, registry: Optional[UnitRegistry] = None):
        self.registry = registry if registry is not None else UnitRegistry()
        self.variables: dict[str, Value] = {}
        self.section = SectionBuffer()
        self.in_block_comment = False
        self.normalizer = NaturalLanguageNormalizer(self.registry)
        self.conversions = ConversionShortcuts(self.registry)

    def reset(self) -> None:
        """Forget variables, the section buffer and any open block comment"""
        self.variables.clear()
        self.section.clear()
        self.in_block_comment = False

    def evaluate(self, line: str) -> Optional[EvaluationResult]:
        result = self._evaluate_line(line)
        logger.debug(f"Evaluated {line!r} -> {_describe(result)}")
        return result

    def _evaluate_line(self, line: str) -> Optional[EvaluationResult]:
        trimmed = line.strip()

        if self.in_block_comment:
            end = trimmed.find("*/")
            if end < 0:
                return None
            self.in_block_comment = False
            after = trimmed[end + 2 :].strip()
            return self._evaluate_line(after) if after else None

        start = trimmed.find("/*")
        if start >= 0:
            before = trimmed[:start].strip()
            end = trimmed.find("*/", start + 2)
            if end >= 0:
                combined = f"{before} {trimmed[end + 2 :].strip()}".strip()
            else:
                self.in_block_comment = True
                combined = before
            return self._evaluate_line(combined) if combined else None

        if not trimmed:
            self.section.clear()
            return None

        if trimmed.startswith("//") or trimmed.startswith("#"):
            return None

        text = trimmed.split("//", 1)[0].strip()
        if not text:
            return None

        reverse = self._reverse_percentage(text)
        if reverse is not None:
            return reverse

        cleaned = self.normalizer.normalize(text, self.variables)
        lowered = cleaned.lower()

        result = self._aggregate_assignment(lowered, text)
        if result is not None:
            return result

        result = self._bare_aggregate(lowered)
        if result is not None:
            return result

        result = self._shortcut(lowered.split())
        if result is not None:
            return result

        return self._evaluate_expression(cleaned)

    # ------------------------------------------------------------ shortcuts

    def _reverse_percentage(self, text: str) -> Optional[EvaluationResult]:
        """ "20% of what is 30 cm" -> 150 cm """
        match = build_reverse_percentage_pattern().match(text)
        if not match:
            return None

        percent = float(match.group(1))
        if percent == 0:
            return None

        result = self._evaluate_line(match.group(2))
        if isinstance(result, NumberResult):
            return NumberResult(result.value / (percent / 100.0), result.unit)
        return result

    def _aggregate_assignment(self, lowered: str, text: str) -> Optional[EvaluationResult]:
        if "=" in lowered:
            parts = text.split("=")
            if len(parts) != 2:
                return None
            name = _printable(parts[0]).strip().lower()
            expr = _printable(parts[1]).strip().lower()
        else:
            words = lowered.split()
            if len(words) < 2 or words[1] not in SUM_WORDS + AVERAGE_WORDS:
                return None
            name = words[0]
            expr = " ".join(words[1:])

        if not name:
            return None

        result = self._aggregate(expr.split())
        if isinstance(result, NumberResult):
            value = Value(result.value, result.unit)
            self.variables[name] = value
            self.section.append(value)
        return result

    def _bare_aggregate(self, lowered: str) -> Optional[EvaluationResult]:
        if lowered == "count":
            return NumberResult(float(self.section.count), is_aggregate=True)
        return self._aggregate(lowered.split())

    def _aggregate(self, words: list[str]) -> Optional[EvaluationResult]:
        """sum, total, average, avg, optionally followed by in|to <currency>"""
        if not words:
            return None

        keyword = words[0]
        if keyword not in SUM_WORDS + AVERAGE_WORDS:
            return None
        average = keyword in AVERAGE_WORDS

        if len(words) == 1:
            if average:
                total, unit = self.section.average(self.registry)
            else:
                total, unit = self.section.sum(self.registry)
            return NumberResult(total, unit, is_aggregate=True)

        if len(words) >= 3 and words[1] in ("in", "to"):
            return self._aggregate_in(words[2], average)

        return None

    def _aggregate_in(self, target_name: str, average: bool) -> EvaluationResult:
        if self.registry.is_crypto(target_name):
            return self._aggregate_in_crypto(target_name, average)

        target = self.registry.unit(target_name)
        if target is None:
            return ErrorResult(f"Unknown currency: {target_name}")

        if average and not self.section:
            return NumberResult(0.0, target, is_aggregate=True)

        total = self.section.total_in(self.registry, target)
        if average:
            total /= len(self.section)
        return NumberResult(total, target, is_aggregate=True)

    def _aggregate_in_crypto(self, symbol: str, average: bool) -> EvaluationResult:
        unit = self.registry.crypto_unit(symbol)
        if average and not self.section:
            return NumberResult(0.0, unit, is_aggregate=True)

        total_usd = self.section.total_in(self.registry, self.registry.unit("usd"))
        if average:
            total_usd /= len(self.section)

        crypto = self.registry.crypto_prices
        amount = crypto.convert_from_usd(total_usd, symbol)
        if amount is None:
            if crypto.is_fetching(symbol):
                return LOADING
            return ErrorResult(f"{symbol.upper()} price unavailable")
        return NumberResult(amount, unit, is_currency_conversion=True, is_aggregate=True)

    def _shortcut(self, words: list[str]) -> Optional[EvaluationResult]:
        if len(words) == 1 and words[0] in self.variables:
            value = self.variables[words[0]]
            self.section.append(value)
            return NumberResult(value.number, value.unit)

        if len(words) == 3 and words[1] in CONVERSION_WORDS and words[0] in self.variables:
            result = self.conversions.convert_variable(self.variables[words[0]], words[2])
            if result is not None:
                return result

        if len(words) == 2 and self.registry.is_crypto(words[1]):
            result = self.conversions.crypto_amount(words[0], words[1])
            if result is not None:
                return result

        return self.conversions.conversion_phrase(words)

    # ----------------------------------------------------------- expression

    def _evaluate_expression(self, cleaned: str) -> Optional[EvaluationResult]:
        if not build_expression_pattern().search(cleaned):
            return None

        tokens = tokenize(cleaned)
        if len(tokens) <= 1:
            return None

        ast = parse(tokens, self.registry)
        if ast is None:
            return None

        try:
            value = self.evaluate_node(ast)
        except EvalError as e:
            return ErrorResult(e.message)
        except PendingFetch:
            return LOADING

        # Assignments are tracked when they bind
        if not isinstance(ast, Assignment):
            self.section.append(value)
        return NumberResult.from_value(value)

    def evaluate_node(self, node: Node) -> Value:
        if isinstance(node, NumberLiteral):
            return Value(node.value)

        if isinstance(node, CurrencyLiteral):
            unit = self.registry.currency_unit(node.symbol)
            self.section.note_currency(unit)
            return Value(node.value, unit)

        if isinstance(node, Variable):
            if node.name not in self.variables:
                raise EvalError(f"Unknown variable: {node.name}")
            return self.variables[node.name]

        if isinstance(node, BinaryOp):
            return self._binary(node)

        if isinstance(node, UnaryMinus):
            operand = self.evaluate_node(node.operand)
            return Value(-operand.number, operand.unit)

        if isinstance(node, Percentage):
            operand = self.evaluate_node(node.operand)
            return Value(operand.number / 100.0, operand.unit)

        if isinstance(node, PercentageOf):
            percent = self.evaluate_node(node.percent)
            target = self.evaluate_node(node.target)
            return Value(percent.number / 100.0 * target.number, target.unit)

        if isinstance(node, PercentageOff):
            percent = self.evaluate_node(node.percent)
            target = self.evaluate_node(node.target)
            discount = percent.number / 100.0 * target.number
            return Value(target.number - discount, target.unit)

        if isinstance(node, AsPercentOf):
            numerator = self.evaluate_node(node.numerator)
            denominator = self.evaluate_node(node.denominator)
            if denominator.number == 0:
                return Value(math.nan)
            return Value(numerator.number / denominator.number * 100.0)

        if isinstance(node, FunctionCall):
            func = FUNCTIONS.get(node.name.lower())
            if func is None:
                raise EvalError(f"Unknown function: {node.name}")
            arg = self.evaluate_node(node.arg)
            return Value(func(arg.number), arg.unit)

        if isinstance(node, FunctionCall2):
            if node.name.lower() != "log":
                raise EvalError(f"Unknown function: {node.name}")
            base = self.evaluate_node(node.arg1)
            arg = self.evaluate_node(node.arg2)
            return Value(_log_base(base.number, arg.number))

        if isinstance(node, Assignment):
            return self._assign(node)

        if isinstance(node, WithUnit):
            value = self.evaluate_node(node.expr)
            unit = self.registry.unit(node.unit)
            self.section.note_currency(unit)
            return Value(value.number, unit)

        if isinstance(node, Conversion):
            return self._convert(node)

        raise EvalError(f"Cannot evaluate {type(node).__name__}")

    def _binary(self, node: BinaryOp) -> Value:
        left = self.evaluate_node(node.left)
        right = self.evaluate_node(node.right)
        op = node.op

        if op is BinaryOperator.ADD:
            return left + right
        if op is BinaryOperator.SUBTRACT:
            return left - right
        if op is BinaryOperator.MULTIPLY:
            return left * right
        if op is BinaryOperator.DIVIDE:
            return left / right
        if op is BinaryOperator.POWER:
            return Value(_power(left.number, right.number), left.unit)
        if op is BinaryOperator.PERCENTAGE_ADD:
            return Value(left.number * (1 + right.number / 100.0), left.unit)
        return Value(left.number * (1 - right.number / 100.0), left.unit)

    def _assign(self, node: Assignment) -> Value:
        value = self.evaluate_node(node.expr)
        name = node.name.lower()

        unit = value.unit
        if name in CSS_BASES and unit is not None and unit.category is Category.CSS and unit.name == "pixel":
            self.registry.configure_css(**{CSS_BASES[name]: value.number})
            logger.debug(f"CSS base {name} set to {value.number}px")
            return value

        self.variables[name] = value
        self.section.append(value)
        return value

    def _convert(self, node: Conversion) -> Value:
        value = self.evaluate_node(node.expr)
        source = value.unit
        if source is None:
            raise EvalError("No unit to convert from")

        target = self._conversion_target(node.target)
        converted = self.registry.convert(value.number, source, target)
        return Value(converted, target, source.is_currency and target.is_currency)

    def _conversion_target(self, name: str) -> Unit:
        if not self.registry.is_crypto(name):
            target = self.registry.unit(name)
            if target is None:
                raise EvalError(f"Unknown unit: {name}")
            return target

        crypto = self.registry.crypto_prices
        if crypto.get_price_in_usd(name) is None:
            if crypto.is_fetching(name):
                raise PendingFetch(name)
            raise EvalError("Price unavailable")
        return self.registry.crypto_unit(name)
