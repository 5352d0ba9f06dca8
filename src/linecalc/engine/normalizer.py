#!/usr/bin/env python3
"""
Natural-language normalization applied before tokenizing.

Steps, in order:
1. Spoken operators (plus, minus, times, divided by) become symbols
2. A standalone x between two numbers becomes *
3. Descriptive phrases starting with for/on/from are deleted up to the next
   operator or the end of the line
4. A word right after a number is dropped unless it is a number, operator,
   currency amount, keyword, unit, crypto symbol or bound variable
   ("18 apples + 23" -> "18 + 23"); words left of "=" are never dropped

The result is stable: normalizing an already normalized line changes nothing.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Collection

from .patterns import (
    build_descriptive_phrase_pattern,
    build_times_x_pattern,
    build_whitespace_pattern,
    build_word_operator_pattern,
)
from .tokenizer import FUNCTION_NAMES, KEYWORD_TOKENS, POWER_WORDS, QUANTIFIER_WORDS

if TYPE_CHECKING:
    from ..units.registry import UnitRegistry

WORD_OPERATORS = [
    ("plus", "+"),
    ("minus", "-"),
    ("times", "*"),
    ("divided by", "/"),
]

DESCRIPTIVE_PREFIXES = ["for", "on", "from"]

AGGREGATE_WORDS = frozenset(["sum", "total", "average", "avg", "count"])

# Words that survive after a number: aggregate words plus everything the
# tokenizer folds into an operator, conversion keyword, quantifier or function
KEYWORDS = (
    AGGREGATE_WORDS
    | frozenset(KEYWORD_TOKENS)
    | frozenset(POWER_WORDS)
    | frozenset(QUANTIFIER_WORDS)
    | FUNCTION_NAMES
)

OPERATOR_WORDS = frozenset(["+", "-", "*", "×", "/", "^", "%", "=", "(", ")"])

CURRENCY_MARKS = ("$", "€", "£", "¥", "฿")


def looks_like_number(word: str) -> bool:
    if word[:1].isdigit():
        return True
    try:
        float(word)
    except ValueError:
        return False
    # float() also accepts "inf" and "nan"
    return not word.isalpha()


class NaturalLanguageNormalizer:
    def __init__(self, registry: UnitRegistry):
        self.registry = registry

    def normalize(self, text: str, variables: Collection[str] = ()) -> str:
        result = text

        for phrase, symbol in WORD_OPERATORS:
            result = build_word_operator_pattern(phrase).sub(f" {symbol} ", result)

        result = build_times_x_pattern().sub(r"\1 * ", result)

        for word in DESCRIPTIVE_PREFIXES:
            result = build_descriptive_phrase_pattern(word).sub(" ", result)

        result = " ".join(self._drop_descriptive_words(result.split(), variables))
        return build_whitespace_pattern().sub(" ", result).strip()

    def _drop_descriptive_words(self, words: list[str], variables: Collection[str]) -> list[str]:
        equals_index = words.index("=") if "=" in words else -1
        kept: list[str] = []
        previous_was_number = False

        for index, word in enumerate(words):
            # The variable name of an assignment
            if index < equals_index:
                kept.append(word)
                previous_was_number = False
                continue

            is_number = looks_like_number(word)
            if previous_was_number and not is_number and not self._is_recognized(word, variables):
                continue

            kept.append(word)
            previous_was_number = is_number

        return kept

    def _is_recognized(self, word: str, variables: Collection[str]) -> bool:
        lower = word.lower()
        return (
            word in OPERATOR_WORDS
            or any(mark in word for mark in CURRENCY_MARKS)
            or lower in KEYWORDS
            or self.registry.unit(lower) is not None
            or self.registry.is_crypto(lower)
            or lower in variables
        )
