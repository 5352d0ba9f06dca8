#!/usr/bin/env python3
"""Regex pattern builders used by the evaluator and the natural-language normalizer."""
from __future__ import annotations

import re
from typing import Pattern

from ..units.tables import CURRENCY_GLYPHS
from .pattern_cache import cached_pattern

# Glyphs that make a line look like an expression
EXPRESSION_GLYPHS = "$€£¥฿"


@cached_pattern
def build_reverse_percentage_pattern() -> Pattern[str]:
    """ "20% of what is 30 cm" -> groups (20, "30 cm") """
    return re.compile(r"^(\d+(?:\.\d+)?)\s*%\s+of\s+what\s+is\s+(.+)$", re.IGNORECASE)


@cached_pattern
def build_word_operator_pattern(phrase: str) -> Pattern[str]:
    """A spoken operator between whitespace, e.g. " divided  by " """
    words = r"\s+".join(re.escape(word) for word in phrase.split())
    return re.compile(rf"(?<=\s){words}(?=\s)", re.IGNORECASE)



@cached_pattern
def build_times_x_pattern() -> Pattern[str]:
    """A standalone x between two numbers: "5 x 3" """
    return re.compile(r"(\d)\s+x\s+(?=\d)", re.IGNORECASE)


@cached_pattern
def build_descriptive_phrase_pattern(word: str) -> Pattern[str]:
    """ "for groceries", "on rent": the phrase runs to the next operator or the end """
    return re.compile(rf"\s+{re.escape(word)}\s+[a-zA-Z][a-zA-Z\s]*?(?=\s*[+\-*/]|\s*$)", re.IGNORECASE)


@cached_pattern
def build_whitespace_pattern() -> Pattern[str]:
    return re.compile(r"\s+")


@cached_pattern
def build_expression_pattern() -> Pattern[str]:
    """Any digit, operator or currency glyph"""
    return re.compile(rf"[0-9{EXPRESSION_GLYPHS}+\-*/^%=]")


@cached_pattern
def build_currency_amount_pattern() -> Pattern[str]:
    """A leading currency glyph followed by an amount: "$1,000.50" """
    glyphs = "".join(re.escape(glyph) for glyph in CURRENCY_GLYPHS)
    return re.compile(rf"^([{glyphs}])(\d[\d,]*(?:\.\d+)?|\.\d+)$")


@cached_pattern
def build_amount_pattern() -> Pattern[str]:
    """A plain amount with optional sign and thousands separators: "-1,250.5" """
    return re.compile(r"^[+-]?(?:\d[\d,]*(?:\.\d*)?|\.\d+)$")
