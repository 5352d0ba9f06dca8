#!/usr/bin/env python3
"""
Conversion shortcuts tried before full parsing.

    usd_total in eur        bound variable to a unit or crypto asset
    2 eth                   crypto amount to USD
    $1,000 to eur           conversion phrase with a currency glyph
    0.5 btc in eth          crypto to crypto through USD
    5 km to miles           plain unit conversion

Every shortcut returns None when the words do not fit its shape so the
evaluator can fall through to the next step.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .common import LOADING, ErrorResult, EvaluationResult, NumberResult, Value
from .patterns import build_amount_pattern, build_currency_amount_pattern

if TYPE_CHECKING:
    from ..units.registry import Unit, UnitRegistry

CONVERSION_WORDS = ("to", "in", "as")


def parse_amount(word: str) -> Optional[float]:
    """Parse "1,250.5" style amounts; anything else is not an amount"""
    if not build_amount_pattern().match(word):
        return None
    return float(word.replace(",", ""))


class ConversionShortcuts:
    def __init__(self, registry: UnitRegistry):
        self.registry = registry

    @property
    def crypto(self):
        return self.registry.crypto_prices

    @property
    def usd(self) -> Unit:
        return self.registry.unit("usd")

    def convert_variable(self, value: Value, target_name: str) -> Optional[EvaluationResult]:
        """Convert a bound variable; crypto targets go through USD"""
        source = value.unit
        is_currency = source is not None and source.is_currency

        if self.registry.is_crypto(target_name):
            usd_amount = value.number
            if is_currency:
                usd_amount = self.registry.convert(value.number, source, self.usd)
            crypto_amount = self.crypto.convert_from_usd(usd_amount, target_name)
            if crypto_amount is None:
                return self._price_missing(target_name)
            return NumberResult(crypto_amount, self.registry.crypto_unit(target_name), is_currency)

        target = self.registry.unit(target_name)
        if source is None or target is None:
            return None

        converted = self.registry.convert(value.number, source, target)
        return NumberResult(converted, target, is_currency and target.is_currency)

    def crypto_amount(self, amount_word: str, symbol: str) -> Optional[EvaluationResult]:
        """ "2 eth" -> its value in USD """
        amount = parse_amount(amount_word)
        if amount is None:
            return None

        # An in-flight fetch wins over any cached price
        if self.crypto.is_fetching(symbol):
            return LOADING

        usd_amount = self.crypto.convert_to_usd(amount, symbol)
        if usd_amount is None:
            return self._price_missing(symbol)
        return NumberResult(usd_amount, self.usd, is_currency_conversion=True)

    def conversion_phrase(self, words: list[str]) -> Optional[EvaluationResult]:
        """<amount>[<unit>] to|in|as <target>, or <glyph><amount> to|in|as <target>"""
        index = next((i for i, word in enumerate(words) if word in CONVERSION_WORDS), -1)
        if index <= 0 or index >= len(words) - 1:
            return None

        target_name = words[index + 1]
        amount, source_name = self._parse_source(words[:index])
        if amount is None:
            return None

        target_is_crypto = self.registry.is_crypto(target_name)
        source_is_crypto = source_name is not None and self.registry.is_crypto(source_name)

        if target_is_crypto and self.crypto.is_fetching(target_name):
            return LOADING
        if source_is_crypto and self.crypto.is_fetching(source_name):
            return LOADING

        if target_is_crypto:
            return self._to_crypto(amount, source_name, source_is_crypto, target_name)
        if source_is_crypto:
            return self._from_crypto(amount, source_name, target_name)

        if source_name is None:
            return None
        source = self.registry.unit(source_name)
        target = self.registry.unit(target_name)
        if source is None or target is None:
            return None

        converted = self.registry.convert(amount, source, target)
        return NumberResult(converted, target, source.is_currency and target.is_currency)

    def _parse_source(self, parts: list[str]) -> tuple[Optional[float], Optional[str]]:
        match = build_currency_amount_pattern().match(parts[0])
        if match:
            unit = self.registry.currency_unit(match.group(1))
            return parse_amount(match.group(2)), unit.name if unit else None

        amount = parse_amount(parts[0])
        source_name = parts[1] if len(parts) > 1 else None
        return amount, source_name

    def _to_crypto(
        self, amount: float, source_name: Optional[str], source_is_crypto: bool, target_name: str
    ) -> EvaluationResult:
        usd_amount = amount
        is_currency = False

        if source_is_crypto:
            usd_amount = self.crypto.convert_to_usd(amount, source_name)
            if usd_amount is None:
                return self._price_missing(source_name)
            is_currency = True
        elif source_name is not None:
            source = self.registry.unit(source_name)
            if source is not None and source.is_currency:
                usd_amount = self.registry.convert(amount, source, self.usd)
                is_currency = True

        crypto_amount = self.crypto.convert_from_usd(usd_amount, target_name)
        if crypto_amount is None:
            return self._price_missing(target_name)
        return NumberResult(crypto_amount, self.registry.crypto_unit(target_name), is_currency)

    def _from_crypto(self, amount: float, source_name: str, target_name: str) -> EvaluationResult:
        usd_amount = self.crypto.convert_to_usd(amount, source_name)
        if usd_amount is None:
            return self._price_missing(source_name)

        target = self.registry.unit(target_name)
        if target is not None and target.is_currency:
            return NumberResult(self.registry.convert(usd_amount, self.usd, target), target, True)
        # Non-currency target: show the USD value
        return NumberResult(usd_amount, self.usd, True)

    def _price_missing(self, symbol: str) -> EvaluationResult:
        # The failed lookup has started a fetch when the provider can fetch
        if self.crypto.is_fetching(symbol):
            return LOADING
        return ErrorResult("Price unavailable")
