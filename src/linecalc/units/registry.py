#!/usr/bin/env python3
"""
Unit registry: lookup, aliases and category-aware conversion.

Units are keyed by lowercased canonical name and lowercased display symbol,
with aliases resolving to the canonical name. Conversions between different
categories return NaN rather than raising, temperature converts through
Kelvin, currency asks the rate providers first and CSS units go through
pixels using per-registry bases.
"""
from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from . import tables

if TYPE_CHECKING:
    from ..rates.base import CryptoPriceProvider, CurrencyRateProvider


class Category(Enum):
    """Unit categories; conversion is only defined inside one category"""

    LENGTH = "length"
    MASS = "mass"
    TIME = "time"
    TEMPERATURE = "temperature"
    DATA = "data"
    CURRENCY = "currency"
    AREA = "area"
    VOLUME = "volume"
    CSS = "css"


class SymbolPosition(Enum):
    BEFORE = "before"  # $100
    AFTER = "after"  # 100 €


def format_decimal(value: float, max_fraction: int, min_fraction: int = 0) -> str:
    """Group thousands and keep between min_fraction and max_fraction decimals"""
    text = f"{value:,.{max_fraction}f}"
    if max_fraction <= min_fraction or "." not in text:
        return text

    whole, fraction = text.split(".")
    fraction = fraction.rstrip("0").ljust(min_fraction, "0")
    return f"{whole}.{fraction}" if fraction else whole


def smart_decimal_places(value: float, is_currency: bool) -> int:
    """Pick enough decimals to show the first significant digit of small values"""
    abs_value = abs(value)

    if abs_value >= 1 or not math.isfinite(abs_value):
        return 2

    if abs_value == 0:
        return 2 if is_currency else 0

    # 0.001 -> 3, 0.00001 -> 5
    first_significant = int(math.floor(-math.log10(abs_value)))
    return max(min(first_significant + 3, 10), 2)


@dataclass(frozen=True)
class Unit:
    name: str
    symbol: str
    category: Category
    to_base: float = 1.0
    symbol_position: SymbolPosition = SymbolPosition.AFTER

    @property
    def from_base(self) -> float:
        return 1.0 / self.to_base

    @property
    def is_currency(self) -> bool:
        return self.category is Category.CURRENCY

    def format(self, value: float) -> str:
        """Render value with this unit's symbol, e.g. $1,234.50 or 12.5 km"""
        decimals = smart_decimal_places(value, self.is_currency)
        minimum = 2 if self.is_currency and (abs(value) >= 0.01 or value == 0) else 0
        formatted = format_decimal(value, decimals, min(minimum, decimals))

        if self.symbol_position is SymbolPosition.BEFORE:
            return f"{self.symbol}{formatted}"
        return f"{formatted} {self.symbol}"


class UnitRegistry:
    """
    Registry of convertible units.

    Each registry owns its CSS bases (em size, rem size, pixels per inch), so
    documents that need isolation get their own instance. Writes to the bases
    go through configure_css under a lock.
    """

    def __init__(
        self,
        currency_rates: CurrencyRateProvider | None = None,
        crypto_prices: CryptoPriceProvider | None = None,
        em_size: float = tables.DEFAULT_EM_SIZE,
        rem_size: float = tables.DEFAULT_REM_SIZE,
        ppi: float = tables.DEFAULT_PPI,
    ) -> None:
        from ..rates.memory import StaticCryptoPrices, StaticCurrencyRates

        self.currency_rates = currency_rates if currency_rates is not None else StaticCurrencyRates()
        self.crypto_prices = crypto_prices if crypto_prices is not None else StaticCryptoPrices()

        self._units: dict[str, Unit] = {}
        self._aliases: dict[str, str] = {}
        self._css_lock = threading.Lock()
        self._em_size = em_size
        self._rem_size = rem_size
        self._ppi = ppi

        self._register_table()

    def _register_table(self) -> None:
        simple_categories = [
            (Category.LENGTH, tables.LENGTH_UNITS),
            (Category.MASS, tables.MASS_UNITS),
            (Category.TIME, tables.TIME_UNITS),
            (Category.DATA, tables.DATA_UNITS),
            (Category.TEMPERATURE, tables.TEMPERATURE_UNITS),
        ]
        for category, rows in simple_categories:
            for name, symbol, factor, aliases in rows:
                self.register(Unit(name, symbol, category, factor), aliases)

        for name, symbol, factor, before, aliases in tables.CURRENCY_UNITS:
            position = SymbolPosition.BEFORE if before else SymbolPosition.AFTER
            self.register(Unit(name, symbol, Category.CURRENCY, factor, position), aliases)

        for category, rows in [
            (Category.AREA, tables.AREA_UNITS),
            (Category.VOLUME, tables.VOLUME_UNITS),
            (Category.CSS, tables.CSS_UNITS),
        ]:
            for name, symbol, factor, aliases in rows:
                self.register(Unit(name, symbol, category, factor), aliases)

    def register(self, unit: Unit, aliases: list[str] | tuple[str, ...] = ()) -> None:
        """Register a unit under its name, its symbol and its aliases; later entries win"""
        self._units[unit.name.lower()] = unit
        self._units[unit.symbol.lower()] = unit
        for alias in aliases:
            self._aliases[alias.lower()] = unit.name.lower()

    def is_unit(self, name: str) -> bool:
        lower = name.lower()
        return lower in self._units or lower in self._aliases

    def unit(self, name: str) -> Unit | None:
        """Resolve a unit by name, symbol or alias (case-insensitive)"""
        lower = name.lower()
        if lower in self._units:
            return self._units[lower]
        canonical = self._aliases.get(lower)
        if canonical is not None:
            return self._units.get(canonical)
        return None

    def units(self, category: Category | None = None) -> list[Unit]:
        """Distinct registered units in registration order"""
        seen: dict[str, Unit] = {}
        for unit in self._units.values():
            if category is None or unit.category is category:
                seen.setdefault(unit.name, unit)
        return list(seen.values())

    def currency_unit(self, glyph: str) -> Unit | None:
        code = tables.CURRENCY_GLYPHS.get(glyph)
        return self.unit(code) if code else None

    def is_crypto(self, name: str) -> bool:
        """A crypto symbol that no registered non-currency unit claims ("ton" stays a mass)"""
        if not self.crypto_prices.is_crypto(name):
            return False
        registered = self.unit(name)
        return registered is None or registered.is_currency

    def crypto_unit(self, symbol: str) -> Unit:
        """Ad-hoc currency unit for a crypto asset, shown after the amount"""
        display = self.crypto_prices.get_symbol(symbol)
        return Unit(symbol.lower(), display, Category.CURRENCY, 1.0, SymbolPosition.AFTER)

    # ------------------------------------------------------------------ CSS

    @property
    def em_size(self) -> float:
        return self._em_size

    @property
    def rem_size(self) -> float:
        return self._rem_size

    @property
    def ppi(self) -> float:
        return self._ppi

    def configure_css(
        self, em_size: float | None = None, rem_size: float | None = None, ppi: float | None = None
    ) -> None:
        with self._css_lock:
            if em_size is not None:
                self._em_size = em_size
            if rem_size is not None:
                self._rem_size = rem_size
            if ppi is not None:
                self._ppi = ppi

    # ----------------------------------------------------------- conversion

    def convert(self, value: float, source: Unit, target: Unit) -> float:
        """Convert value from source to target; NaN when categories differ"""
        if source.category is not target.category:
            return math.nan

        if source.category is Category.TEMPERATURE:
            return self._convert_temperature(value, source, target)

        if source.category is Category.CURRENCY:
            converted = self._convert_currency(value, source, target)
            if converted is not None:
                return converted
            # Static factors until live rates arrive

        if source.category is Category.CSS:
            return self._convert_css(value, source, target)

        return value * source.to_base * target.from_base

    def _convert_currency(self, value: float, source: Unit, target: Unit) -> float | None:
        crypto = self.crypto_prices
        source_is_crypto = self._is_crypto_unit(source)
        target_is_crypto = self._is_crypto_unit(target)

        if not (source_is_crypto or target_is_crypto):
            return self.currency_rates.convert(value, source.name, target.name)

        if source.name == target.name:
            return value

        # Pivot through USD
        if source_is_crypto:
            usd = crypto.convert_to_usd(value, source.name)
        else:
            usd = self.currency_rates.convert(value, source.name, "usd")
            if usd is None:
                usd = value * source.to_base
        if usd is None:
            return math.nan

        if target_is_crypto:
            converted = crypto.convert_from_usd(usd, target.name)
            return math.nan if converted is None else converted

        converted = self.currency_rates.convert(usd, "usd", target.name)
        return converted if converted is not None else usd * target.from_base

    def _is_crypto_unit(self, unit: Unit) -> bool:
        return unit.is_currency and self.is_crypto(unit.name)

    def _to_pixels(self, value: float, unit: Unit) -> float:
        if unit.name == "em":
            return value * self._em_size
        if unit.name == "rem":
            return value * self._rem_size
        if unit.name == "point":
            return value * (self._ppi / 72.0)
        return value

    def _convert_css(self, value: float, source: Unit, target: Unit) -> float:
        with self._css_lock:
            pixels = self._to_pixels(value, source)
            if target.name == "em":
                return pixels / self._em_size
            if target.name == "rem":
                return pixels / self._rem_size
            if target.name == "point":
                return pixels / (self._ppi / 72.0)
            return pixels

    @staticmethod
    def _convert_temperature(value: float, source: Unit, target: Unit) -> float:
        if source.name == "celsius":
            kelvin = value + 273.15
        elif source.name == "fahrenheit":
            kelvin = (value - 32) * 5 / 9 + 273.15
        elif source.name == "kelvin":
            kelvin = value
        else:
            return math.nan

        if target.name == "celsius":
            return kelvin - 273.15
        if target.name == "fahrenheit":
            return (kelvin - 273.15) * 9 / 5 + 32
        if target.name == "kelvin":
            return kelvin
        return math.nan
