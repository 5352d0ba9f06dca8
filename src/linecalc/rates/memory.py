#!/usr/bin/env python3
"""In-memory rate providers for offline use and tests."""
from __future__ import annotations

import threading

from .base import CryptoPriceProvider, CurrencyRateProvider, PriceListener


class StaticCurrencyRates(CurrencyRateProvider):
    """Fixed table of USD values; unknown codes fall back to the static unit factors"""

    def __init__(self, rates: dict[str, float] | None = None) -> None:
        self._rates = {code.lower(): rate for code, rate in (rates or {}).items()}

    def get_rate(self, code: str) -> float | None:
        code = code.lower()
        if code == "usd":
            return 1.0
        return self._rates.get(code)

    def set_rate(self, code: str, usd_value: float) -> None:
        self._rates[code.lower()] = usd_value

    def has_rates(self) -> bool:
        return bool(self._rates)


class StaticCryptoPrices(CryptoPriceProvider):
    """Fixed crypto prices; a miss never starts a fetch, set_price stands in for one landing"""

    def __init__(self, prices: dict[str, float] | None = None, fetching: set[str] | None = None) -> None:
        self._lock = threading.Lock()
        self._prices = {symbol.lower(): price for symbol, price in (prices or {}).items()}
        self._fetching = {symbol.lower() for symbol in (fetching or set())}
        self._listeners: list[PriceListener] = []

    def add_listener(self, listener: PriceListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def is_fetching(self, symbol: str) -> bool:
        with self._lock:
            return symbol.lower() in self._fetching

    def get_price_in_usd(self, symbol: str) -> float | None:
        with self._lock:
            return self._prices.get(symbol.lower())

    def set_price(self, symbol: str, price: float) -> None:
        key = symbol.lower()
        with self._lock:
            self._prices[key] = price
            self._fetching.discard(key)
            listeners = list(self._listeners)

        for listener in listeners:
            listener(key)

    def mark_fetching(self, symbol: str) -> None:
        with self._lock:
            self._fetching.add(symbol.lower())
