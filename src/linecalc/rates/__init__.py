"""
Exchange rate providers.

- base: provider interfaces and the supported crypto asset table
- memory: in-memory providers for tests and offline mode
- currency: live fiat rates from frankfurter.app
- crypto: live crypto prices from CoinGecko
"""
from __future__ import annotations

from .base import CryptoPriceProvider, CurrencyRateProvider
from .memory import StaticCryptoPrices, StaticCurrencyRates

__all__ = [
    "CryptoPriceProvider",
    "CurrencyRateProvider",
    "StaticCryptoPrices",
    "StaticCurrencyRates",
]
