#!/usr/bin/env python3
"""
CryptoPriceCache - USD prices for the top crypto assets from CoinGecko.

Prices are fetched lazily: the first lookup of a symbol returns None, marks
the symbol as fetching and submits the request to a small thread pool. The
mark is cleared when the request finishes, whatever the outcome, and
listeners are told about every price that lands.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor

import requests

from ..core.config import setup_logging
from .base import CRYPTO_IDS, CryptoPriceProvider, PriceListener

logger = setup_logging(__name__)

DEFAULT_CRYPTO_URL = "https://api.coingecko.com/api/v3/simple/price?ids={coin_id}&vs_currencies=usd"


class CryptoPriceCache(CryptoPriceProvider):
    """Lazily-filled crypto price cache with background fetches"""

    def __init__(
        self,
        url_template: str = DEFAULT_CRYPTO_URL,
        timeout: float = 5.0,
        max_workers: int = 4,
        session: requests.Session | None = None,
    ) -> None:
        self.url_template = url_template
        self.timeout = timeout
        self._session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="crypto-price")

        self._lock = threading.Lock()
        self._prices: dict[str, float] = {}
        self._fetching: set[str] = set()
        self._listeners: list[PriceListener] = []

    def add_listener(self, listener: PriceListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def is_fetching(self, symbol: str) -> bool:
        with self._lock:
            return symbol.lower() in self._fetching

    def get_price_in_usd(self, symbol: str) -> float | None:
        key = symbol.lower()

        with self._lock:
            if key in self._prices:
                return self._prices[key]
            if key in self._fetching or key not in CRYPTO_IDS:
                return None
            self._fetching.add(key)

        self._submit(key)
        return None

    def _submit(self, key: str) -> Future | None:
        logger.debug(f"Fetching price for {key}")
        try:
            return self._executor.submit(self._fetch, key)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning(f"Cannot fetch price for {key}: {e}")
            with self._lock:
                self._fetching.discard(key)
            return None

    def _fetch(self, key: str) -> float | None:
        coin_id = CRYPTO_IDS[key]
        url = self.url_template.format(coin_id=coin_id)

        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            price = self.parse_price(response.json(), coin_id)
        except requests.RequestException as e:
            logger.warning(f"Crypto price fetch failed for {key}: {e}")
            price = None
        except ValueError as e:
            logger.warning(f"Failed to parse crypto price for {key}: {e}")
            price = None

        with self._lock:
            if price is not None:
                self._prices[key] = price
            self._fetching.discard(key)
            listeners = list(self._listeners)

        if price is not None:
            for listener in listeners:
                listener(key)

        return price

    @staticmethod
    def parse_price(payload: dict, coin_id: str) -> float:
        """Extract payload[coin_id]["usd"]"""
        try:
            price = payload[coin_id]["usd"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"No USD price for {coin_id}") from e
        if not isinstance(price, (int, float)):
            raise ValueError(f"USD price for {coin_id} is not a number: {price!r}")
        return float(price)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
