#!/usr/bin/env python3
"""
CurrencyRateCache - live fiat exchange rates from frankfurter.app.

The API answers "how many X per 1 USD"; the cache stores the inverse, "how
many USD per 1 X", so conversions multiply by the source rate and divide by
the target rate. A daemon thread refreshes the table on a fixed interval and
a failed refresh keeps the previous table.
"""
from __future__ import annotations

import threading
import time

import requests

from ..core.config import setup_logging
from .base import CurrencyRateProvider

logger = setup_logging(__name__)

DEFAULT_CURRENCY_URL = "https://api.frankfurter.app/latest?from=USD"


class CurrencyRateCache(CurrencyRateProvider):
    """Thread-safe fiat rate table with a background refresher"""

    def __init__(
        self,
        url: str = DEFAULT_CURRENCY_URL,
        refresh_interval: float = 60.0,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.refresh_interval = refresh_interval
        self.timeout = timeout
        self._session = session or requests.Session()

        self._rates: dict[str, float] = {}
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._fetching = False
        self._last_fetch: float | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------ lifecycle

    def start(self) -> None:
        """Fetch in the background now and then every refresh_interval seconds"""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        with self._lock:
            self._fetching = True  # reported by is_loading until the first fetch returns
        self._thread = threading.Thread(target=self._run, name="currency-rate-refresher", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self.timeout + 1)
            self._thread = None

    def _run(self) -> None:
        self.refresh()
        while not self._stop_event.wait(self.refresh_interval):
            self.refresh()

    # --------------------------------------------------------------- status

    def is_loading(self) -> bool:
        with self._lock:
            return self._fetching and not self._rates

    def has_rates(self) -> bool:
        with self._lock:
            return bool(self._rates)

    @property
    def last_fetch(self) -> float | None:
        return self._last_fetch

    def get_rate(self, code: str) -> float | None:
        code = code.lower()
        if code == "usd":
            return 1.0
        with self._lock:
            return self._rates.get(code)

    # -------------------------------------------------------------- fetching

    @staticmethod
    def parse_rates(payload: dict) -> dict[str, float]:
        """Invert the API's "X per USD" rates into "USD per X" """
        raw_rates = payload.get("rates")
        if not isinstance(raw_rates, dict):
            raise ValueError("Response has no 'rates' object")

        rates: dict[str, float] = {}
        for code, rate in raw_rates.items():
            if isinstance(rate, (int, float)) and rate > 0:
                rates[code.lower()] = 1.0 / rate
        return rates

    def refresh(self) -> bool:
        """Fetch the rate table once; returns True when a new table was stored"""
        if not self._refresh_lock.acquire(blocking=False):
            return False  # another refresh is in flight

        try:
            with self._lock:
                self._fetching = True
            response = self._session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            rates = self.parse_rates(response.json())
        except requests.RequestException as e:
            logger.warning(f"Currency rate fetch failed: {e}")
            return False
        except ValueError as e:
            logger.warning(f"Currency rate response could not be parsed: {e}")
            return False
        else:
            with self._lock:
                self._rates = rates
                self._last_fetch = time.time()
            logger.info(f"Currency rates loaded: {len(rates)} currencies")
            return True
        finally:
            with self._lock:
                self._fetching = False
            self._refresh_lock.release()
