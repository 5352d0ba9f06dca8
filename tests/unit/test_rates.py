#!/usr/bin/env python3
"""Live rate caches (with fake HTTP sessions) and the in-memory providers."""
import threading

import pytest
import requests

from linecalc.rates.crypto import CryptoPriceCache
from linecalc.rates.currency import CurrencyRateCache
from linecalc.rates.memory import StaticCryptoPrices, StaticCurrencyRates


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Answers every GET with the queued responses in order; an exception is raised instead of returned"""

    def __init__(self, *responses, gate=None):
        self.responses = list(responses)
        self.gate = gate
        self.urls = []

    def get(self, url, timeout=None):
        if self.gate is not None:
            self.gate.wait(timeout=5)
        self.urls.append(url)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


FRANKFURTER_PAYLOAD = {"amount": 1.0, "base": "USD", "rates": {"EUR": 0.8, "GBP": 0.5, "BAD": 0}}


class TestCurrencyRateCache:
    def test_parse_rates_inverts(self):
        rates = CurrencyRateCache.parse_rates(FRANKFURTER_PAYLOAD)
        assert rates == pytest.approx({"eur": 1.25, "gbp": 2.0})

    def test_parse_rates_without_table(self):
        with pytest.raises(ValueError):
            CurrencyRateCache.parse_rates({"message": "not found"})

    def test_refresh_stores_rates(self):
        session = FakeSession(FakeResponse(FRANKFURTER_PAYLOAD))
        cache = CurrencyRateCache(url="https://rates.test/latest", session=session)

        assert cache.refresh() is True
        assert session.urls == ["https://rates.test/latest"]
        assert cache.has_rates()
        assert cache.last_fetch is not None
        assert cache.get_rate("EUR") == pytest.approx(1.25)
        assert cache.get_rate("usd") == 1.0
        assert cache.convert(10, "gbp", "eur") == pytest.approx(16.0)

    def test_unknown_code(self):
        cache = CurrencyRateCache(session=FakeSession(FakeResponse(FRANKFURTER_PAYLOAD)))
        cache.refresh()
        assert cache.get_rate("chf") is None
        assert cache.convert(1, "chf", "usd") is None

    def test_failed_refresh_keeps_previous_table(self):
        session = FakeSession(
            FakeResponse(FRANKFURTER_PAYLOAD),
            requests.ConnectionError("offline"),
            FakeResponse({}, status_code=503),
            FakeResponse(ValueError("not json")),
        )
        cache = CurrencyRateCache(session=session)
        assert cache.refresh() is True

        for _ in range(3):
            assert cache.refresh() is False
            assert cache.get_rate("eur") == pytest.approx(1.25)

    def test_loading_until_first_table(self):
        gate = threading.Event()
        cache = CurrencyRateCache(session=FakeSession(FakeResponse(FRANKFURTER_PAYLOAD), gate=gate))
        cache.start()
        try:
            assert cache.is_loading()
        finally:
            gate.set()
            cache.stop()

        assert not cache.is_loading()
        assert cache.has_rates()


class TestCryptoPriceCache:
    def test_parse_price(self):
        assert CryptoPriceCache.parse_price({"bitcoin": {"usd": 50000}}, "bitcoin") == 50000.0

    def test_parse_price_errors(self):
        for payload in [{}, {"bitcoin": {}}, {"bitcoin": {"usd": "a lot"}}, {"bitcoin": None}]:
            with pytest.raises(ValueError):
                CryptoPriceCache.parse_price(payload, "bitcoin")

    def test_lazy_fetch(self):
        gate = threading.Event()
        session = FakeSession(FakeResponse({"ethereum": {"usd": 2500}}), gate=gate)
        cache = CryptoPriceCache(url_template="https://prices.test/{coin_id}", session=session)
        landed = []
        cache.add_listener(landed.append)

        assert cache.get_price_in_usd("ETH") is None
        assert cache.is_fetching("eth")
        # A second miss does not start another fetch
        assert cache.get_price_in_usd("eth") is None

        gate.set()
        cache.shutdown(wait=True)

        assert not cache.is_fetching("eth")
        assert cache.get_price_in_usd("eth") == 2500.0
        assert session.urls == ["https://prices.test/ethereum"]
        assert landed == ["eth"]
        assert cache.convert_from_usd(5000, "eth") == pytest.approx(2.0)

    def test_failed_fetch_clears_mark(self):
        session = FakeSession(requests.Timeout("slow"))
        cache = CryptoPriceCache(session=session)
        landed = []
        cache.add_listener(landed.append)

        assert cache.get_price_in_usd("btc") is None
        cache.shutdown(wait=True)

        assert not cache.is_fetching("btc")
        assert landed == []

    def test_unknown_symbol_is_never_fetched(self):
        session = FakeSession(FakeResponse({}))
        cache = CryptoPriceCache(session=session)
        assert cache.get_price_in_usd("notacoin") is None
        assert not cache.is_fetching("notacoin")
        cache.shutdown(wait=True)
        assert session.urls == []

    def test_fetch_after_shutdown(self):
        cache = CryptoPriceCache(session=FakeSession(FakeResponse({})))
        cache.shutdown(wait=True)
        assert cache.get_price_in_usd("btc") is None
        assert not cache.is_fetching("btc")


class TestStaticProviders:
    def test_currency_rates(self):
        rates = StaticCurrencyRates({"EUR": 1.1})
        assert rates.get_rate("eur") == 1.1
        assert rates.get_rate("usd") == 1.0
        assert rates.get_rate("gbp") is None
        assert rates.convert(5, "usd", "usd") == 5
        rates.set_rate("gbp", 1.25)
        assert rates.convert(10, "gbp", "usd") == pytest.approx(12.5)
        assert rates.has_rates()

    def test_empty_currency_rates(self):
        assert not StaticCurrencyRates().has_rates()

    def test_crypto_prices(self):
        prices = StaticCryptoPrices({"BTC": 40000}, fetching={"eth"})
        assert prices.get_price_in_usd("btc") == 40000
        assert prices.convert_to_usd(0.5, "btc") == 20000
        assert prices.convert_from_usd(100, "eth") is None
        assert prices.is_fetching("ETH")

        prices.set_price("eth", 2000)
        assert not prices.is_fetching("eth")
        assert prices.convert_from_usd(100, "eth") == pytest.approx(0.05)

    def test_set_price_notifies_listeners(self):
        prices = StaticCryptoPrices(fetching={"sol"})
        landed = []
        prices.add_listener(landed.append)

        prices.set_price("SOL", 150.0)
        assert landed == ["sol"]

    def test_mark_fetching(self):
        prices = StaticCryptoPrices()
        prices.mark_fetching("SOL")
        assert prices.is_fetching("sol")

    def test_symbols(self):
        prices = StaticCryptoPrices()
        assert prices.is_crypto("DOGE")
        assert not prices.is_crypto("usd")
        assert prices.get_symbol("eth") == "Ξ"
        assert prices.get_symbol("near") == "NEAR"
