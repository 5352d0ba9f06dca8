#!/usr/bin/env python3
"""Rate provider interfaces shared by the live and in-memory implementations."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

# Supported crypto assets (top 50 by market cap), symbol -> CoinGecko id
CRYPTO_IDS = {
    # Top 10
    "btc": "bitcoin", "eth": "ethereum", "usdt": "tether", "bnb": "binancecoin",
    "xrp": "ripple", "usdc": "usd-coin", "sol": "solana", "trx": "tron",
    "doge": "dogecoin", "ada": "cardano",
    # 11-20
    "bch": "bitcoin-cash", "xmr": "monero", "leo": "leo-token", "link": "chainlink",
    "xlm": "stellar", "ltc": "litecoin", "dai": "dai", "avax": "avalanche-2",
    "sui": "sui", "shib": "shiba-inu",
    # 21-30
    "hbar": "hedera-hashgraph", "ton": "the-open-network", "cro": "crypto-com-chain",
    "dot": "polkadot", "uni": "uniswap", "mnt": "mantle", "bgb": "bitget-token",
    "aave": "aave", "okb": "okb", "tao": "bittensor",
    # 31-40
    "pepe": "pepe", "near": "near", "atom": "cosmos", "etc": "ethereum-classic",
    "matic": "matic-network", "apt": "aptos", "op": "optimism", "arb": "arbitrum",
    "vet": "vechain", "fil": "filecoin",
    # 41-50
    "algo": "algorand", "ftm": "fantom", "inj": "injective-protocol", "sei": "sei-network",
    "imx": "immutable-x", "grt": "the-graph", "sand": "the-sandbox", "mana": "decentraland",
    "axs": "axie-infinity", "ape": "apecoin",
}

# Called with the lowercased symbol whenever a price lands
PriceListener = Callable[[str], None]

# Display glyphs; assets without one show their uppercased symbol
CRYPTO_SYMBOLS = {
    "btc": "₿",
    "eth": "Ξ",
    "usdt": "₮",
    "sol": "◎",
    "doge": "Ð",
    "ada": "₳",
    "xmr": "ɱ",
    "ltc": "Ł",
    "hbar": "ℏ",
}


class CurrencyRateProvider(ABC):
    """Fiat exchange rates expressed as the USD value of one unit"""

    @abstractmethod
    def get_rate(self, code: str) -> float | None:
        """USD value of one unit of code, None when not known yet"""

    def convert(self, amount: float, from_code: str, to_code: str) -> float | None:
        from_code = from_code.lower()
        to_code = to_code.lower()

        if from_code == to_code:
            return amount

        from_rate = self.get_rate(from_code)
        to_rate = self.get_rate(to_code)
        if from_rate is None or to_rate is None or to_rate <= 0:
            return None

        # amount * (USD per 1 from) / (USD per 1 to)
        return amount * from_rate / to_rate


class CryptoPriceProvider(ABC):
    """
    Crypto asset prices in USD.

    get_price_in_usd never blocks: a cache miss returns None and, for live
    providers, starts a background fetch that is_fetching reports on.
    """

    def is_crypto(self, symbol: str) -> bool:
        return symbol.lower() in CRYPTO_IDS

    def get_symbol(self, symbol: str) -> str:
        return CRYPTO_SYMBOLS.get(symbol.lower(), symbol.upper())

    @abstractmethod
    def is_fetching(self, symbol: str) -> bool:
        """True while a price fetch for symbol is in flight"""

    @abstractmethod
    def get_price_in_usd(self, symbol: str) -> float | None:
        """Cached USD price, or None on a cache miss"""

    @abstractmethod
    def add_listener(self, listener: PriceListener) -> None:
        """Register listener(symbol) for prices that land after a miss"""

    def convert_to_usd(self, amount: float, symbol: str) -> float | None:
        price = self.get_price_in_usd(symbol)
        if price is None:
            return None
        return amount * price

    def convert_from_usd(self, usd_amount: float, symbol: str) -> float | None:
        price = self.get_price_in_usd(symbol)
        if price is None or price <= 0:
            return None
        return usd_amount / price
