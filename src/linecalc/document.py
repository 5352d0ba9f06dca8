#!/usr/bin/env python3
"""
Whole-document evaluation.

A document is re-evaluated from the top on every pass: the evaluator is reset
and each line is replayed in order, so results never depend on earlier runs.
Lines waiting on a crypto price come back as "Loading..."; callers that want
final values poll with evaluate_until_settled.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from .core.config import ConfigLoader, get_config, setup_logging
from .core.logging import LogContext
from .engine.common import LOADING, EvaluationResult
from .engine.evaluator import Evaluator
from .units.registry import UnitRegistry

logger = setup_logging(__name__)


@dataclass
class LineResult:
    line_number: int  # 1-based
    input: str
    result: Optional[EvaluationResult]


def evaluate_document(text: str, evaluator: Evaluator) -> list[LineResult]:
    evaluator.reset()
    results = []
    for number, line in enumerate(text.split("\n"), start=1):
        with LogContext(line=number):
            results.append(LineResult(number, line, evaluator.evaluate(line)))
    return results


def has_pending(results: list[LineResult]) -> bool:
    return any(line.result == LOADING for line in results)


def evaluate_until_settled(
    text: str,
    evaluator: Evaluator,
    poll_interval_s: float = 2.0,
    timeout_s: float = 10.0,
) -> list[LineResult]:
    """Re-run the document while any line is still loading, up to timeout_s"""
    deadline = time.monotonic() + timeout_s
    results = evaluate_document(text, evaluator)

    while has_pending(results):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.info("Gave up waiting for pending rates")
            break
        time.sleep(min(poll_interval_s, remaining))
        results = evaluate_document(text, evaluator)

    return results


def create_evaluator(config: Optional[ConfigLoader] = None, offline: bool = False) -> Evaluator:
    """Build an evaluator with providers chosen by configuration"""
    config = config if config is not None else get_config()
    css = config.css_bases

    if offline or not config.rates_enabled:
        logger.debug("Using static rate providers")
        registry = UnitRegistry(em_size=css["em_size"], rem_size=css["rem_size"], ppi=css["ppi"])
        return Evaluator(registry)

    from .rates.crypto import CryptoPriceCache
    from .rates.currency import CurrencyRateCache

    currency_rates = CurrencyRateCache(
        url=config.get("rates.currency_url"),
        refresh_interval=config.get("rates.refresh_interval_s"),
        timeout=config.get("rates.timeout_s"),
    )
    crypto_prices = CryptoPriceCache(
        url_template=config.get("rates.crypto_url"),
        timeout=config.get("rates.timeout_s"),
        max_workers=config.get("rates.fetch_workers"),
    )
    currency_rates.start()

    registry = UnitRegistry(
        currency_rates=currency_rates,
        crypto_prices=crypto_prices,
        em_size=css["em_size"],
        rem_size=css["rem_size"],
        ppi=css["ppi"],
    )
    return Evaluator(registry)
