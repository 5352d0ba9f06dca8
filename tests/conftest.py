"""Custom pytest configuration, shared fixtures and a rich failure summary for evaluator tests."""
from __future__ import annotations

import pytest
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Import the package first so every module logger exists before it is silenced
import linecalc.document  # noqa: F401
from linecalc.core.logging import configure_package_logging
from linecalc.engine.evaluator import Evaluator
from linecalc.engine.formatting import format_result
from linecalc.rates.memory import StaticCryptoPrices, StaticCurrencyRates
from linecalc.units.registry import UnitRegistry

# Disable logging noise during tests
configure_package_logging("CRITICAL")

console = Console()

TEST_CURRENCY_RATES = {"eur": 1.1, "gbp": 1.25}
TEST_CRYPTO_PRICES = {"btc": 50000.0, "eth": 2500.0}


class EvaluatorTestReporter:
    """Collects evaluator assertion failures and prints them as one table."""

    def __init__(self):
        self.failures: list[tuple[str, str, str, str]] = []

    def record_failure(self, test_name: str, line: str, expected: str, actual: str):
        self.failures.append((test_name, line, expected, actual))

    def print_summary(self):
        if not self.failures:
            return

        table = Table(title="Evaluator Failures", show_header=True, header_style="bold magenta")
        table.add_column("Test", style="cyan", no_wrap=False)
        table.add_column("Line", style="yellow")
        table.add_column("Expected", style="green")
        table.add_column("Actual", style="red")
        for test_name, line, expected, actual in self.failures:
            table.add_row(test_name.split("::")[-1], line, expected, actual)

        console.print(table)
        console.print(
            Panel.fit(f"[bold red]Failed lines:[/bold red] {len(self.failures)}", title="Summary", border_style="red")
        )


reporter = EvaluatorTestReporter()


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Pick up structured failure data attached by assert_evaluates"""
    outcome = yield
    report = outcome.get_result()

    if report.when == "call" and report.failed:
        for prop_name, prop_value in item.user_properties:
            if prop_name == "evaluation_failure":
                reporter.record_failure(item.nodeid, prop_value["line"], prop_value["expected"], prop_value["actual"])


def pytest_sessionfinish(session, exitstatus):
    if reporter.failures:
        console.print("\n")
        reporter.print_summary()


def assert_evaluates(evaluator: Evaluator, line: str, expected: str, request=None):
    """Evaluate one line and compare its display text; failures are collected for the summary table"""
    actual = format_result(evaluator.evaluate(line))
    if actual != expected and request is not None:
        request.node.user_properties.append(
            ("evaluation_failure", {"line": line, "expected": expected, "actual": actual})
        )
    assert actual == expected, f"Input '{line}' should evaluate to '{expected}', got '{actual}'"


@pytest.fixture
def currency_rates():
    return StaticCurrencyRates(TEST_CURRENCY_RATES)


@pytest.fixture
def crypto_prices():
    return StaticCryptoPrices(TEST_CRYPTO_PRICES)


@pytest.fixture
def registry(currency_rates, crypto_prices):
    """Registry with fixed rates: 1 EUR = 1.10 USD, 1 GBP = 1.25 USD, BTC 50,000, ETH 2,500"""
    return UnitRegistry(currency_rates=currency_rates, crypto_prices=crypto_prices)


@pytest.fixture
def evaluator(registry):
    return Evaluator(registry)


@pytest.fixture
def fetching_prices():
    """BTC has a stale cached price but a refresh is in flight; SOL has never been fetched"""
    return StaticCryptoPrices({"btc": 50000.0}, fetching={"btc", "sol"})


@pytest.fixture
def fetching_evaluator(currency_rates, fetching_prices):
    return Evaluator(UnitRegistry(currency_rates=currency_rates, crypto_prices=fetching_prices))


@pytest.fixture
def evaluate_lines(evaluator):
    """Evaluate several lines in order and return every result"""

    def run(*lines):
        return [evaluator.evaluate(line) for line in lines]

    return run


@pytest.fixture
def assert_line(evaluator, request):
    """assert_evaluates bound to the evaluator fixture"""

    def check(line: str, expected: str):
        assert_evaluates(evaluator, line, expected, request)

    return check
