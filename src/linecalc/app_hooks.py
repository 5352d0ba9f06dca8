#!/usr/bin/env python3
"""
App hooks for the linecalc CLI - provides the implementation of every command.
This file connects the CLI to the evaluator, the unit registry and the config.
"""
import json as json_module
import math
import os
import queue
import sys
import time
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .core.config import ConfigLoader, ConfigurationError, get_config, load_config
from .core.logging import configure_package_logging
from .document import create_evaluator, evaluate_document, evaluate_until_settled
from .engine.common import LOADING, ErrorResult, NumberResult, TextResult
from .engine.formatting import format_result, result_to_dict
from .units.registry import Category, UnitRegistry

RESET_COMMAND = ":reset"
RATES_COMMAND = ":rates"
QUIT_COMMANDS = (":quit", ":q", "exit")


def _load_settings(config: Optional[str], debug: bool) -> ConfigLoader:
    settings = load_config(config) if config else get_config()
    if debug:
        level = "DEBUG"
    elif "LINECALC_LOG_LEVEL" in os.environ or "LOG_LEVEL" in os.environ:
        level = os.environ.get("LINECALC_LOG_LEVEL", os.environ.get("LOG_LEVEL", "WARNING"))
    else:
        level = settings.get("logging.level", "WARNING")
    configure_package_logging(level, include_file=bool(settings.get("logging.file", False)))
    return settings


def _result_style(result) -> str:
    if isinstance(result, ErrorResult) or (isinstance(result, NumberResult) and math.isnan(result.value)):
        return "red"
    if isinstance(result, TextResult):
        return "yellow"
    if isinstance(result, NumberResult) and result.is_aggregate:
        return "bold green"
    if isinstance(result, NumberResult) and result.is_currency_conversion:
        return "cyan"
    return "green"


def _shutdown(evaluator) -> None:
    """Stop background refreshers started for live rates"""
    for provider in (evaluator.registry.currency_rates, evaluator.registry.crypto_prices):
        if hasattr(provider, "stop"):
            provider.stop()
        if hasattr(provider, "shutdown"):
            provider.shutdown(wait=False)


def on_eval(
    text: str,
    json: bool,
    offline: bool,
    wait: bool,
    debug: bool,
    config: Optional[str],
    **kwargs,
) -> int:
    """Handle the eval command - evaluate a whole document"""
    console = Console()
    try:
        settings = _load_settings(config, debug)
        evaluator = create_evaluator(settings, offline=offline)
        try:
            if wait:
                results = evaluate_until_settled(
                    text, evaluator, poll_interval_s=settings.poll_interval, timeout_s=settings.settle_timeout
                )
            else:
                results = evaluate_document(text, evaluator)
        finally:
            _shutdown(evaluator)

        if json:
            payload = [
                {"line": line.line_number, "input": line.input, "result": result_to_dict(line.result)}
                for line in results
            ]
            print(json_module.dumps(payload, ensure_ascii=False, indent=2))
            return 0

        table = Table(show_header=True, header_style="bold magenta", box=None)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Input")
        table.add_column("Result", justify="right")
        for line in results:
            style = _result_style(line.result) if line.result is not None else ""
            table.add_row(str(line.line_number), Text(line.input), Text(format_result(line.result), style=style))
        console.print(table)
        return 0
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        if debug:
            import traceback

            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return 1


def _rates_status(evaluator) -> str:
    currency = evaluator.registry.currency_rates
    last_fetch = getattr(currency, "last_fetch", None)
    if last_fetch is not None:
        return f"Exchange rates fetched at {time.strftime('%H:%M:%S', time.localtime(last_fetch))}"
    if hasattr(currency, "is_loading") and currency.is_loading():
        return "Exchange rates loading..."
    return "Using built-in exchange rates"


def _render_landed(console: Console, evaluator, pending: list[str], landed: "queue.Queue[str]") -> list[str]:
    """Re-evaluate lines that were waiting on a price once prices have landed; returns the lines still waiting"""
    if landed.empty():
        return pending
    while not landed.empty():
        landed.get_nowait()

    still_pending = []
    for line in pending:
        result = evaluator.evaluate(line)
        if result == LOADING:
            still_pending.append(line)
        elif result is not None:
            console.print(Text(f"  {line} = {format_result(result)}", style=_result_style(result)))
    return still_pending


def on_repl(offline: bool, debug: bool, config: Optional[str], **kwargs) -> int:
    """Handle the repl command - evaluate lines as they are typed"""
    console = Console()
    try:
        settings = _load_settings(config, debug)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    evaluator = create_evaluator(settings, offline=offline)
    landed: "queue.Queue[str]" = queue.Queue()
    evaluator.registry.crypto_prices.add_listener(landed.put)
    pending: list[str] = []

    console.print(
        "[dim]linecalc - blank line starts a new section, :reset clears everything, "
        ":rates shows rate status, Ctrl-D exits[/dim]"
    )
    try:
        while True:
            pending = _render_landed(console, evaluator, pending, landed)
            try:
                line = console.input("[bold #BD93F9]> [/]")
            except EOFError:
                break
            if line.strip() in QUIT_COMMANDS:
                break
            if line.strip() == RESET_COMMAND:
                evaluator.reset()
                pending = []
                console.print("[dim]Session cleared[/dim]")
                continue
            if line.strip() == RATES_COMMAND:
                console.print(f"[dim]{_rates_status(evaluator)}[/dim]")
                continue

            result = evaluator.evaluate(line)
            if result == LOADING:
                pending.append(line)
            if result is not None:
                console.print(Text(f"  {format_result(result)}", style=_result_style(result)))
        return 0
    except KeyboardInterrupt:
        return 0
    finally:
        _shutdown(evaluator)



def on_units(category: Optional[str], json: bool, **kwargs) -> int:
    """Handle the units command - list the unit table"""
    registry = UnitRegistry()

    selected = None
    if category:
        try:
            selected = Category(category.lower())
        except ValueError:
            names = ", ".join(c.value for c in Category)
            print(f"Unknown category: {category} (choose from {names})", file=sys.stderr)
            return 1

    units = registry.units(selected)

    if json:
        payload = [
            {"name": unit.name, "symbol": unit.symbol, "category": unit.category.value, "to_base": unit.to_base}
            for unit in units
        ]
        print(json_module.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Symbol", style="green")
    table.add_column("Category", style="dim")
    for unit in units:
        table.add_row(unit.name, unit.symbol, unit.category.value)
    Console().print(table)
    return 0


def _parse_config_value(value: str):
    """JSON literals become numbers, booleans or null; anything else stays a string"""
    try:
        return json_module.loads(value)
    except ValueError:
        return value


def on_config_show(json: bool = False, config: Optional[str] = None, **kwargs) -> int:
    """Show all configuration settings"""
    try:
        settings = load_config(config) if config else get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if json:
        print(json_module.dumps(settings.config, indent=2))
        return 0

    table = Table(title=settings.config_file or "built-in defaults", show_header=True, header_style="bold magenta")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for section, values in settings.config.items():
        if isinstance(values, dict):
            for key, value in values.items():
                table.add_row(f"{section}.{key}", str(value))
        else:
            table.add_row(section, str(values))
    Console().print(table)
    return 0


def on_config_get(key: str, config: Optional[str] = None, **kwargs) -> int:
    """Get specific configuration value"""
    try:
        settings = load_config(config) if config else get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    value = settings.get(key)
    if value is None:
        print(f"Unknown configuration key: {key}", file=sys.stderr)
        return 1
    print(f"{key}: {json_module.dumps(value)}")
    return 0


def on_config_set(key: str, value: str, config: Optional[str] = None, **kwargs) -> int:
    """Set configuration value and write the config file"""
    try:
        settings = load_config(config) if config else get_config()
        settings.set(key, _parse_config_value(value))
        settings.save()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    print(f"✅ Set {key} = {value}")
    return 0
