"""
linecalc - Line-oriented natural-language calculator.

This package provides:
- Tokenizer and recursive-descent parser for free-form calculator lines
- Evaluator with variables, section aggregates and block comments
- Unit registry with length, mass, time, data, area, volume, temperature,
  currency and CSS units
- Live currency and crypto rate providers with a non-blocking "Loading..." state
"""

__version__ = "1.0.0"

from .document import create_evaluator, evaluate_document  # noqa: E402
from .engine.evaluator import Evaluator  # noqa: E402
from .units.registry import UnitRegistry  # noqa: E402

__all__ = [
    "Evaluator",
    "UnitRegistry",
    "create_evaluator",
    "evaluate_document",
]
