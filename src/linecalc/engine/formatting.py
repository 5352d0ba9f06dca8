#!/usr/bin/env python3
"""Rendering of evaluation results for display and JSON output."""
from __future__ import annotations

import math
from typing import Any, Optional

from ..units.registry import format_decimal
from .common import ErrorResult, EvaluationResult, NumberResult, TextResult

NOT_A_NUMBER = "Error: not a number"


def format_number(value: float, unit=None) -> str:
    if math.isnan(value):
        return NOT_A_NUMBER
    if unit is not None:
        return unit.format(value)
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    return format_decimal(value, 6, 0)


def format_result(result: Optional[EvaluationResult]) -> str:
    """Display text for a line result; an empty string when there is nothing to show"""
    if result is None:
        return ""
    if isinstance(result, NumberResult):
        return format_number(result.value, result.unit)
    if isinstance(result, TextResult):
        return result.text
    if isinstance(result, ErrorResult):
        return f"Error: {result.message}"
    return str(result)


def result_to_dict(result: Optional[EvaluationResult]) -> Optional[dict[str, Any]]:
    """JSON-friendly view of a result"""
    if result is None:
        return None

    if isinstance(result, NumberResult):
        value = result.value if math.isfinite(result.value) else None
        return {
            "type": "number",
            "value": value,
            "unit": result.unit.name if result.unit else None,
            "display": format_result(result),
            "is_currency_conversion": result.is_currency_conversion,
            "is_aggregate": result.is_aggregate,
        }

    if isinstance(result, TextResult):
        return {"type": "text", "text": result.text}

    return {"type": "error", "message": result.message}
