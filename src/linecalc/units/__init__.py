"""Unit registry and the static unit table."""
from __future__ import annotations

from .registry import Category, SymbolPosition, Unit, UnitRegistry

__all__ = ["Category", "SymbolPosition", "Unit", "UnitRegistry"]
