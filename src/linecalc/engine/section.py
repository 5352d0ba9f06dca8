#!/usr/bin/env python3
"""
Section buffer: values accumulated since the last blank line.

Aggregates (sum, average, count) operate over the current section. With no
explicit target, the aggregate currency is the one used most often in the
section, ties going to the currency that appeared first; currency values are
converted to it and everything else is added as is.
"""
from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Optional

from .common import Value

if TYPE_CHECKING:
    from ..units.registry import Unit, UnitRegistry


class SectionBuffer:
    def __init__(self) -> None:
        self.values: list[Value] = []
        self.currency_order: list[str] = []
        self._currency_units: dict[str, Unit] = {}

    @property
    def count(self) -> int:
        return len(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def append(self, value: Value) -> None:
        self.values.append(value)
        self.note_currency(value.unit)

    def note_currency(self, unit: Optional[Unit]) -> None:
        """Record the first appearance of a currency in this section"""
        if unit is None or not unit.is_currency:
            return
        if unit.name not in self._currency_units:
            self._currency_units[unit.name] = unit
            self.currency_order.append(unit.name)

    def clear(self) -> None:
        self.values.clear()
        self.currency_order.clear()
        self._currency_units.clear()

    def default_currency(self) -> Optional[Unit]:
        counts = Counter(value.unit.name for value in self.values if value.unit is not None and value.unit.is_currency)
        if not counts:
            return None

        highest = max(counts.values())
        most_common = [name for name, count in counts.items() if count == highest]
        if len(most_common) == 1:
            return self._unit_named(most_common[0])

        for name in self.currency_order:
            if name in most_common:
                return self._unit_named(name)
        return None

    def _unit_named(self, name: str) -> Optional[Unit]:
        unit = self._currency_units.get(name)
        if unit is None:
            unit = next((v.unit for v in self.values if v.unit is not None and v.unit.name == name), None)
        return unit

    def total_in(self, registry: UnitRegistry, target: Optional[Unit]) -> float:
        """Sum of the section with currency values converted to target"""
        total = 0.0
        for value in self.values:
            if target is not None and value.unit is not None and value.unit.is_currency:
                total += registry.convert(value.number, value.unit, target)
            else:
                total += value.number
        return total

    def sum(self, registry: UnitRegistry) -> tuple[float, Optional[Unit]]:
        target = self.default_currency()
        return self.total_in(registry, target), target

    def average(self, registry: UnitRegistry) -> tuple[float, Optional[Unit]]:
        total, target = self.sum(registry)
        if not self.values:
            return 0.0, target
        return total / len(self.values), target
