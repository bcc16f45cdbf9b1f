"""Emission factor tables (kg CO2e per unit).

Sources: EPA, DEFRA and various environmental agencies. Keys are part of the
public API (clients send them as sub-categories) and must stay stable.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

CATEGORIES: tuple[str, ...] = ("energy", "transport", "food", "goods")

# kg CO2e per kWh / m3 / liter
ENERGY_FACTORS: dict[str, float] = {
    "electricity": 0.42,  # per kWh, average grid
    "naturalGas": 2.0,  # per m3
    "heatingOil": 2.68,  # per liter
    "propane": 1.51,  # per liter
}

# kg CO2e per km
TRANSPORT_FACTORS: dict[str, float] = {
    "electric": 0.05,
    "hybrid": 0.12,
    "petrol": 0.21,
    "diesel": 0.27,
    "motorcycle": 0.11,
    "bus": 0.089,
    "train": 0.041,
    "bicycle": 0.0,
    "walking": 0.0,
    "flight_short": 0.255,  # < 1500 km
    "flight_long": 0.195,  # > 1500 km
}

# kg CO2e per kg of food
FOOD_FACTORS: dict[str, float] = {
    "beef": 27.0,
    "lamb": 39.2,
    "pork": 12.1,
    "chicken": 6.9,
    "fish": 5.0,
    "eggs": 4.8,
    "dairy": 3.2,
    "cheese": 13.5,
    "rice": 2.7,
    "vegetables": 2.0,
    "fruits": 1.1,
    "legumes": 0.9,
    "bread": 0.8,
    "plantBased": 0.7,
}

# kg CO2e per day on a given diet
DIET_DAILY_FACTORS: dict[str, float] = {
    "meatHeavy": 7.19,
    "average": 5.63,
    "pescatarian": 3.91,
    "vegetarian": 3.81,
    "vegan": 2.89,
}

# kg CO2e per unit of currency spent
GOODS_FACTORS: dict[str, float] = {
    "clothing": 0.5,
    "electronics": 0.8,
    "furniture": 0.4,
    "household": 0.3,
    "personalCare": 0.25,
    "entertainment": 0.2,
    "other": 0.35,
}


def _frozen(table: Mapping[str, float], name: str) -> Mapping[str, float]:
    for key, factor in table.items():
        if not isinstance(factor, (int, float)) or not math.isfinite(factor) or factor < 0:
            msg = f"{name}[{key!r}] must be a non-negative finite number, got {factor!r}"
            raise ValueError(msg)
    return MappingProxyType(dict(table))


@dataclass(frozen=True)
class EmissionFactorTable:
    """Read-only bundle of every factor table."""

    energy_factors: Mapping[str, float] = field(default_factory=dict)
    transport_factors: Mapping[str, float] = field(default_factory=dict)
    food_factors: Mapping[str, float] = field(default_factory=dict)
    diet_daily_factors: Mapping[str, float] = field(default_factory=dict)
    goods_factors: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("energy_factors", "transport_factors", "food_factors", "diet_daily_factors", "goods_factors"):
            object.__setattr__(self, name, _frozen(getattr(self, name), name))
        overlap = set(self.food_factors) & set(self.diet_daily_factors)
        if overlap:
            msg = f"Food items and diet types must not share keys: {sorted(overlap)}"
            raise ValueError(msg)

    def table_for(self, category: str) -> Mapping[str, float]:
        """Single lookup table for energy, transport and goods."""
        return {
            "energy": self.energy_factors,
            "transport": self.transport_factors,
            "goods": self.goods_factors,
        }[category]

    def sub_categories(self, category: str) -> list[str]:
        """Every valid sub-category key for a category."""
        if category == "food":
            return [*self.food_factors, *self.diet_daily_factors]
        return list(self.table_for(category))

    def to_dict(self) -> dict[str, dict[str, float]]:
        """Shape served to clients for live estimates."""
        return {
            "energy": dict(self.energy_factors),
            "transport": dict(self.transport_factors),
            "food": dict(self.food_factors),
            "dietTypes": dict(self.diet_daily_factors),
            "goods": dict(self.goods_factors),
        }


EMISSION_FACTORS = EmissionFactorTable(
    energy_factors=ENERGY_FACTORS,
    transport_factors=TRANSPORT_FACTORS,
    food_factors=FOOD_FACTORS,
    diet_daily_factors=DIET_DAILY_FACTORS,
    goods_factors=GOODS_FACTORS,
)


def get_emission_factors() -> EmissionFactorTable:
    """The process-wide factor table."""
    return EMISSION_FACTORS
