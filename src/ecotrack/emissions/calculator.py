"""Carbon footprint calculation engine.

CF_total = CF_energy + CF_transport + CF_food + CF_goods, where each term is
quantity x factor. Everything here is pure: no I/O, no state.

Arithmetic runs in Decimal so that e.g. 10 km x 0.21 is exactly 2.10 and
stored values are free of float noise.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from ecotrack.emissions.factors import CATEGORIES, EmissionFactorTable, get_emission_factors
from ecotrack.errors import ValidationError

_CENT = Decimal("0.01")


class HasEmissions(Protocol):
    category: str
    calculated_co2: float


@dataclass(frozen=True)
class FoodItem:
    """A quantity of a specific food, in kg."""

    name: str
    kg: float


@dataclass(frozen=True)
class DietDay:
    """A number of days eating according to a diet type."""

    diet_type: str
    days: float


FoodEntry = FoodItem | DietDay


def to_decimal(value: float | int | Decimal) -> Decimal:
    """Decimal via the shortest repr, so 0.21 stays 0.21."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_co2(value: float | int | Decimal) -> float:
    """Round half-up to 2 decimals."""
    return float(to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


def round_half_up(value: float | int | Decimal) -> int:
    """Integer rounding with halves going up (matches the client's Math.round for positives)."""
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validate_value(value: object, field: str = "value") -> float:
    """Accept non-negative finite numbers only."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"{field} must be a number", field=field)
    number = float(value)
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a finite number", field=field)
    if number < 0:
        raise ValidationError(f"{field} must be zero or greater", field=field)
    return number


def resolve_food_entry(
    sub_category: str,
    value: float,
    factors: EmissionFactorTable | None = None,
) -> FoodEntry:
    """Classify a food sub-category as a diet day count or a food item weight."""
    factors = factors or get_emission_factors()
    if sub_category in factors.diet_daily_factors:
        return DietDay(diet_type=sub_category, days=value)
    if sub_category in factors.food_factors:
        return FoodItem(name=sub_category, kg=value)
    raise ValidationError(f"Unknown food type: {sub_category}", field="sub_category")


def food_emissions(entry: FoodEntry, factors: EmissionFactorTable | None = None) -> float:
    """Emissions for an explicit food variant."""
    factors = factors or get_emission_factors()
    if isinstance(entry, DietDay):
        factor = factors.diet_daily_factors.get(entry.diet_type)
        if factor is None:
            raise ValidationError(f"Unknown diet type: {entry.diet_type}", field="sub_category")
        quantity = validate_value(entry.days)
    else:
        factor = factors.food_factors.get(entry.name)
        if factor is None:
            raise ValidationError(f"Unknown food type: {entry.name}", field="sub_category")
        quantity = validate_value(entry.kg)
    return round_co2(to_decimal(quantity) * to_decimal(factor))


def calculate(
    category: str,
    sub_category: str,
    value: float,
    factors: EmissionFactorTable | None = None,
) -> float:
    """kg CO2e for one activity, rounded to 2 decimals.

    Raises:
        ValidationError: unknown category or sub-category, or a value that is
            negative, non-finite or not a number.
    """
    factors = factors or get_emission_factors()
    quantity = validate_value(value)

    if category == "food":
        return food_emissions(resolve_food_entry(sub_category, quantity, factors), factors)
    if category not in CATEGORIES:
        raise ValidationError(f"Unknown category: {category}", field="category")

    factor = factors.table_for(category).get(sub_category)
    if factor is None:
        raise ValidationError(f"Unknown {category} sub-category: {sub_category}", field="sub_category")
    return round_co2(to_decimal(quantity) * to_decimal(factor))


def calculate_total(activities: Iterable[HasEmissions]) -> dict[str, float]:
    """Per-category sums of stored emissions plus their total.

    Each category sum is rounded on its own and the total is built from the
    rounded sums, so total == energy + transport + food + goods.
    Activities with an unknown category are skipped.
    """
    sums = {category: Decimal(0) for category in CATEGORIES}
    for activity in activities:
        if activity.category in sums:
            sums[activity.category] += to_decimal(activity.calculated_co2)

    rounded = {category: to_decimal(round_co2(amount)) for category, amount in sums.items()}
    totals = {category: float(amount) for category, amount in rounded.items()}
    totals["total"] = float(sum(rounded.values(), Decimal(0)))
    return totals


def percentage_change(current: float, previous: float) -> int:
    """Whole-percent change from previous to current; 0 when there is no previous data."""
    if previous <= 0:
        return 0
    change = (to_decimal(current) - to_decimal(previous)) / to_decimal(previous) * 100
    # Decimal ROUND_HALF_UP rounds halves away from zero
    return int(change.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
