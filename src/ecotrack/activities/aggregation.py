"""Grouping of activities into category totals and daily series."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from typing import Protocol

from ecotrack.emissions.calculator import calculate_total
from ecotrack.emissions.factors import CATEGORIES


class DatedEmissions(Protocol):
    category: str
    calculated_co2: float
    activity_date: date


def aggregate_by_category(activities: Iterable[DatedEmissions]) -> dict[str, float]:
    """{energy, transport, food, goods} sums, each rounded to 2 decimals."""
    totals = calculate_total(activities)
    return {category: totals[category] for category in CATEGORIES}


def aggregate_by_day(activities: Iterable[DatedEmissions]) -> list[dict]:
    """One row per calendar day that has activities, ascending by date.

    Rows look like {"date": "2026-01-31", "energy": ..., "transport": ...,
    "food": ..., "goods": ..., "total": ...}.
    """
    by_day: dict[date, list[DatedEmissions]] = defaultdict(list)
    for activity in activities:
        by_day[activity.activity_date].append(activity)

    return [
        {"date": day.isoformat(), **calculate_total(by_day[day])}
        for day in sorted(by_day)
    ]
