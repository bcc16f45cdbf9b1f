"""Tests for category and daily aggregation."""

from datetime import date
from types import SimpleNamespace

from ecotrack.activities.aggregation import aggregate_by_category, aggregate_by_day


def _activity(day: date, category: str, co2: float) -> SimpleNamespace:
    return SimpleNamespace(activity_date=day, category=category, calculated_co2=co2)


def test_aggregate_by_category():
    result = aggregate_by_category([
        _activity(date(2026, 3, 1), "energy", 4.2),
        _activity(date(2026, 3, 2), "energy", 0.8),
        _activity(date(2026, 3, 2), "goods", 2.5),
    ])
    assert result == {"energy": 5.0, "transport": 0.0, "food": 0.0, "goods": 2.5}


def test_aggregate_by_day_sorted_ascending():
    rows = aggregate_by_day([
        _activity(date(2026, 3, 3), "food", 8.67),
        _activity(date(2026, 3, 1), "transport", 2.1),
        _activity(date(2026, 3, 3), "energy", 1.0),
    ])
    assert [row["date"] for row in rows] == ["2026-03-01", "2026-03-03"]
    assert rows[0]["transport"] == 2.1
    assert rows[0]["total"] == 2.1
    assert rows[1]["food"] == 8.67
    assert rows[1]["total"] == 9.67


def test_aggregate_by_day_skips_empty_days():
    assert aggregate_by_day([]) == []
