"""Pydantic models for goal and dashboard endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class GoalResponse(BaseModel):
    id: int
    month: int
    year: int
    monthly_limit: float
    daily_limit: int
    current_total: float
    status: Literal["within", "warning", "exceeded"]
    percentage: int
    remaining: float
    updated_at: datetime | None = None


class GoalLimitRequest(BaseModel):
    monthly_limit: float = Field(..., gt=0, allow_inf_nan=False)


class GoalHistoryResponse(BaseModel):
    goals: list[GoalResponse]


class TodaySnapshot(BaseModel):
    total: float
    daily_limit: int
    percentage: int


class MonthlyBreakdown(BaseModel):
    energy: float
    transport: float
    food: float
    goods: float
    total: float


class MonthComparison(BaseModel):
    previous_total: float
    percentage: int
    label: Literal["increase", "decrease"]


class StreakSnapshot(BaseModel):
    current: int
    longest: int
    last_log_date: date | None = None
    badges: list[str] = []


class DashboardResponse(BaseModel):
    goal: GoalResponse
    today: TodaySnapshot
    monthly: MonthlyBreakdown
    comparison: MonthComparison
    streak: StreakSnapshot
