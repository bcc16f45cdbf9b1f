"""Pydantic request/response models for activity endpoints."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Category = Literal["energy", "transport", "food", "goods"]


class ActivityCreateRequest(BaseModel):
    category: Category
    sub_category: str = Field(..., min_length=1, max_length=64)
    value: float = Field(..., ge=0, allow_inf_nan=False)
    unit: str = Field(..., min_length=1, max_length=32)
    date: dt.date | None = None
    notes: str | None = Field(None, max_length=500)


class ActivityUpdateRequest(BaseModel):
    category: Category | None = None
    sub_category: str | None = Field(None, min_length=1, max_length=64)
    value: float | None = Field(None, ge=0, allow_inf_nan=False)
    unit: str | None = Field(None, min_length=1, max_length=32)
    date: dt.date | None = None
    notes: str | None = Field(None, max_length=500)


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    sub_category: str
    value: float
    unit: str
    calculated_co2: float
    date: dt.date = Field(validation_alias=AliasChoices("activity_date", "date"))
    notes: str | None = None
    created_at: dt.datetime | None = None


class ActivityListResponse(BaseModel):
    count: int
    total: int
    page: int
    pages: int
    activities: list[ActivityResponse]


class DailySummaryResponse(BaseModel):
    date: dt.date
    activities: int
    energy: float
    transport: float
    food: float
    goods: float
    total: float
    daily_limit: int
    status: Literal["within", "exceeded"]


class TrendPoint(BaseModel):
    date: str
    energy: float
    transport: float
    food: float
    goods: float
    total: float


class TrendResponse(BaseModel):
    start_date: dt.date
    end_date: dt.date
    trends: list[TrendPoint]
