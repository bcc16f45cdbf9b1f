"""Activity endpoints: log, edit, delete, list, summaries and trends."""

from __future__ import annotations

import datetime as dt
import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.activities import service
from ecotrack.activities.schemas import (
    ActivityCreateRequest,
    ActivityListResponse,
    ActivityResponse,
    ActivityUpdateRequest,
    DailySummaryResponse,
    TrendResponse,
)
from ecotrack.auth.dependencies import get_current_user
from ecotrack.database import commit_with_retry, get_session
from ecotrack.db.models import User
from ecotrack.redis_client import get_optional_redis

router = APIRouter(prefix="/api/v1/activities", tags=["Activities"])


@router.post("", response_model=ActivityResponse, status_code=201)
async def create_activity(
    body: ActivityCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
) -> ActivityResponse:
    """Log an activity; emissions are calculated server-side."""
    user_id = user.id
    activity = await commit_with_retry(db, lambda: service.log_activity(
        db,
        redis,
        user_id,
        category=body.category,
        sub_category=body.sub_category,
        value=body.value,
        unit=body.unit,
        activity_date=body.date,
        notes=body.notes,
    ))
    return ActivityResponse.model_validate(activity)


@router.get("", response_model=ActivityListResponse)
async def list_activities(
    start_date: dt.date | None = Query(None),
    end_date: dt.date | None = Query(None),
    category: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ActivityListResponse:
    """The user's activities, newest first."""
    activities, total = await service.list_activities(
        db, user.id, start_date=start_date, end_date=end_date, category=category, page=page, limit=limit,
    )
    return ActivityListResponse(
        count=len(activities),
        total=total,
        page=page,
        pages=math.ceil(total / limit),
        activities=[ActivityResponse.model_validate(a) for a in activities],
    )


@router.get("/summary/daily", response_model=DailySummaryResponse)
async def daily_summary(
    date: dt.date | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Totals for one day (default today) against the daily limit."""
    return await service.get_daily_summary(db, user.id, date)


@router.get("/trends/weekly", response_model=TrendResponse)
async def weekly_trend(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return await service.get_weekly_trend(db, user.id)


@router.get("/trends/monthly", response_model=TrendResponse)
async def monthly_trend(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return await service.get_monthly_trend(db, user.id)


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ActivityResponse:
    activity = await service.get_activity(db, user.id, activity_id)
    return ActivityResponse.model_validate(activity)


@router.put("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    activity_id: int,
    body: ActivityUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
) -> ActivityResponse:
    """Partial edit; emissions and the month's goal are recomputed."""
    changes = body.model_dump(exclude_unset=True)
    if "date" in changes:
        changes["activity_date"] = changes.pop("date")
    user_id = user.id
    activity = await commit_with_retry(
        db, lambda: service.update_activity(db, redis, user_id, activity_id, changes),
    )
    return ActivityResponse.model_validate(activity)


@router.delete("/{activity_id}")
async def delete_activity(
    activity_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_optional_redis),
) -> dict[str, object]:
    user_id = user.id
    await commit_with_retry(db, lambda: service.delete_activity(db, redis, user_id, activity_id))
    return {"success": True, "message": "Activity deleted"}
