"""Report endpoints: weekly and monthly summaries."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ecotrack.auth.dependencies import get_current_user
from ecotrack.database import get_session
from ecotrack.db.models import User
from ecotrack.reports.service import get_monthly_report, get_weekly_report

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


@router.get("/weekly")
async def weekly_report(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return {"report": await get_weekly_report(db, user.id)}


@router.get("/monthly")
async def monthly_report(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return {"report": await get_monthly_report(db, user.id)}
