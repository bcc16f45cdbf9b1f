"""Emission factor lookup for client-side live estimates."""

from fastapi import APIRouter

from ecotrack.emissions.factors import get_emission_factors

router = APIRouter(prefix="/api/v1", tags=["Emissions"])


@router.get("/emission-factors")
async def emission_factors() -> dict[str, dict[str, dict[str, float]]]:
    """Every factor table, read-only. Public."""
    return {"factors": get_emission_factors().to_dict()}
