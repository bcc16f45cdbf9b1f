"""Pydantic response models for reward endpoints."""

from pydantic import BaseModel


class RewardStatusResponse(BaseModel):
    current_usage: float
    limit: float
    potential_reward: float
    tokens: float
    total_co2_saved: float
    can_claim_previous_month: bool
    message: str


class RewardClaimResponse(BaseModel):
    success: bool = True
    reward: float
    new_balance: float
    message: str
