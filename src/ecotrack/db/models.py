"""ORM models for users, activities and monthly goals.

Streak and reward state live on the users row. Both users and goals carry a
version stamp so concurrent writers for the same user cannot silently
overwrite each other.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecotrack.db.base import Base, BigIntKey


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Account row with embedded streak and reward state."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntKey, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    monthly_limit: Mapped[float] = mapped_column(Float, nullable=False, default=500.0, server_default="500")

    # --- Streak ---
    streak_current: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    streak_longest: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    streak_last_log_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    badges: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # --- Rewards ---
    tokens: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default="0")
    total_co2_saved: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default="0")
    last_reward_claim_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")

    activities: Mapped[list[Activity]] = relationship("Activity", back_populates="user", passive_deletes=True)

    __mapper_args__: dict[str, Any] = {"version_id_col": version, "eager_defaults": True}  # noqa: RUF012


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


class Activity(Base):
    """One logged activity. calculated_co2 is fixed at write time."""

    __tablename__ = "activities"
    __table_args__ = (
        Index("idx_activities_user_date", "user_id", "activity_date"),
        Index("idx_activities_user_category_date", "user_id", "category", "activity_date"),
    )

    id: Mapped[int] = mapped_column(BigIntKey, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntKey, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_date: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    sub_category: Mapped[str] = mapped_column(String(64), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    calculated_co2: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user: Mapped[User] = relationship("User", back_populates="activities")

    __mapper_args__: dict[str, Any] = {"eager_defaults": True}  # noqa: RUF012


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


class Goal(Base):
    """Monthly emissions budget: UNIQUE(user_id, month, year)."""

    __tablename__ = "goals"
    __table_args__ = (
        UniqueConstraint("user_id", "month", "year", name="goals_user_id_month_year_key"),
    )

    id: Mapped[int] = mapped_column(BigIntKey, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntKey, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    monthly_limit: Mapped[float] = mapped_column(Float, nullable=False, default=500.0)
    daily_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=17)
    current_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="within")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")

    __mapper_args__: dict[str, Any] = {"version_id_col": version, "eager_defaults": True}  # noqa: RUF012
