"""Carbon tracking tables.

Creates users (with embedded streak and reward state), activities and
goals. goals carries UNIQUE(user_id, month, year) so at most one budget
exists per user and calendar month.

Revision ID: 001_carbon_tables
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_carbon_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(50) NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            monthly_limit DOUBLE PRECISION NOT NULL DEFAULT 500,
            streak_current INTEGER NOT NULL DEFAULT 0,
            streak_longest INTEGER NOT NULL DEFAULT 0,
            streak_last_log_date DATE,
            badges JSON NOT NULL DEFAULT '[]',
            tokens DOUBLE PRECISION NOT NULL DEFAULT 0,
            total_co2_saved DOUBLE PRECISION NOT NULL DEFAULT 0,
            last_reward_claim_date TIMESTAMPTZ,
            version INTEGER NOT NULL DEFAULT 1,
            CHECK (streak_current >= 0),
            CHECK (streak_longest >= streak_current),
            CHECK (tokens >= 0)
        )
    """)

    # --- Activities ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS activities (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            activity_date DATE NOT NULL,
            category VARCHAR(16) NOT NULL,
            sub_category VARCHAR(64) NOT NULL,
            value DOUBLE PRECISION NOT NULL,
            unit VARCHAR(32) NOT NULL,
            calculated_co2 DOUBLE PRECISION NOT NULL,
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CHECK (category IN ('energy', 'transport', 'food', 'goods')),
            CHECK (value >= 0),
            CHECK (calculated_co2 >= 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_activities_user_date
        ON activities(user_id, activity_date)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_activities_user_category_date
        ON activities(user_id, category, activity_date)
    """)

    # --- Goals ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS goals (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            month INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
            year INTEGER NOT NULL,
            monthly_limit DOUBLE PRECISION NOT NULL DEFAULT 500,
            daily_limit INTEGER NOT NULL DEFAULT 17,
            current_total DOUBLE PRECISION NOT NULL DEFAULT 0,
            status VARCHAR(16) NOT NULL DEFAULT 'within',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            version INTEGER NOT NULL DEFAULT 1,
            CONSTRAINT goals_user_id_month_year_key UNIQUE (user_id, month, year),
            CHECK (status IN ('within', 'warning', 'exceeded'))
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS goals CASCADE")
    op.execute("DROP TABLE IF EXISTS activities CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
