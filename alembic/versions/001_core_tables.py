"""Core tables: users, gamification state, XP ledger, achievements, sessions, photos.

Revision ID: 001_core_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_core_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            username VARCHAR(64) UNIQUE NOT NULL,
            email VARCHAR(320) UNIQUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Gamification state (streak + XP), version-checked ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_gamification (
            user_id INTEGER PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            current_streak INTEGER NOT NULL DEFAULT 0,
            best_streak INTEGER NOT NULL DEFAULT 0,
            last_activity_at TIMESTAMPTZ,
            xp INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            coins INTEGER NOT NULL DEFAULT 0,
            total_xp BIGINT NOT NULL DEFAULT 0,
            version INTEGER NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CHECK (best_streak >= current_streak),
            CHECK (xp >= 0 AND level >= 1 AND coins >= 0)
        )
    """)

    # --- XP Ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS xp_ledger (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL,
            coins INTEGER NOT NULL DEFAULT 0,
            source VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            description VARCHAR(256),
            created_at TIMESTAMPTZ DEFAULT NOW(),
            idempotency_key VARCHAR(256) UNIQUE
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_xp_ledger_user
        ON xp_ledger(user_id, created_at DESC)
    """)

    # --- Earned achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id VARCHAR(64) NOT NULL,
            xp_reward INTEGER NOT NULL DEFAULT 0,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_achievements_user_id_achievement_id_key UNIQUE (user_id, achievement_id)
        )
    """)

    # --- Photos ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS photos (
            id VARCHAR(32) PRIMARY KEY,
            owner_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content_hash VARCHAR(64) NOT NULL,
            filename VARCHAR(128) NOT NULL,
            storage_path VARCHAR(256) NOT NULL,
            content_type VARCHAR(64),
            size_bytes INTEGER NOT NULL DEFAULT 0,
            task_name TEXT,
            task_category VARCHAR(64) NOT NULL DEFAULT 'general',
            task_priority VARCHAR(16) NOT NULL DEFAULT 'medium',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT photos_owner_id_content_hash_key UNIQUE (owner_id, content_hash)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_photos_owner_created
        ON photos(owner_id, created_at DESC)
    """)

    # --- Practice sessions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS practice_sessions (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            skill VARCHAR(128) NOT NULL,
            category VARCHAR(64) NOT NULL DEFAULT 'general',
            priority VARCHAR(16) NOT NULL DEFAULT 'medium',
            duration_minutes DOUBLE PRECISION NOT NULL,
            started_at TIMESTAMPTZ NOT NULL,
            ended_at TIMESTAMPTZ NOT NULL,
            xp_earned INTEGER NOT NULL DEFAULT 0,
            coins_earned INTEGER NOT NULL DEFAULT 0,
            photo_id VARCHAR(32) REFERENCES photos(id) ON DELETE SET NULL
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_practice_sessions_user_ended
        ON practice_sessions(user_id, ended_at DESC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS practice_sessions CASCADE")
    op.execute("DROP TABLE IF EXISTS photos CASCADE")
    op.execute("DROP TABLE IF EXISTS user_achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS xp_ledger CASCADE")
    op.execute("DROP TABLE IF EXISTS user_gamification CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
