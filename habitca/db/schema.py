"""SQL schema for the PostgreSQL backend"""
import logging

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS habits (
        id SERIAL PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        emoji TEXT NOT NULL DEFAULT '⭐',
        category TEXT NOT NULL DEFAULT 'Other / Custom',
        frequency TEXT NOT NULL DEFAULT 'daily',
        time TEXT NOT NULL,
        created_at DATE NOT NULL DEFAULT CURRENT_DATE,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        track_time BOOLEAN NOT NULL DEFAULT FALSE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS habit_logs (
        id SERIAL PRIMARY KEY,
        habit_id INTEGER NOT NULL REFERENCES habits (id),
        date DATE NOT NULL,
        completed BOOLEAN NOT NULL DEFAULT FALSE,
        xp_earned INTEGER NOT NULL DEFAULT 0 CHECK (xp_earned >= 0),
        time_spent INTEGER NOT NULL DEFAULT 0,
        completed_at TIMESTAMPTZ,
        UNIQUE (habit_id, date)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_habit_logs_date_completed
    ON habit_logs (date) WHERE completed
    """,
    """
    CREATE TABLE IF NOT EXISTS user_stats (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        level INTEGER NOT NULL DEFAULT 1 CHECK (level >= 1),
        xp INTEGER NOT NULL DEFAULT 0 CHECK (xp >= 0),
        total_streaks INTEGER NOT NULL DEFAULT 0,
        longest_streak INTEGER NOT NULL DEFAULT 0,
        achievements JSONB NOT NULL DEFAULT '{}'::jsonb
    )
    """,
    """
    INSERT INTO user_stats (id, level, xp, total_streaks, longest_streak, achievements)
    VALUES (1, 1, 0, 0, 0, '{}'::jsonb)
    ON CONFLICT (id) DO NOTHING
    """,
    """
    CREATE TABLE IF NOT EXISTS achievements (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        icon TEXT NOT NULL,
        type TEXT NOT NULL,
        requirement_type TEXT NOT NULL,
        requirement_value INTEGER NOT NULL,
        requirement_timeframe TEXT,
        xp_reward INTEGER NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_achievements (
        id SERIAL PRIMARY KEY,
        achievement_id TEXT NOT NULL REFERENCES achievements (id),
        unlocked_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        xp_earned INTEGER NOT NULL,
        UNIQUE (achievement_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS habit_sessions (
        id SERIAL PRIMARY KEY,
        habit_id INTEGER NOT NULL REFERENCES habits (id),
        date DATE NOT NULL,
        start_time TIMESTAMPTZ NOT NULL,
        end_time TIMESTAMPTZ,
        duration INTEGER NOT NULL DEFAULT 0,
        intensity INTEGER NOT NULL DEFAULT 3 CHECK (intensity BETWEEN 1 AND 5),
        notes TEXT NOT NULL DEFAULT ''
    )
    """,
]


async def init_schema(db) -> None:
    """Create tables if missing and seed the user_stats row"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                await cur.execute(statement)
        await conn.commit()
    logger.info(f"Database schema ready ({len(SCHEMA_STATEMENTS)} statements)")
